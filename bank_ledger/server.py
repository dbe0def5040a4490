"""
Bank Ledger Server Entry Point

Starts the FastAPI server with the ledger system built from configuration.
"""

from typing import Optional
import sys

import uvicorn

from .api import create_app
from .api.dependencies import set_ledger_system
from .config import get_config
from .logging_config import setup_logging
from .system import LedgerSystem


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the FastAPI server"""
    config = get_config()
    logger = setup_logging(
        level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file
    )

    system = LedgerSystem(config)
    set_ledger_system(system)

    host = host or config.api_host
    port = port or config.api_port
    logger.info(f"Bank ledger API listening on http://{host}:{port}")

    try:
        uvicorn.run(
            create_app(),
            host=host,
            port=port,
            log_level=config.log_level.lower()
        )
    finally:
        set_ledger_system(None)
        system.close()


def main() -> None:
    try:
        run_server()
    except KeyboardInterrupt:
        pass
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
