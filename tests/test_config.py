"""
Tests for environment-based configuration
"""

import pytest

from bank_ledger import config as config_module
from bank_ledger.config import LedgerConfig, get_config, reload_config
from bank_ledger.storage import InMemoryStorage, SQLiteStorage
from bank_ledger.system import LedgerSystem, create_storage


class TestLedgerConfig:

    def test_defaults(self, monkeypatch):
        for name in ("STORAGE_BACKEND", "LOG_LEVEL", "API_PORT", "RECORD_OPENING_DEPOSIT"):
            monkeypatch.delenv(f"BANK_LEDGER_{name}", raising=False)
        cfg = LedgerConfig(_env_file=None)
        assert cfg.storage_backend == "sqlite"
        assert cfg.api_port == 8090
        assert cfg.log_level == "INFO"
        assert cfg.record_opening_deposit is False
        assert cfg.enable_audit_logging is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("BANK_LEDGER_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("BANK_LEDGER_API_PORT", "9100")
        monkeypatch.setenv("BANK_LEDGER_RECORD_OPENING_DEPOSIT", "true")
        monkeypatch.setenv("BANK_LEDGER_LOCK_TIMEOUT_SECONDS", "0.5")
        cfg = LedgerConfig(_env_file=None)
        assert cfg.storage_backend == "memory"
        assert cfg.api_port == 9100
        assert cfg.record_opening_deposit is True
        assert cfg.lock_timeout_seconds == 0.5

    def test_reload_config(self, monkeypatch):
        original = get_config()
        monkeypatch.setenv("BANK_LEDGER_LOG_LEVEL", "DEBUG")
        try:
            reloaded = reload_config()
            assert reloaded.log_level == "DEBUG"
            assert get_config() is reloaded
        finally:
            config_module.config = original


class TestLedgerSystem:

    def test_create_storage(self, tmp_path):
        assert isinstance(create_storage(LedgerConfig(storage_backend="memory")), InMemoryStorage)
        sqlite = create_storage(LedgerConfig(database_path=str(tmp_path / "ledger.db")))
        assert isinstance(sqlite, SQLiteStorage)
        sqlite.close()

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="postgres"):
            create_storage(LedgerConfig(storage_backend="postgres"))

    def test_system_wiring_follows_config(self):
        cfg = LedgerConfig(
            storage_backend="memory",
            enable_audit_logging=False,
            record_opening_deposit=True,
            default_overdraft_limit="40.00",
        )
        system = LedgerSystem(cfg)
        assert system.audit_trail is None
        assert system.ledger.record_opening_deposit is True

        customer = system.customer_service.add_customer("Config Tester")
        account_id = system.ledger.open_account(customer.id, "checking", "10.00")
        assert system.ledger.get_account(account_id).overdraft_limit == 40
        assert len(system.ledger.get_account_transactions(account_id)) == 1
        system.close()
