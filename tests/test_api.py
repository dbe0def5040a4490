"""
Integration tests for the Bank Ledger API
Tests end-to-end workflows using FastAPI TestClient
"""

import pytest
from fastapi.testclient import TestClient

from bank_ledger.api import create_app, status_for
from bank_ledger.api.dependencies import get_ledger_system
from bank_ledger.clock import FixedClock
from bank_ledger.config import LedgerConfig
from bank_ledger.errors import (
    ConcurrencyConflict, InvalidAmount, PersistenceFailure, TransactionNotFound
)
from bank_ledger.system import LedgerSystem


@pytest.fixture
def system():
    ledger_system = LedgerSystem(LedgerConfig(storage_backend="memory"), clock=FixedClock())
    yield ledger_system
    ledger_system.close()


@pytest.fixture
def client(system):
    """Create a test client backed by an in-memory ledger"""
    app = create_app()
    app.dependency_overrides[get_ledger_system] = lambda: system
    return TestClient(app)


def create_customer(client, name="Jane Doe"):
    r = client.post("/customers", json={"name": name, "email": "jane@example.com"})
    assert r.status_code == 201
    return r.json()["id"]


def open_account(client, customer_id, kind="standard", initial="100.00", **extra):
    r = client.post("/accounts", json={
        "customer_id": customer_id, "kind": kind, "initial_deposit": initial, **extra
    })
    assert r.status_code == 201, r.text
    return r.json()["id"]


class TestHealthEndpoints:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"


class TestCustomerFlow:
    """End-to-end customer management tests"""

    def test_create_and_get(self, client):
        customer_id = create_customer(client)
        r = client.get(f"/customers/{customer_id}")
        assert r.status_code == 200
        assert r.json()["name"] == "Jane Doe"

        r = client.get("/customers")
        assert [c["id"] for c in r.json()["customers"]] == [customer_id]

    def test_invalid_customer(self, client):
        r = client.post("/customers", json={"name": "  "})
        assert r.status_code == 400
        assert r.json()["error"] == "invalid_customer"

    def test_update_customer(self, client):
        customer_id = create_customer(client)
        r = client.patch(f"/customers/{customer_id}", json={"phone": "555-0100"})
        assert r.status_code == 200
        assert r.json()["phone"] == "555-0100"

        r = client.patch(f"/customers/{customer_id}", json={"email": "nope"})
        assert r.status_code == 400

    def test_missing_customer(self, client):
        r = client.get("/customers/77")
        assert r.status_code == 404
        assert r.json() == {
            "error": "customer_not_found",
            "detail": "Customer 77 not found",
            "context": {"customer_id": 77},
        }

    def test_remove_customer(self, client):
        customer_id = create_customer(client)
        account_id = open_account(client, customer_id, initial="1.00")

        r = client.delete(f"/customers/{customer_id}")
        assert r.status_code == 409
        assert r.json()["error"] == "customer_has_accounts"

        client.post("/transactions/withdraw", json={"account_id": account_id, "amount": "1.00"})
        assert client.delete(f"/accounts/{account_id}").status_code == 204
        assert client.delete(f"/customers/{customer_id}").status_code == 204
        assert client.get(f"/customers/{customer_id}").status_code == 404

    def test_customer_accounts(self, client):
        customer_id = create_customer(client)
        open_account(client, customer_id)
        open_account(client, customer_id, kind="savings", interest_rate="2")
        r = client.get(f"/customers/{customer_id}/accounts")
        assert r.status_code == 200
        assert [a["kind"] for a in r.json()["accounts"]] == ["standard", "savings"]


class TestAccountFlow:

    def test_open_account(self, client):
        customer_id = create_customer(client)
        r = client.post("/accounts", json={
            "customer_id": customer_id, "kind": "checking",
            "initial_deposit": "50", "overdraft_limit": "100.00"
        })
        assert r.status_code == 201
        data = r.json()
        assert data["balance"] == "50.00"
        assert data["overdraft_limit"] == "100.00"
        assert data["interest_rate"] is None
        assert data["account_number"].startswith("CHK")

    def test_open_for_unknown_customer(self, client):
        r = client.post("/accounts", json={
            "customer_id": 9, "kind": "standard", "initial_deposit": "5.00"
        })
        assert r.status_code == 404

    def test_open_with_bad_kind(self, client):
        customer_id = create_customer(client)
        r = client.post("/accounts", json={
            "customer_id": customer_id, "kind": "crypto", "initial_deposit": "5.00"
        })
        assert r.status_code == 400
        assert r.json()["error"] == "invalid_account_parameters"

    def test_duplicate_account_number(self, client):
        customer_id = create_customer(client)
        open_account(client, customer_id, account_number="FIXED-1")
        r = client.post("/accounts", json={
            "customer_id": customer_id, "kind": "standard",
            "initial_deposit": "5.00", "account_number": "FIXED-1"
        })
        assert r.status_code == 409

    def test_missing_account(self, client):
        r = client.get("/accounts/999")
        assert r.status_code == 404
        assert r.json()["error"] == "account_not_found"

    def test_close_requires_zero_balance(self, client):
        customer_id = create_customer(client)
        account_id = open_account(client, customer_id, initial="0.01")
        r = client.delete(f"/accounts/{account_id}")
        assert r.status_code == 409
        assert r.json()["error"] == "non_zero_balance"

    def test_interest(self, client):
        customer_id = create_customer(client)
        savings = open_account(client, customer_id, kind="savings", initial="200.00", interest_rate="1.5")
        r = client.post(f"/accounts/{savings}/interest")
        assert r.status_code == 200
        assert r.json()["balance"] == "203.00"

        standard = open_account(client, customer_id)
        r = client.post(f"/accounts/{standard}/interest")
        assert r.status_code == 400
        assert r.json()["error"] == "unsupported_operation"


class TestTransactionFlow:

    def test_deposit_withdraw_transfer(self, client):
        customer_id = create_customer(client)
        first = open_account(client, customer_id, initial="100.00")
        second = open_account(client, customer_id, initial="10.00")

        r = client.post("/transactions/deposit", json={"account_id": first, "amount": "25.25"})
        assert r.status_code == 200
        assert r.json()["balance"] == "125.25"

        r = client.post("/transactions/withdraw", json={"account_id": first, "amount": "0.25"})
        assert r.json()["balance"] == "125.00"

        r = client.post("/transactions/transfer", json={
            "from_account_id": first, "to_account_id": second, "amount": "125.00"
        })
        assert r.status_code == 200
        assert r.json()["from_balance"] == "0.00"
        assert r.json()["to_balance"] == "135.00"

        r = client.get(f"/accounts/{first}/transactions")
        kinds = [t["kind"] for t in r.json()["transactions"]]
        assert kinds == ["deposit", "withdrawal", "transfer_out"]

        transaction = r.json()["transactions"][0]
        r = client.get(f"/transactions/{transaction['id']}")
        assert r.status_code == 200
        assert r.json()["amount"] == "25.25"

    def test_rejections(self, client):
        customer_id = create_customer(client)
        account_id = open_account(client, customer_id, initial="10.00")

        r = client.post("/transactions/withdraw", json={"account_id": account_id, "amount": "10.01"})
        assert r.status_code == 409
        assert r.json()["error"] == "insufficient_funds"

        r = client.post("/transactions/deposit", json={"account_id": account_id, "amount": "abc"})
        assert r.status_code == 400
        assert r.json()["error"] == "invalid_amount"

        r = client.post("/transactions/transfer", json={
            "from_account_id": account_id, "to_account_id": account_id, "amount": "1.00"
        })
        assert r.status_code == 400
        assert r.json()["error"] == "same_account_transfer"

        r = client.get(f"/accounts/{account_id}/transactions")
        assert r.json()["transactions"] == []

    def test_large_amounts(self, client):
        customer_id = create_customer(client)
        account_id = open_account(client, customer_id, initial="9" * 26)

        r = client.post("/transactions/deposit", json={"account_id": account_id, "amount": "9" * 26})
        assert r.status_code == 200
        assert r.json()["balance"] == "199999999999999999999999998.00"

        r = client.post("/transactions/deposit", json={"account_id": account_id, "amount": "1e30"})
        assert r.status_code == 200
        assert r.json()["balance"] == "1000199999999999999999999999998.00"

        r = client.post("/transactions/deposit", json={"account_id": account_id, "amount": "1e5000"})
        assert r.status_code == 400
        assert r.json()["error"] == "invalid_amount"

    def test_missing_transaction(self, client):
        assert client.get("/transactions/5").status_code == 404

    def test_request_validation(self, client):
        r = client.post("/transactions/deposit", json={"account_id": 1})
        assert r.status_code == 422


class TestErrorMapping:

    def test_status_codes(self):
        assert status_for(TransactionNotFound(1)) == 404
        assert status_for(InvalidAmount("bad")) == 400
        assert status_for(ConcurrencyConflict("busy")) == 409
        assert status_for(PersistenceFailure("down")) == 503
