"""
Tests for session parsing, store error classification and route names.
"""

import json
import pytest
from src.core.errors import SessionError, StoreError
from src.core.routes import ROUTES_PATH, route_path
from src.core.session import SessionIdentity
from src.core.config import Settings
from src.services.storage import create_bill_store, HttpBillStore, InMemoryBillStore


def test_session_reads_employee_blob():
    session = SessionIdentity.from_json(json.dumps({"type": "Employee", "email": "e@a"}))
    assert session.email == "e@a"
    assert session.type == "Employee"


@pytest.mark.parametrize("blob", [None, "", "{not json", json.dumps({"type": "Visitor", "email": "x"}), json.dumps({"type": "Admin"})])
def test_session_rejects_unusable_blob(blob):
    with pytest.raises(SessionError):
        SessionIdentity.from_json(blob)


def test_store_error_kind_from_message():
    assert StoreError("Erreur 404").kind == "not_found"
    assert StoreError("Erreur 404").status_code == 404
    assert StoreError("Erreur 500").kind == "server_error"
    assert StoreError("Network down").kind == "server_error"
    assert StoreError("Erreur", status_code=403).kind == "not_found"


def test_route_paths():
    assert route_path("Bills") == ROUTES_PATH["Bills"] == "/bills"
    assert route_path("NewBill") == "/bills/new"
    with pytest.raises(KeyError):
        route_path("Nowhere")


def test_store_backend_selection():
    assert isinstance(create_bill_store(Settings(STORE_BACKEND="memory")), InMemoryBillStore)
    http_store = create_bill_store(Settings(STORE_BACKEND="http", STORE_BASE_URL="https://bills.example.com/"))
    assert isinstance(http_store, HttpBillStore)
    assert http_store.base_url == "https://bills.example.com"
    with pytest.raises(ValueError):
        create_bill_store(Settings(STORE_BACKEND="redis"))
