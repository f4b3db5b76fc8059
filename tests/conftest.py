"""
Pytest configuration and shared fixtures.

This file registers custom pytest markers and command-line options.
"""

import json
import pytest
from src.core.session import SessionIdentity
from src.models.bill import BillRecord
from src.services.storage import InMemoryBillStore


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against a real bills backend (STORE_BASE_URL)"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring a real bills backend"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


EMPLOYEE_EMAIL = "e@a"


@pytest.fixture
def session():
    """Connected employee, as stored by the login page"""
    return SessionIdentity.from_json(json.dumps({"type": "Employee", "email": EMPLOYEE_EMAIL}))


@pytest.fixture
def sample_bills():
    """Bills in fetch order (not sorted)"""
    return [
        BillRecord(id="47qAXb6fIm2zOKkLzMro", email=EMPLOYEE_EMAIL, type="Hôtel et logement",
                   name="encore", amount=400, date="2004-04-04", vat="80", pct=20,
                   file_url="memory://bills/public/47qAXb6fIm2zOKkLzMro/preview-facture.jpg",
                   file_name="preview-facture.jpg", status="pending"),
        BillRecord(id="BeKy5Mo4jkmdfPGYpTxZ", email=EMPLOYEE_EMAIL, type="Transports",
                   name="test1", amount=100, date="2001-01-01", vat="", pct=20,
                   file_url="memory://bills/public/BeKy5Mo4jkmdfPGYpTxZ/1592770761.jpeg",
                   file_name="1592770761.jpeg", status="refused", comment_admin="en fait non"),
        BillRecord(id="UIUZtnPQvnbFnB0ozvJh", email=EMPLOYEE_EMAIL, type="Services en ligne",
                   name="test3", amount=300, date="2003-03-03", vat="60", pct=20,
                   file_url="memory://bills/public/UIUZtnPQvnbFnB0ozvJh/facture-client.jpg",
                   file_name="facture-client.jpg", status="accepted", comment_admin="bon bah d'accord"),
        BillRecord(id="qcCK3SzECmaZAGRrHjaC", email=EMPLOYEE_EMAIL, type="Restaurants et bars",
                   name="test2", amount=200, date="2002-02-02", vat="40", pct=20,
                   file_url="memory://bills/public/qcCK3SzECmaZAGRrHjaC/preview-facture.jpg",
                   file_name="preview-facture.jpg", status="refused", comment_admin="pas la bonne facture"),
    ]


@pytest.fixture
def store(sample_bills):
    return InMemoryBillStore(sample_bills)
