"""
Tests for the bill list presenter.

Covers ordering, per-row formatting fallbacks and fetch error views.
"""

import asyncio
import httpx
import pytest
import respx
from unittest.mock import AsyncMock, Mock
from src.core.errors import StoreError
from src.models.bill import BillRecord
from src.services.bill_list import BillListPresenter, sort_bills
from src.services.formatting import format_date
from src.services.storage import HttpBillStore, InMemoryBillStore


def make_presenter(store, session, **kwargs):
    return BillListPresenter(store, session, on_navigate=Mock(), **kwargs)


def test_bills_are_ordered_most_recent_first(store, session):
    view = asyncio.run(make_presenter(store, session).get_bills())

    dates = [row.raw_date for row in view.rows]
    assert dates == ["2004-04-04", "2003-03-03", "2002-02-02", "2001-01-01"]
    assert dates == sorted(dates, reverse=True)


def test_one_row_per_bill(store, session, sample_bills):
    view = asyncio.run(make_presenter(store, session).get_bills())

    assert view.ok
    assert len(view.rows) == len(sample_bills)


def test_rows_are_formatted(store, session):
    view = asyncio.run(make_presenter(store, session).get_bills())

    first = view.rows[0]
    assert first.display_date == "4 Avr. 04"
    assert first.display_status == "En attente"
    assert first.row_id == "47qAXb6fIm2zOKkLzMro"
    assert first.file_url.endswith("preview-facture.jpg")


def test_scenario_recent_date_first(session):
    store = InMemoryBillStore([
        BillRecord(email="e@a", date="2023-01-01", status="pending"),
        BillRecord(email="e@a", date="2023-06-01", status="accepted"),
    ])

    view = asyncio.run(make_presenter(store, session).get_bills())

    assert [row.raw_date for row in view.rows] == ["2023-06-01", "2023-01-01"]
    assert [row.display_date for row in view.rows] == [format_date("2023-06-01"), format_date("2023-01-01")]


def test_equal_dates_keep_fetch_order():
    bills = [
        BillRecord(id="a", date="2022-05-05"),
        BillRecord(id="b", date="2023-01-01"),
        BillRecord(id="c", date="2022-05-05"),
        BillRecord(id="d", date="2022-05-05"),
    ]

    assert [b.id for b in sort_bills(bills)] == ["b", "a", "c", "d"]


def test_unparseable_dates_sort_last_in_fetch_order():
    bills = [
        BillRecord(id="x", date="garbage"),
        BillRecord(id="a", date="2020-01-01"),
        BillRecord(id="y", date=None),
        BillRecord(id="b", date="2021-01-01"),
    ]

    assert [b.id for b in sort_bills(bills)] == ["b", "a", "x", "y"]


def test_date_formatting_errors_keep_every_row(store, session, sample_bills, monkeypatch):
    def broken(_):
        raise ValueError("Format error")

    monkeypatch.setattr("src.services.bill_list.format_date", broken)

    view = asyncio.run(make_presenter(store, session).get_bills())

    assert view.ok
    assert len(view.rows) == len(sample_bills)
    # Falls back to the raw date
    assert view.rows[0].display_date == "2004-04-04"
    assert view.rows[0].display_status == "En attente"


def test_status_formatting_error_is_isolated_to_its_row(session):
    store = InMemoryBillStore([
        BillRecord(email="e@a", date="2023-01-01", status="archived"),
        BillRecord(email="e@a", date="not-a-date", status="accepted"),
        BillRecord(email="e@a", date="2023-06-01", status="pending"),
    ])

    view = asyncio.run(make_presenter(store, session).get_bills())

    assert len(view.rows) == 3
    by_date = {row.raw_date: row for row in view.rows}
    assert by_date["2023-01-01"].display_status == "archived"
    assert by_date["2023-01-01"].display_date == "1 Jan. 23"
    assert by_date["not-a-date"].display_date == "not-a-date"
    assert by_date["not-a-date"].display_status == "Accepté"
    assert by_date["2023-06-01"].display_status == "En attente"


@respx.mock
def test_remote_records_with_odd_values_each_render_a_row(session):
    respx.get("https://bills.example.com/bills").mock(return_value=httpx.Response(200, json=[
        {"id": "a", "email": "e@a", "date": "2023-01-01", "status": "pending"},
        {"id": "b", "email": "e@a", "date": "2023-06-01", "vat": 70},
        {"id": "c", "email": "e@a", "date": "2023-03-01", "status": None},
        {"id": "d", "email": "e@a", "date": True, "status": "refused"},
    ]))
    store = HttpBillStore("https://bills.example.com")

    view = asyncio.run(make_presenter(store, session).get_bills())

    assert view.ok
    assert len(view.rows) == 4
    by_id = {row.row_id: row for row in view.rows}
    assert by_id["b"].display_date == "1 Jui. 23"
    assert by_id["c"].display_status == ""
    assert by_id["d"].display_date == ""
    assert by_id["d"].display_status == "Refused"


def test_only_session_bills_are_listed(session, sample_bills):
    other = BillRecord(email="someone@else", date="2030-01-01", status="pending")
    store = InMemoryBillStore(sample_bills + [other])

    view = asyncio.run(make_presenter(store, session).get_bills())

    assert len(view.rows) == len(sample_bills)
    assert all(row.email == "e@a" for row in view.rows)


@pytest.mark.parametrize(
    "message,kind",
    [("Erreur 404", "not_found"), ("Erreur 500", "server_error")],
)
def test_fetch_failure_becomes_error_view(session, message, kind):
    store = Mock()
    store.list = AsyncMock(side_effect=StoreError(message))

    view = asyncio.run(make_presenter(store, session).get_bills())

    assert not view.ok
    assert view.rows == []
    assert view.error.message == message
    assert view.error.kind == kind


def test_fetch_timeout_becomes_server_error(session):
    class SlowStore(InMemoryBillStore):
        async def list(self, email=None):
            await asyncio.sleep(1)
            return []

    view = asyncio.run(make_presenter(SlowStore(), session, timeout=0.01).get_bills())

    assert view.error.kind == "server_error"
    assert view.error.message == "Erreur 504"


def test_click_new_bill_navigates(store, session):
    presenter = make_presenter(store, session)

    presenter.handle_click_new_bill()

    presenter.on_navigate.assert_called_once_with("NewBill")


def test_click_icon_eye_opens_modal_with_row_file(store, session):
    show = Mock()
    presenter = make_presenter(store, session, on_show_attachment=show)
    view = asyncio.run(presenter.get_bills())

    modal = presenter.handle_click_icon_eye(view.rows[0])

    show.assert_called_once_with(modal)
    assert modal.file_url == view.rows[0].file_url
    assert modal.file_name == "preview-facture.jpg"
