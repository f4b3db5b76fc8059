"""
Bill list presenter.

Fetches the connected employee's bills, sorts them most recent first and
projects each one into a display row. Formatting failures are contained to
the row they happen on; store failures become an error view.
"""

from datetime import date
from typing import Callable, Optional
from loguru import logger
from .formatting import format_date, format_status, parse_bill_date
from .storage import BillStoreBase, call_store
from ..core.config import settings
from ..core.errors import StoreError
from ..core.routes import Navigate
from ..core.session import SessionIdentity
from ..models.bill import AttachmentModal, BillListError, BillListView, BillRecord, RenderRow

ShowAttachment = Callable[[AttachmentModal], None]


def _sort_date(bill: BillRecord) -> Optional[date]:
    try:
        return parse_bill_date(bill.date)
    except ValueError:
        return None


def sort_bills(bills: list[BillRecord]) -> list[BillRecord]:
    """
    Order bills by date, most recent first.

    Equal dates keep their fetch order. Bills whose date cannot be parsed
    go last, also in fetch order.
    """
    dated = [(d, bill) for bill in bills if (d := _sort_date(bill)) is not None]
    undated = [bill for bill in bills if _sort_date(bill) is None]
    # sorted() is stable with reverse=True, so ties keep fetch order
    ordered = sorted(dated, key=lambda pair: pair[0], reverse=True)
    return [bill for _, bill in ordered] + undated


def to_render_row(bill: BillRecord) -> RenderRow:
    """Project one bill, falling back to raw values when formatting fails"""
    try:
        display_date = format_date(bill.date)
    except Exception as e:
        logger.warning("Could not format bill date", bill_id=bill.id, date=bill.date, error=str(e))
        display_date = bill.date or ""

    try:
        display_status = format_status(bill.status)
    except Exception as e:
        logger.warning("Could not format bill status", bill_id=bill.id, status=bill.status, error=str(e))
        display_status = bill.status or ""

    return RenderRow(
        row_id=bill.id,
        display_date=display_date,
        display_status=display_status,
        raw_date=bill.date,
        file_url=bill.file_url,
        file_name=bill.file_name,
        type=bill.type,
        name=bill.name,
        amount=bill.amount,
        email=bill.email,
    )


class BillListPresenter:
    """
    Container behind the "Mes notes de frais" page.

    Args:
        store: Remote bill store
        session: Connected user; scopes the list to their email
        on_navigate: Navigation collaborator, called with a route name
        on_show_attachment: Opens the attachment modal (optional)
        timeout: Seconds allowed for the list call (defaults to settings)
    """

    def __init__(
        self,
        store: BillStoreBase,
        session: SessionIdentity,
        on_navigate: Navigate,
        on_show_attachment: Optional[ShowAttachment] = None,
        timeout: Optional[float] = None,
    ):
        self.store = store
        self.session = session
        self.on_navigate = on_navigate
        self.on_show_attachment = on_show_attachment
        self.timeout = settings.store_timeout_seconds if timeout is None else timeout

    async def get_bills(self) -> BillListView:
        """Fetch, sort and format the session's bills"""
        try:
            bills = await call_store(self.store.list(self.session.email), self.timeout)
        except StoreError as e:
            logger.error("Bill list fetch failed", email=self.session.email, error=e.message)
            return BillListView(
                rows=[],
                error=BillListError(kind=e.kind, message=e.message, status_code=e.status_code),
            )

        rows = [to_render_row(bill) for bill in sort_bills(bills)]
        logger.info("Bill list rendered", email=self.session.email, count=len(rows))
        return BillListView(rows=rows)

    def handle_click_new_bill(self) -> None:
        self.on_navigate("NewBill")

    def handle_click_icon_eye(self, row: RenderRow) -> AttachmentModal:
        """Open the attachment modal for a row"""
        modal = AttachmentModal(file_url=row.file_url, file_name=row.file_name)
        if self.on_show_attachment is not None:
            self.on_show_attachment(modal)
        return modal
