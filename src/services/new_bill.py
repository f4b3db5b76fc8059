"""
New bill submission.

Drives one in-flight submission through:

    IDLE -> FILE_SELECTED -> FILE_UPLOADED -> SUBMITTED
                 \\-> FILE_REJECTED -> IDLE

The attachment is uploaded as soon as it passes the file-type check, in a
background task, so the employee can keep filling the form. Submission
always waits for that upload to settle before the bill is created.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional
from loguru import logger
from . import attachment_gate
from .storage import BillStoreBase, call_store
from ..core.config import settings
from ..core.errors import StoreError, SubmissionError
from ..core.routes import Navigate
from ..core.session import SessionIdentity
from ..models.bill import Attachment, BillRecord, BillStatus, NewBillForm

Alert = Callable[[str], None]

NO_ATTACHMENT_MESSAGE = "Veuillez sélectionner un justificatif avant d'envoyer la note de frais"


class SubmissionState(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    FILE_REJECTED = "file_rejected"
    FILE_UPLOADED = "file_uploaded"
    UPLOAD_FAILED = "upload_failed"
    SUBMITTED = "submitted"


@dataclass
class PendingUpload:
    """Accepted attachment bridging file selection and form submission"""
    attachment: Attachment
    email: str
    task: Optional[asyncio.Task] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    bill_id: Optional[str] = None
    error: Optional[StoreError] = field(default=None, repr=False)


@dataclass
class FileSelectionResult:
    accepted: bool
    file_name: Optional[str] = None
    message: Optional[str] = None


class NewBillValidator:
    """
    Container behind the "Envoyer une note de frais" page.

    Args:
        store: Remote bill store
        session: Connected user; its email is stamped on the new bill
        on_navigate: Navigation collaborator, called with "Bills" after success
        on_alert: Blocking user-facing alert (optional)
        timeout: Seconds allowed per store call (defaults to settings)
    """

    def __init__(
        self,
        store: BillStoreBase,
        session: SessionIdentity,
        on_navigate: Navigate,
        on_alert: Optional[Alert] = None,
        timeout: Optional[float] = None,
    ):
        self.store = store
        self.session = session
        self.on_navigate = on_navigate
        self.on_alert = on_alert
        self.timeout = settings.store_timeout_seconds if timeout is None else timeout
        self.state = SubmissionState.IDLE
        self._pending: Optional[PendingUpload] = None
        self._discards: set[asyncio.Task] = set()

    @property
    def pending_upload(self) -> Optional[PendingUpload]:
        return self._pending

    def handle_change_file(self, attachment: Attachment) -> FileSelectionResult:
        """
        React to a file selection.

        Must be called from a running event loop: an accepted file starts
        uploading immediately in a background task.
        """
        self._cancel_pending()

        if not attachment_gate.validate(attachment.file_name):
            self.state = SubmissionState.FILE_REJECTED
            logger.info("Attachment rejected", file_name=attachment.file_name, email=self.session.email)
            if self.on_alert is not None:
                self.on_alert(attachment_gate.INVALID_FILE_TYPE_MESSAGE)
            # Nothing is retained; the employee has to pick another file
            self.state = SubmissionState.IDLE
            return FileSelectionResult(accepted=False, message=attachment_gate.INVALID_FILE_TYPE_MESSAGE)

        self.state = SubmissionState.FILE_SELECTED
        pending = PendingUpload(attachment=attachment, email=self.session.email)
        pending.task = asyncio.create_task(self._upload(pending))
        self._pending = pending
        return FileSelectionResult(accepted=True, file_name=attachment.file_name)

    async def _upload(self, pending: PendingUpload) -> None:
        try:
            result = await call_store(self.store.create(file=pending.attachment), self.timeout)
        except StoreError as e:
            logger.error("Attachment upload failed", file_name=pending.attachment.file_name, error=e.message)
            self._upload_failed(pending, e)
            return
        except Exception:
            # e.g. OSError while writing the attachment to disk
            logger.exception("Attachment upload crashed", file_name=pending.attachment.file_name)
            self._upload_failed(pending, StoreError("Erreur 500", 500))
            return

        pending.file_url = result.file_url
        pending.file_name = result.file_name or pending.attachment.file_name
        pending.bill_id = result.bill_id
        logger.info("Attachment uploaded", file_name=pending.file_name, bill_id=pending.bill_id)
        if pending is self._pending:
            self.state = SubmissionState.FILE_UPLOADED

    def _upload_failed(self, pending: PendingUpload, error: StoreError) -> None:
        pending.error = error
        if pending is self._pending:
            self.state = SubmissionState.UPLOAD_FAILED

    async def wait_for_upload(self) -> PendingUpload:
        """
        Wait until the current attachment upload has settled.

        Raises:
            SubmissionError: no accepted attachment, or its upload failed
        """
        while True:
            pending = self._pending
            if pending is None or pending.task is None:
                raise SubmissionError(NO_ATTACHMENT_MESSAGE)

            if not pending.task.done():
                await asyncio.wait({pending.task})

            if pending is not self._pending:
                # Superseded by a newer selection while we were waiting
                continue

            if pending.task.cancelled():
                raise SubmissionError(NO_ATTACHMENT_MESSAGE)
            if pending.error is not None:
                raise SubmissionError(pending.error.message, pending.error)
            return pending

    def build_bill(self, form: NewBillForm, pending: PendingUpload) -> BillRecord:
        """Assemble the bill sent to the store; no field is mandatory"""
        return BillRecord(
            id=pending.bill_id,
            email=pending.email,
            type=form.type,
            name=form.name,
            amount=form.amount,
            date=form.date,
            vat=form.vat,
            pct=form.pct if form.pct is not None else 20,
            commentary=form.commentary,
            file_url=pending.file_url,
            file_name=pending.file_name,
            status=BillStatus.pending.value,
        )

    async def handle_submit(self, form: NewBillForm) -> BillRecord:
        """
        Create the bill from the form values and the settled upload.

        Navigates to the bill list on success. On failure the error is
        logged and raised as SubmissionError; no navigation happens.
        """
        pending = await self.wait_for_upload()
        bill = self.build_bill(form, pending)

        try:
            await call_store(self.store.create(bill), self.timeout)
        except StoreError as e:
            logger.error("Bill creation failed", email=bill.email, bill_id=bill.id, error=e.message)
            raise SubmissionError(e.message, e) from e

        logger.info("Bill submitted", email=bill.email, bill_id=bill.id, amount=bill.amount)
        self.state = SubmissionState.SUBMITTED
        self._pending = None
        self.on_navigate("Bills")
        return bill

    def reset(self) -> None:
        """
        Discard any pending upload (the page was left).

        An upload that already finished leaves a draft in the store; its
        removal is scheduled, see settle_discards().
        """
        self._cancel_pending()
        self.state = SubmissionState.IDLE

    async def settle_discards(self) -> None:
        """Wait until drafts left by abandoned uploads are removed from the store"""
        if self._discards:
            await asyncio.wait(set(self._discards))

    def _cancel_pending(self) -> None:
        pending = self._pending
        self._pending = None
        if pending is None or pending.task is None:
            return

        if not pending.task.done():
            logger.info("Cancelling superseded attachment upload", file_name=pending.attachment.file_name)
            pending.task.cancel()
        elif pending.bill_id is not None:
            task = asyncio.create_task(self._discard(pending))
            self._discards.add(task)
            task.add_done_callback(self._discards.discard)

    async def _discard(self, pending: PendingUpload) -> None:
        try:
            await call_store(self.store.discard(pending.bill_id), self.timeout)
        except StoreError as e:
            logger.warning("Could not discard abandoned draft", bill_id=pending.bill_id, error=e.message)
            return
        except Exception:
            logger.exception("Draft removal crashed", bill_id=pending.bill_id)
            return
        logger.info("Discarded abandoned draft", bill_id=pending.bill_id, file_name=pending.file_name)
