"""
In-memory bill store (for demo purposes and tests).
In production, use the SQLite or HTTP backend.
"""
from typing import Dict, Optional
import uuid
from .bill_store_base import BillStoreBase
from ...core.errors import StoreError
from ...models.bill import Attachment, BillRecord, UploadResult


class InMemoryBillStore(BillStoreBase):
    def __init__(self, bills: Optional[list[BillRecord]] = None, base_url: str = "memory://bills"):
        self.base_url = base_url
        self._bills: Dict[str, BillRecord] = {}
        self._drafts: Dict[str, BillRecord] = {}
        self._files: Dict[str, bytes] = {}
        for bill in bills or []:
            bill_id = bill.id or str(uuid.uuid4())
            self._bills[bill_id] = bill.model_copy(update={"id": bill_id})

    async def list(self, email: Optional[str] = None) -> list[BillRecord]:
        """List persisted bills, in insertion order"""
        return [
            bill.model_copy()
            for bill in self._bills.values()
            if email is None or bill.email == email
        ]

    async def create(self, bill: Optional[BillRecord] = None, file: Optional[Attachment] = None) -> UploadResult:
        """Upload a file (reserving a draft id) and/or persist a bill"""
        if bill is None and file is None:
            raise StoreError("Erreur 400", 400)

        bill_id = (bill.id if bill and bill.id else None) or str(uuid.uuid4())
        file_url = bill.file_url if bill else None
        file_name = bill.file_name if bill else None

        if file is not None:
            file_url = f"{self.base_url}/public/{bill_id}/{file.file_name}"
            file_name = file.file_name
            self._files[file_url] = file.content

        if bill is None:
            self._drafts[bill_id] = BillRecord(id=bill_id, file_url=file_url, file_name=file_name)
        else:
            self._drafts.pop(bill_id, None)
            self._bills[bill_id] = bill.model_copy(
                update={"id": bill_id, "file_url": file_url, "file_name": file_name}
            )

        return UploadResult(file_url=file_url, file_name=file_name, bill_id=bill_id)

    async def update(self, bill_id: str, bill: BillRecord) -> BillRecord:
        """Replace a persisted bill"""
        if bill_id not in self._bills:
            raise StoreError("Erreur 404", 404)
        updated = bill.model_copy(update={"id": bill_id})
        self._bills[bill_id] = updated
        return updated

    async def discard(self, bill_id: str) -> None:
        """Forget a draft reserved by an abandoned upload, with its file"""
        draft = self._drafts.pop(bill_id, None)
        if draft is not None and draft.file_url is not None:
            self._files.pop(draft.file_url, None)

    def get_file(self, file_url: str) -> Optional[bytes]:
        """Return uploaded attachment bytes (for debugging)"""
        return self._files.get(file_url)
