"""
Bill store backed by the remote bills REST API.

Endpoints used:
- GET   /bills            list bills (optionally ?email=)
- POST  /bills            multipart upload of an attachment, or JSON bill record
- PATCH /bills/{id}       replace a bill

Any non-2xx response or unreadable body is turned into a StoreError whose
message ("Erreur <status>") is shown to the user as is.
"""

import httpx
from pydantic import ValidationError
from loguru import logger
from typing import Optional
from .bill_store_base import BillStoreBase
from ...core.errors import StoreError
from ...models.bill import Attachment, BillRecord, UploadResult


def _parse_bill(item: dict) -> BillRecord:
    """Validate one listed record, dropping only the fields that do not fit"""
    try:
        return BillRecord.model_validate(item)
    except ValidationError as e:
        bad = {err["loc"][0] for err in e.errors() if err["loc"]}
        logger.warning("Ignoring malformed bill fields", bill_id=item.get("id"), fields=sorted(map(str, bad)))
        return BillRecord.model_validate({k: v for k, v in item.items() if k not in bad})


class HttpBillStore(BillStoreBase):
    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _send(self, method: str, url: str, **kwargs):
        try:
            async with self._client() as client:
                r = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Bill store timed out: {method} {url}")
            raise StoreError("Erreur 504", 504) from e
        except httpx.HTTPError as e:
            logger.error(f"Bill store unreachable: {method} {url}: {e}")
            raise StoreError("Erreur 503", 503) from e

        if r.status_code >= 400:
            logger.warning("Bill store rejected request", method=method, url=url, http_status=r.status_code)
            raise StoreError(f"Erreur {r.status_code}", r.status_code)

        try:
            return r.json()
        except ValueError as e:
            # Malformed body is reported like a missing resource
            raise StoreError("Erreur 404", 404) from e

    async def list(self, email: Optional[str] = None) -> list[BillRecord]:
        params = {"email": email} if email else None
        payload = await self._send("GET", "/bills", params=params)
        if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
            raise StoreError("Erreur 404", 404)
        return [_parse_bill(item) for item in payload]

    async def create(self, bill: Optional[BillRecord] = None, file: Optional[Attachment] = None) -> UploadResult:
        if bill is None and file is None:
            raise StoreError("Erreur 400", 400)

        if file is not None:
            data = {}
            if bill is not None:
                data = {k: str(v) for k, v in bill.to_store().items() if v is not None}
            files = {"file": (file.file_name, file.content, file.content_type or "application/octet-stream")}
            payload = await self._send("POST", "/bills", data=data, files=files)
        else:
            payload = await self._send("POST", "/bills", json=bill.to_store())

        if not isinstance(payload, dict):
            raise StoreError("Erreur 404", 404)

        # Older backends answer {"fileUrl", "key"} instead of {"fileUrl", "fileName", "billId"}
        return UploadResult(
            file_url=payload.get("fileUrl", bill.file_url if bill else None),
            file_name=payload.get("fileName", file.file_name if file else (bill.file_name if bill else None)),
            bill_id=payload.get("billId") or payload.get("key") or (bill.id if bill else None),
        )

    async def update(self, bill_id: str, bill: BillRecord) -> BillRecord:
        payload = await self._send("PATCH", f"/bills/{bill_id}", json=bill.to_store())
        if not isinstance(payload, dict):
            raise StoreError("Erreur 404", 404)
        return BillRecord.model_validate({**payload, "id": payload.get("id", bill_id)})
