from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


class BillStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    refused = "refused"


class BillRecord(BaseModel):
    """
    An expense report as stored by the remote bill store.

    Records come from a backend we do not control, so display-only fields
    are coerced leniently: one odd value must never drop the whole list.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    email: str | None = None
    type: str | None = None
    name: str | None = None
    amount: float | None = None
    date: str | None = None  # ISO date, kept raw so malformed values survive the round trip
    vat: str | None = None
    pct: int | None = None
    commentary: str | None = None
    file_url: str | None = Field(default=None, alias="fileUrl")
    file_name: str | None = Field(default=None, alias="fileName")
    status: str | None = BillStatus.pending.value
    comment_admin: str | None = Field(default=None, alias="commentAdmin")

    @field_validator("id", "type", "name", "date", "vat", "commentary", "status", mode="before")
    @classmethod
    def _scalar_to_str(cls, value):
        # vat: 70, date: 20230601 -> "70", "20230601"
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _lenient_amount(cls, value):
        try:
            return None if value is None else float(value)
        except (TypeError, ValueError):
            return None

    @field_validator("pct", mode="before")
    @classmethod
    def _lenient_pct(cls, value):
        try:
            return None if value is None else int(float(value))
        except (TypeError, ValueError):
            return None

    def to_store(self) -> dict:
        """Serialize with the store's camelCase field names"""
        return self.model_dump(by_alias=True)


class Attachment(BaseModel):
    """File selected by the employee; opaque to everything but the store"""
    file_name: str
    content: bytes = b""
    content_type: str | None = None


class UploadResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_url: str | None = Field(default=None, alias="fileUrl")
    file_name: str | None = Field(default=None, alias="fileName")
    bill_id: str | None = Field(default=None, alias="billId")


class NewBillForm(BaseModel):
    """Values read from the new bill form; blank inputs are allowed"""
    type: str | None = None
    name: str | None = None
    date: str | None = None
    amount: float | None = None
    vat: str | None = None
    pct: int | None = None
    commentary: str | None = None

    @field_validator("type", "name", "date", "vat", "commentary", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value):
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return None
        return float(value)

    @field_validator("pct", mode="before")
    @classmethod
    def _parse_pct(cls, value):
        # Number input: "20" -> 20, "" -> None (the store defaults it)
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return None
        return int(float(value))


class RenderRow(BaseModel):
    """Display-ready projection of one bill; recomputed on every render"""
    model_config = ConfigDict(populate_by_name=True)

    row_id: str | None = Field(default=None, alias="rowId")
    display_date: str = Field(alias="displayDate")
    display_status: str = Field(alias="displayStatus")
    raw_date: str | None = Field(default=None, alias="rawDate")
    file_url: str | None = Field(default=None, alias="fileUrl")
    file_name: str | None = Field(default=None, alias="fileName")
    type: str | None = None
    name: str | None = None
    amount: float | None = None
    email: str | None = None


class BillListError(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: str  # "not_found" | "server_error"
    message: str
    status_code: int | None = Field(default=None, alias="statusCode")


class BillListView(BaseModel):
    rows: list[RenderRow] = []
    error: BillListError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AttachmentModal(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = "Justificatif"
    file_url: str | None = Field(default=None, alias="fileUrl")
    file_name: str | None = Field(default=None, alias="fileName")
