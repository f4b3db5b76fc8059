from typing import Dict
from fastapi import Cookie, Depends, Header, HTTPException
from ..core.errors import SessionError
from ..core.session import SessionIdentity
from ..services.new_bill import NewBillValidator
from ..services.storage import BillStoreBase, create_bill_store

# Global instances (overridable through app.dependency_overrides)
bill_store: BillStoreBase = create_bill_store()
new_bill_validators: Dict[str, NewBillValidator] = {}


class NavigationRecorder:
    """Navigation collaborator handed to the containers; remembers the last route"""

    def __init__(self):
        self.history: list[str] = []

    def __call__(self, route_name: str) -> None:
        self.history.append(route_name)

    @property
    def current(self) -> str | None:
        return self.history[-1] if self.history else None


class AlertRecorder:
    """Alert collaborator; the adapter returns recorded alerts to the client"""

    def __init__(self):
        self.messages: list[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


def get_bill_store() -> BillStoreBase:
    return bill_store


def get_session(
    x_user: str | None = Header(default=None),
    user: str | None = Cookie(default=None),
) -> SessionIdentity:
    """Read the connected user from the X-User header or the user cookie"""
    try:
        return SessionIdentity.from_json(x_user or user)
    except SessionError as e:
        raise HTTPException(status_code=401, detail=str(e))


def get_new_bill_validator(
    session: SessionIdentity = Depends(get_session),
    store: BillStoreBase = Depends(get_bill_store),
) -> NewBillValidator:
    """One in-flight submission per connected employee"""
    validator = new_bill_validators.get(session.email)
    if validator is None or validator.store is not store:
        validator = NewBillValidator(
            store,
            session,
            on_navigate=NavigationRecorder(),
            on_alert=AlertRecorder(),
        )
        new_bill_validators[session.email] = validator
    return validator
