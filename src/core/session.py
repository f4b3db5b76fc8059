"""
Read-only session identity.

The hosting page stores the connected user as a JSON blob
({"type": "Employee", "email": "..."}); the containers only read the email.
"""

import json
from typing import Literal
from pydantic import BaseModel, ValidationError
from .errors import SessionError


class SessionIdentity(BaseModel):
    type: Literal["Employee", "Admin"]
    email: str

    model_config = {"frozen": True}

    @classmethod
    def from_json(cls, blob: str | None) -> "SessionIdentity":
        """Parse the stored user blob, raising SessionError when unusable"""
        if not blob:
            raise SessionError("No connected user")
        try:
            return cls.model_validate(json.loads(blob))
        except (json.JSONDecodeError, ValidationError) as e:
            raise SessionError(f"Malformed user session: {e}") from e
