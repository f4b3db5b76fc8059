"""
Abstract base class for remote bill store implementations.

Defines the collaborator interface the bill containers consume,
enabling dependency injection and easy swapping of storage backends.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional
from ...core.errors import StoreError
from ...models.bill import Attachment, BillRecord, UploadResult


class BillStoreBase(ABC):
    """
    Abstract base class for the bill store.

    Implementations can use:
    - In-memory storage (for testing/demo)
    - SQLite (for single-instance deployments)
    - A remote REST backend over HTTP (for production)

    Every method may reject with StoreError; its message is display text.
    """

    @abstractmethod
    async def list(self, email: Optional[str] = None) -> list[BillRecord]:
        """
        List bills visible to a session.

        Args:
            email: Employee email to scope the list to (None = every bill)

        Returns:
            Bill records in store order
        """
        pass

    @abstractmethod
    async def create(
        self,
        bill: Optional[BillRecord] = None,
        file: Optional[Attachment] = None,
    ) -> UploadResult:
        """
        Store an attachment and/or persist a bill record.

        A file-only call uploads the attachment and reserves a bill id.
        A record call persists the bill, reusing its id when one was reserved.

        Returns:
            UploadResult with fileUrl, fileName and billId
        """
        pass

    @abstractmethod
    async def update(self, bill_id: str, bill: BillRecord) -> BillRecord:
        """
        Replace a persisted bill.

        Raises:
            StoreError: "Erreur 404" when the bill does not exist
        """
        pass

    async def discard(self, bill_id: str) -> None:
        """
        Drop the draft and attachment reserved by an upload that was abandoned.

        Persisted bills are never touched. Backends that expire drafts on
        their own keep this default, which does nothing.
        """
        return None


async def call_store(awaitable, timeout: Optional[float]):
    """
    Await a store call, turning an expired timeout into a StoreError.

    Args:
        awaitable: Pending store coroutine
        timeout: Seconds before giving up (None = wait forever)
    """
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as e:
        raise StoreError("Erreur 504", 504) from e
