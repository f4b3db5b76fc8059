from .bill_store_base import BillStoreBase, call_store
from .bills import InMemoryBillStore
from .bills_sqlite import SQLiteBillStore
from .bills_http import HttpBillStore
from ...core.config import Settings, settings


def create_bill_store(config: Settings = settings) -> BillStoreBase:
    """Build the bill store selected by STORE_BACKEND"""
    backend = config.store_backend.lower()
    if backend == "memory":
        return InMemoryBillStore(base_url=config.store_base_url)
    if backend == "sqlite":
        return SQLiteBillStore(config.sqlite_db_path, config.attachments_dir)
    if backend == "http":
        return HttpBillStore(
            config.store_base_url,
            api_key=config.store_api_key,
            timeout=config.store_timeout_seconds,
        )
    raise ValueError(f"Unknown STORE_BACKEND: {config.store_backend}")


__all__ = [
    "BillStoreBase",
    "call_store",
    "InMemoryBillStore",
    "SQLiteBillStore",
    "HttpBillStore",
    "create_bill_store",
]
