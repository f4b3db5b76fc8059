"""
SQLite-based bill store for single-instance deployments.

Provides persistent storage of bills, with attachments written to disk.
"""

import shutil
import sqlite3
import json
import uuid
from datetime import datetime, UTC
from typing import Optional
from pathlib import Path
from loguru import logger
from .bill_store_base import BillStoreBase
from ...core.errors import StoreError
from ...models.bill import Attachment, BillRecord, UploadResult


class SQLiteBillStore(BillStoreBase):
    """
    SQLite-backed bill store with persistent storage.

    Features:
    - Persistent storage across application restarts
    - Draft rows reserved by attachment uploads
    - Email-scoped listing
    - Attachments saved under a local directory
    """

    def __init__(self, db_path: str = "bills.db", attachments_dir: str = "attachments"):
        """
        Initialize store with database path.

        Args:
            db_path: Path to SQLite database file (default: bills.db)
            attachments_dir: Directory receiving uploaded files
        """
        self.db_path = db_path
        self.attachments_dir = Path(attachments_dir)
        self._init_database()

    def _init_database(self):
        """Create bills table if it doesn't exist"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS bills (
                id TEXT PRIMARY KEY,
                email TEXT,
                bill_data TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                is_draft INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                CHECK (status IN ('pending', 'accepted', 'refused'))
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_email
            ON bills(email)
        """)

        conn.commit()
        conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _save_file(self, bill_id: str, file: Attachment) -> str:
        """Write attachment bytes to disk and return the file URL"""
        target_dir = self.attachments_dir / bill_id
        target_dir.mkdir(parents=True, exist_ok=True)
        # Keep only the base name of whatever the browser reported
        safe_name = file.file_name.replace("\\", "/").rsplit("/", 1)[-1]
        target = target_dir / safe_name
        target.write_bytes(file.content)
        return target.resolve().as_uri()

    async def list(self, email: Optional[str] = None) -> list[BillRecord]:
        """
        List persisted bills (drafts excluded), oldest first.

        Args:
            email: Restrict to one employee's bills (None = all)

        Returns:
            List of bill records
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        try:
            if email is None:
                cursor.execute("""
                    SELECT id, bill_data FROM bills
                    WHERE is_draft = 0
                    ORDER BY created_at ASC, rowid ASC
                """)
            else:
                cursor.execute("""
                    SELECT id, bill_data FROM bills
                    WHERE is_draft = 0 AND email = ?
                    ORDER BY created_at ASC, rowid ASC
                """, (email,))
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            logger.error(f"Bill listing failed: {e}")
            raise StoreError("Erreur 500", 500) from e
        finally:
            conn.close()

        return [
            BillRecord.model_validate({**json.loads(row["bill_data"]), "id": row["id"]})
            for row in rows
        ]

    async def create(self, bill: Optional[BillRecord] = None, file: Optional[Attachment] = None) -> UploadResult:
        """
        Upload an attachment and/or persist a bill.

        Returns:
            UploadResult with the file URL, file name and bill id
        """
        if bill is None and file is None:
            raise StoreError("Erreur 400", 400)

        bill_id = (bill.id if bill and bill.id else None) or str(uuid.uuid4())
        record = bill.model_copy(update={"id": bill_id}) if bill else BillRecord(id=bill_id)

        if file is not None:
            record = record.model_copy(update={
                "file_url": self._save_file(bill_id, file),
                "file_name": file.file_name,
            })

        created_at = datetime.now(UTC).isoformat()
        conn = self._get_connection()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO bills (id, email, bill_data, status, is_draft, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email = excluded.email,
                    bill_data = excluded.bill_data,
                    status = excluded.status,
                    is_draft = excluded.is_draft
            """, (
                bill_id,
                record.email,
                json.dumps(record.to_store()),
                record.status,
                1 if bill is None else 0,
                created_at,
            ))
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Bill creation failed: {e}")
            raise StoreError("Erreur 500", 500) from e
        finally:
            conn.close()

        return UploadResult(file_url=record.file_url, file_name=record.file_name, bill_id=bill_id)

    async def update(self, bill_id: str, bill: BillRecord) -> BillRecord:
        """
        Replace a persisted bill.

        Raises:
            StoreError: "Erreur 404" if the bill is not found,
                "Erreur 500" if the database rejects the write
        """
        record = bill.model_copy(update={"id": bill_id})

        conn = self._get_connection()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE bills
                SET email = ?, bill_data = ?, status = ?
                WHERE id = ? AND is_draft = 0
            """, (record.email, json.dumps(record.to_store()), record.status, bill_id))
            rows_affected = cursor.rowcount
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Bill update failed for {bill_id}: {e}")
            raise StoreError("Erreur 500", 500) from e
        finally:
            conn.close()

        if rows_affected == 0:
            raise StoreError("Erreur 404", 404)
        return record

    async def discard(self, bill_id: str) -> None:
        """
        Delete the draft row reserved by an abandoned upload, and its file.

        Persisted bills (is_draft = 0) are left untouched.
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM bills WHERE id = ? AND is_draft = 1", (bill_id,))
            rows_affected = cursor.rowcount
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Draft removal failed for {bill_id}: {e}")
            raise StoreError("Erreur 500", 500) from e
        finally:
            conn.close()

        if rows_affected:
            shutil.rmtree(self.attachments_dir / bill_id, ignore_errors=True)
            logger.info(f"Discarded draft {bill_id}")
