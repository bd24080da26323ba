from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Protocol

from sqlalchemy.orm import Session

from wingshop.models.storage_entry import StorageEntry


class KeyValueStorage(Protocol):
    """Minimal web-storage style interface the cart store persists through."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class SqlStorage:
    """
    Key-value storage backed by the storage_entries table, scoped to one
    client id and one scope ("local" or "session").
    """

    def __init__(self, db: Session, client_id: str, scope: str = "local"):
        self.db = db
        self.client_id = client_id
        self.namespace = f"{client_id}:{scope}"

    def _row(self, key: str) -> Optional[StorageEntry]:
        return (
            self.db.query(StorageEntry)
            .filter(StorageEntry.namespace == self.namespace, StorageEntry.key == key)
            .first()
        )

    def get_item(self, key: str) -> Optional[str]:
        row = self._row(key)
        return row.value if row else None

    def set_item(self, key: str, value: str) -> None:
        row = self._row(key)
        if row:
            row.value = value
        else:
            self.db.add(StorageEntry(namespace=self.namespace, key=key, value=value))
        self.db.commit()

    def remove_item(self, key: str) -> None:
        row = self._row(key)
        if row:
            self.db.delete(row)
            self.db.commit()

    def keys(self) -> List[str]:
        rows = (
            self.db.query(StorageEntry.key)
            .filter(StorageEntry.namespace == self.namespace)
            .order_by(StorageEntry.id)
            .all()
        )
        return [r[0] for r in rows]


def purge_stale_entries(db: Session, ttl_seconds: int) -> int:
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=ttl_seconds)
    n = (
        db.query(StorageEntry)
        .filter(StorageEntry.updated_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    return n
