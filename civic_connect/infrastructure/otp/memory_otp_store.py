import threading
from typing import Dict, Optional

from ...application.ports.otp_store import OTPEntry, OTPStore


class InMemoryOTPStore(OTPStore):
    def __init__(self) -> None:
        self._store: Dict[str, OTPEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[OTPEntry]:
        with self._lock:
            return self._store.get(key)

    def put(self, key: str, entry: OTPEntry) -> None:
        with self._lock:
            self._store[key] = entry

    def consume(self, key: str, candidate: str, expired_before: float) -> bool:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return False
            if entry.issued_at <= expired_before:
                del self._store[key]
                return False
            if candidate != entry.code:
                return False
            del self._store[key]
            return True

    def sweep(self, expired_before: float) -> int:
        with self._lock:
            expired = [k for k, e in self._store.items() if e.issued_at <= expired_before]
            for key in expired:
                del self._store[key]
            return len(expired)

    def __len__(self) -> int:
        return len(self._store)
