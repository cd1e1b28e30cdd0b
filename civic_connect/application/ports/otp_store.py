from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class OTPEntry:
    code: str
    issued_at: float


class OTPStore(Protocol):
    def get(self, key: str) -> Optional[OTPEntry]:
        ...

    def put(self, key: str, entry: OTPEntry) -> None:
        ...

    def consume(self, key: str, candidate: str, expired_before: float) -> bool:
        """Atomically delete the entry if ``candidate`` matches and it is still live.

        An entry issued at or before ``expired_before`` is deleted and fails.
        A wrong candidate leaves a live entry in place.
        """
        ...

    def sweep(self, expired_before: float) -> int:
        """Drop entries issued at or before the cutoff; returns how many."""
        ...
