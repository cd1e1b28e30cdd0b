from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class SessionDto:
    id: str
    user_id: str
    token: str
    expires_at: datetime
    created_at: datetime


class SessionRepository(Protocol):
    def create(self, user_id: str, token: str, expires_at: datetime) -> SessionDto:
        ...

    def get_active(self, token: str, now: datetime) -> Optional[SessionDto]:
        """Session with this exact token whose expires_at is after now."""
        ...

    def delete(self, token: str) -> int:
        ...
