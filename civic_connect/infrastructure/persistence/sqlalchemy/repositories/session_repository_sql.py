from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from .....application.ports.session_repo import SessionDto, SessionRepository
from .....db.models import UserSession
from .....utils import as_utc


class SqlSessionRepository(SessionRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: UserSession) -> SessionDto:
        return SessionDto(
            id=rec.id,
            user_id=rec.user_id,
            token=rec.token,
            expires_at=as_utc(rec.expires_at),
            created_at=as_utc(rec.created_at),
        )

    def create(self, user_id: str, token: str, expires_at: datetime) -> SessionDto:
        rec = UserSession(user_id=user_id, token=token, expires_at=expires_at)
        self.session.add(rec)
        self.session.commit()
        self.session.refresh(rec)
        return self._to_dto(rec)

    def get_active(self, token: str, now: datetime) -> Optional[SessionDto]:
        rec = self.session.exec(
            select(UserSession).where(UserSession.token == token, UserSession.expires_at > now)
        ).first()
        return self._to_dto(rec) if rec else None

    def delete(self, token: str) -> int:
        records = self.session.exec(select(UserSession).where(UserSession.token == token)).all()
        for rec in records:
            self.session.delete(rec)
        self.session.commit()
        return len(records)
