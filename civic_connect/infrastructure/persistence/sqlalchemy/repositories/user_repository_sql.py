import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....application.ports.user_repo import UserDto, UserRepository
from .....db.models import User
from .....exceptions import ConflictError, UserAlreadyExistsError
from .....utils import as_utc, utcnow

logger = logging.getLogger(__name__)


def _to_dto(user: User) -> UserDto:
    dto = UserDto.from_record(user)
    dto.created_at = as_utc(dto.created_at)
    dto.updated_at = as_utc(dto.updated_at)
    return dto


class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _get(self, user_id: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.id == user_id)).first()

    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.phone_number == phone_number)).first()
        return _to_dto(user) if user else None

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        user = self._get(user_id)
        return _to_dto(user) if user else None

    def create(self, phone_number: str) -> UserDto:
        user = User(phone_number=phone_number)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("User create rejected by the unique phone_number constraint")
            raise UserAlreadyExistsError()
        self.session.refresh(user)
        return _to_dto(user)

    def update_fields(self, user_id: str, values: Dict[str, Any]) -> Optional[UserDto]:
        user = self._get(user_id)
        if not user:
            return None
        if not values:
            return _to_dto(user)
        for key, value in values.items():
            setattr(user, key, value)
        user.updated_at = utcnow()
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.warning(f"Profile update for {user_id} violates a unique constraint")
            raise ConflictError("Email is already registered to another account")
        self.session.refresh(user)
        return _to_dto(user)

    def update_language(self, user_id: str, language: str) -> bool:
        user = self._get(user_id)
        if not user:
            return False
        user.language = language
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()
        return True
