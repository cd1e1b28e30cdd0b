# Models package (re-export feature modules for stable imports)
from .users.user import User
from .users.session import UserSession

__all__ = [
    "User",
    "UserSession",
]
