from .base import BaseRepository
from .organization import OrganizationRepository
from .user import UserRepository

__all__ = [
    "BaseRepository",
    "OrganizationRepository",
    "UserRepository",
]
