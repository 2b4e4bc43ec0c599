from research_core.models.organization import Organization
from research_core.models.user import User

__all__ = [
    "Organization",
    "User",
]
