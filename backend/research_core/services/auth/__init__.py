from .service import AuthService
from .tokens import TokenLifecycleManager

__all__ = ["AuthService", "TokenLifecycleManager"]
