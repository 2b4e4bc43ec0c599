from .predicates import MatchAll, Predicate
from .service import AccessScopingService

__all__ = ["AccessScopingService", "MatchAll", "Predicate"]
