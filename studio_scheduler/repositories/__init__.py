"""
Repository layer for the studio scheduler.

Repositories encapsulate all database queries and never commit;
transaction boundaries belong to the service layer.
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .factory import RepositoryFactory

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "ConflictCheckerRepository",
    "IRepository",
    "RepositoryFactory",
]
