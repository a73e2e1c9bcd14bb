"""
Repositories - data access layer.

Fare persistence is reached only through the FareStore contract so the
lifecycle logic can run against Supabase, memory, or a test double.
"""

from .base import BaseRepository
from .fare import Fare, FareStatus, FareType, FareStore, SupabaseFareRepository
from .memory import InMemoryFareRepository

__all__ = [
    "BaseRepository",
    "Fare",
    "FareStatus",
    "FareType",
    "FareStore",
    "SupabaseFareRepository",
    "InMemoryFareRepository",
]
