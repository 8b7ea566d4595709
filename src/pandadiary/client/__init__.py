"""Offline-first diary client."""

from .diary import DiaryClient
from .history import HistoryAggregator
from .identity import DeviceIdentityProvider
from .local_cache import LocalCache
from .models import DEFAULT_MOOD, DayMetadata, DayMood, HistoryItem
from .pulse import SyncPulse
from .session import DiarySession
from .store_client import EntryStoreClient, Outcome, StoreResult
from .sync import ReconciliationController, ReplayReport, SaveReport, SaveStatus

__all__ = [
    "DiaryClient",
    "HistoryAggregator",
    "DeviceIdentityProvider",
    "LocalCache",
    "DEFAULT_MOOD",
    "DayMetadata",
    "DayMood",
    "HistoryItem",
    "SyncPulse",
    "DiarySession",
    "EntryStoreClient",
    "Outcome",
    "StoreResult",
    "ReconciliationController",
    "ReplayReport",
    "SaveReport",
    "SaveStatus",
]
