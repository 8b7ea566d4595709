from .entries import EntriesRepository

__all__ = ["EntriesRepository"]
