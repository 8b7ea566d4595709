from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(slots=True, frozen=True)
class DayMood:
    """Mood label and symbol picked for a day."""

    mood: str
    emoji: str

    def as_payload(self) -> dict[str, str]:
        return {"mood": self.mood, "emoji": self.emoji}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DayMood":
        mood = payload.get("mood")
        emoji = payload.get("emoji")
        if not isinstance(mood, str) or not isinstance(emoji, str):
            raise ValueError("mood payload requires string 'mood' and 'emoji'")
        return cls(mood=mood, emoji=emoji)


DEFAULT_MOOD = DayMood(mood="How are you feeling today?", emoji="😊")


@dataclass(slots=True, frozen=True)
class DayMetadata:
    """Display-only attributes held next to an entry in the local cache."""

    mood: DayMood | None = None
    music: str | None = None


@dataclass(slots=True, frozen=True)
class HistoryItem:
    date: str
    content: str
    preview: str
    mood: str
    emoji: str
    music: str | None
    source: str
