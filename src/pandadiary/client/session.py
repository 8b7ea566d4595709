from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from pandadiary.client.identity import DeviceIdentityProvider


@dataclass(slots=True)
class DiarySession:
    """Per-client context: who is writing, which day is open, and connectivity.

    Built once and handed to the controller and history aggregator; separate
    sessions do not share any of this state.
    """

    identity: DeviceIdentityProvider
    online: bool = True
    current_date: date = field(default_factory=date.today)

    @property
    def date_key(self) -> str:
        return self.current_date.isoformat()

    def navigate(self, days: int) -> str:
        """Move the open day by ``days`` and return its key."""

        self.current_date = self.current_date + timedelta(days=days)
        return self.date_key
