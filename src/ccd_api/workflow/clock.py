"""Clock collaborator. The workflow never reads the wall clock directly."""

from datetime import datetime
from datetime import timezone


class Clock:
    """Timezone-aware UTC clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant, moved forward explicitly."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, delta) -> None:
        self.instant = self.instant + delta
