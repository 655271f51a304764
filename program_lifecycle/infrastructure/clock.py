"""System Clock — the production Clock port implementation.

Invariants:
    - now() is always timezone-aware UTC
"""

from datetime import datetime, timezone


class SystemClock:
    """Wall-clock time source."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
