from __future__ import annotations
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class VisibilityWindow:
    """
    Dispute delay in front of the official boards.

    A record dated after ``today - delay_days`` is *pending*: it only shows
    on the provisional board. Everything else is *settled*. A window built
    with ``enabled=False`` (league completed) settles everything.
    """
    today: date
    delay_days: int = 2
    enabled: bool = True

    @classmethod
    def for_league(cls, today: date, league_status: str, delay_days: int) -> "VisibilityWindow":
        return cls(today=today, delay_days=delay_days, enabled=league_status != "completed")

    @property
    def cutoff(self) -> date:
        return self.today - timedelta(days=self.delay_days)

    def is_pending(self, d: date) -> bool:
        return self.enabled and self.delay_days > 0 and d > self.cutoff

    def split(self, records: Iterable[T], date_of: Callable[[T], date]) -> tuple[list[T], list[T]]:
        settled: list[T] = []
        pending: list[T] = []
        for r in records:
            (pending if self.is_pending(date_of(r)) else settled).append(r)
        return settled, pending

    @property
    def pending_dates(self) -> list[date]:
        """Days shown on the provisional board, newest first (today, today-1, ...)."""
        if not self.enabled:
            return []
        return [self.today - timedelta(days=i) for i in range(self.delay_days)]
