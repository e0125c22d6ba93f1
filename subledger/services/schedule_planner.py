"""Coverage window and next-cycle planning for monthly subscriptions."""

import random
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from subledger.core.config import settings
from subledger.models.shared import as_utc

COVERAGE_DAYS = 30
GRACE_DAYS = 1
RENEWAL_HOUR = 10


def resolve_timezone(name: str) -> tzinfo:
    """Map a configured timezone name to a tzinfo."""
    if name.upper() == "UTC":
        return UTC
    return ZoneInfo(name)


@dataclass(frozen=True)
class SchedulePlan:
    """Coverage window for a charge plus the reservation for the next one."""

    start_at: datetime
    end_at: datetime
    end_grace_at: datetime
    next_schedule_at: datetime
    next_schedule_id: str


class SchedulePlanner:
    """Pure planner; no I/O.

    Next-cycle attempts land on the day after coverage ends, at a random
    minute between 10:00 and 10:59 in ``tz``, so renewals falling on the
    same day do not all hit the gateway at once.
    """

    def __init__(self, rng: random.Random | None = None, tz: tzinfo = UTC):
        self.rng = rng or random.SystemRandom()
        self.tz = tz

    def plan(self, now: datetime) -> SchedulePlan:
        start_at = as_utc(now)
        end_at = start_at + timedelta(days=COVERAGE_DAYS)
        end_grace_at = start_at + timedelta(days=COVERAGE_DAYS + GRACE_DAYS)

        renewal_day = (end_at + timedelta(days=1)).astimezone(self.tz)
        next_schedule_at = renewal_day.replace(
            hour=RENEWAL_HOUR,
            minute=self.rng.randint(0, 59),
            second=0,
            microsecond=0,
        )

        return SchedulePlan(
            start_at=start_at,
            end_at=end_at,
            end_grace_at=end_grace_at,
            next_schedule_at=next_schedule_at.astimezone(UTC),
            next_schedule_id=self._new_schedule_id(),
        )

    def _new_schedule_id(self) -> str:
        return str(uuid.UUID(int=self.rng.getrandbits(128), version=4))


def get_schedule_planner() -> SchedulePlanner:
    """FastAPI dependency returning a planner in the configured renewal timezone."""
    return SchedulePlanner(tz=resolve_timezone(settings.RENEWAL_TIMEZONE))
