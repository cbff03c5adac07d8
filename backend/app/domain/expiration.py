"""Expiration policy for temporary articles."""

from datetime import datetime, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

from app.domain.exceptions import DomainValidationError


class TemporaryDuration(str, Enum):
    """Lifetimes a temporary article may be given."""

    HOURS_72 = "72h"
    ONE_WEEK = "1w"
    ONE_MONTH = "1m"


_OFFSETS: dict[TemporaryDuration, timedelta | relativedelta] = {
    TemporaryDuration.HOURS_72: timedelta(hours=72),
    TemporaryDuration.ONE_WEEK: timedelta(days=7),
    # relativedelta clamps Jan 31 + 1 month to the last day of February
    TemporaryDuration.ONE_MONTH: relativedelta(months=1),
}


def parse_duration(value: str | TemporaryDuration) -> TemporaryDuration:
    """Return the duration for *value* or raise DomainValidationError."""
    try:
        return TemporaryDuration(value)
    except ValueError:
        allowed = ", ".join(d.value for d in TemporaryDuration)
        raise DomainValidationError(
            f"Invalid duration: {value}. Must be one of: {allowed}",
            field="temporary_duration",
        ) from None


def compute_expires_at(duration: str | TemporaryDuration, now: datetime) -> datetime:
    """Absolute expiry instant for *duration* counted from *now*."""
    return now + _OFFSETS[parse_duration(duration)]
