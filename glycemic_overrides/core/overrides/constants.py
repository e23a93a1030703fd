"""Temporary override time constants."""

from datetime import UTC, datetime, timedelta
from typing import Final, Literal

# End date of an indefinite override. Compares greater than every real
# timestamp; never add to it.
DISTANT_FUTURE: Final[datetime] = datetime.max.replace(tzinfo=UTC)

# Smallest step between two distinct datetimes. Truncating an override to
# one step before its successor starts keeps the two intervals apart.
TIMESTAMP_RESOLUTION: Final[timedelta] = timedelta(microseconds=1)

IndefiniteDuration = Literal["indefinite"]

INDEFINITE: Final[IndefiniteDuration] = "indefinite"
