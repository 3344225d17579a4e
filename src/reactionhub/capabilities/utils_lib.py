"""utilslib: randomness, table and string helpers, tick-based date/time math.

Tick values are integer 100ns units since 1970-01-01. getcurrenttimeutc()
counts from the UTC epoch; getcurrenttime() counts local wall-clock time the
same way, so format/components helpers read it back as local time.
"""

from __future__ import annotations

import json
import random
import string
import time
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

from reactionhub.core.reaction import TICKS_PER_SECOND, unix_ticks

CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_EPOCH = datetime(1970, 1, 1)
_TICKS_PER_MS = TICKS_PER_SECOND // 1000


def ticks_to_datetime(ticks: int) -> datetime:
    return _EPOCH + timedelta(microseconds=int(ticks) // 10)


def datetime_to_ticks(value: datetime) -> int:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return ((value - _EPOCH) // timedelta(microseconds=1)) * 10


def _values(table: object) -> list[object]:
    if isinstance(table, Mapping):
        return list(table.values())
    if isinstance(table, (list, tuple)):
        return list(table)
    raise TypeError(f"expected a table, got {type(table).__name__}")


class UtilsLib:
    def __init__(self, rng: random.Random | None = None) -> None:
        self._random = rng or random.Random()

    # ─── Random ───────────────────────────────────────────────────────────

    def randomnumber(self, minimum: int, maximum: int) -> int:
        """Integer in [minimum, maximum); minimum when the range is empty."""
        minimum, maximum = int(minimum), int(maximum)
        if maximum <= minimum:
            return minimum
        return self._random.randrange(minimum, maximum)

    def randomdouble(self, minimum: float, maximum: float) -> float:
        return (maximum - minimum) * self._random.random() + minimum

    def randomstring(self, length: int) -> str:
        if length <= 0:
            return ""
        return "".join(self._random.choices(CHARS, k=int(length)))

    def randomposition(self, minx: int, maxx: int, miny: int, maxy: int) -> dict[str, int]:
        return {"X": self.randomnumber(minx, maxx), "Y": self.randomnumber(miny, maxy)}

    def delay(self, ms: int) -> None:
        """Block the calling script for ms milliseconds."""
        if ms > 0:
            time.sleep(ms / 1000.0)

    # ─── Tables ───────────────────────────────────────────────────────────

    def isarray(self, table: object) -> bool:
        return isinstance(table, (list, tuple)) and len(table) > 0

    def istableempty(self, table: object) -> bool:
        return len(_values(table)) == 0

    def tablecontains(self, table: object, value: object) -> bool:
        return value in _values(table)

    def tablerandom(self, table: object) -> object:
        values = _values(table)
        return self._random.choice(values) if values else None

    def tablecopy(self, table: object) -> dict | list:
        if isinstance(table, Mapping):
            return dict(table)
        return _values(table)

    def tableshuffle(self, table: object) -> dict | list:
        result = self.tablecopy(table)
        if isinstance(result, list):
            self._random.shuffle(result)
        return result

    def tablejoin(self, table: object, sep: str = ", ") -> str:
        if isinstance(table, Mapping):
            return sep.join(f"[{k}]: {v}" for k, v in table.items())
        return sep.join(str(v) for v in _values(table))

    def tabletojson(self, table: object) -> str:
        return json.dumps(table, default=str)

    # ─── Strings ──────────────────────────────────────────────────────────

    def stringsplit(self, text: str, delim: str = " ") -> list[str]:
        trimmed = str(text).strip()
        if not trimmed:
            return []
        return [part.strip() for part in trimmed.split(delim or " ") if part.strip()]

    def stringfmt(self, template: str, table: object) -> str:
        """Positional format: stringfmt("{0} has {1}", ["alice", 3])."""
        return str(template).format(*_values(table))

    # ─── Date/time ────────────────────────────────────────────────────────

    def getcurrenttime(self) -> int:
        return datetime_to_ticks(datetime.now())

    def getcurrenttimeutc(self) -> int:
        return unix_ticks()

    def formatdatetime(self, ticks: int, fmt: str = DEFAULT_DATETIME_FORMAT) -> str:
        try:
            return ticks_to_datetime(ticks).strftime(fmt)
        except (OverflowError, ValueError, TypeError):
            return ""

    def formatdatetimeutc(self, ticks: int, fmt: str = DEFAULT_DATETIME_FORMAT) -> str:
        try:
            return ticks_to_datetime(ticks).replace(tzinfo=timezone.utc).strftime(fmt)
        except (OverflowError, ValueError, TypeError):
            return ""

    def parsedatetime(self, text: str) -> int | None:
        """ISO 8601 text to ticks; None when it does not parse."""
        try:
            return datetime_to_ticks(datetime.fromisoformat(str(text).strip()))
        except ValueError:
            return None

    def getdatetimecomponents(self, ticks: int) -> dict[str, int]:
        dt = ticks_to_datetime(ticks)
        return {
            "Year": dt.year,
            "Month": dt.month,
            "Day": dt.day,
            "Hour": dt.hour,
            "Minute": dt.minute,
            "Second": dt.second,
            "Millisecond": dt.microsecond // 1000,
            # Sunday = 0
            "DayOfWeek": (dt.weekday() + 1) % 7,
            "DayOfYear": dt.timetuple().tm_yday,
        }

    def gettimedifference(self, ticks1: int, ticks2: int) -> int:
        return abs(int(ticks2) - int(ticks1))

    def gettimedifferencecomponents(self, ticks1: int, ticks2: int) -> dict[str, int | float]:
        """Components of ticks2 - ticks1; every component carries the sign."""
        diff = int(ticks2) - int(ticks1)
        sign = -1 if diff < 0 else 1
        remaining_ms, _ = divmod(abs(diff), _TICKS_PER_MS)
        rest_s, ms = divmod(remaining_ms, 1000)
        rest_m, seconds = divmod(rest_s, 60)
        rest_h, minutes = divmod(rest_m, 60)
        days, hours = divmod(rest_h, 24)
        total_seconds = diff / TICKS_PER_SECOND
        return {
            "Days": sign * days,
            "Hours": sign * hours,
            "Minutes": sign * minutes,
            "Seconds": sign * seconds,
            "Milliseconds": sign * ms,
            "TotalSeconds": total_seconds,
            "TotalMinutes": total_seconds / 60,
            "TotalHours": total_seconds / 3600,
            "TotalDays": total_seconds / 86400,
        }

    def addseconds(self, ticks: int, seconds: float) -> int:
        return int(ticks) + round(seconds * TICKS_PER_SECOND)

    def addminutes(self, ticks: int, minutes: float) -> int:
        return self.addseconds(ticks, minutes * 60)

    def addhours(self, ticks: int, hours: float) -> int:
        return self.addseconds(ticks, hours * 3600)

    def adddays(self, ticks: int, days: float) -> int:
        return self.addseconds(ticks, days * 86400)

    def isafter(self, ticks1: int, ticks2: int) -> bool:
        return ticks1 > ticks2

    def isbefore(self, ticks1: int, ticks2: int) -> bool:
        return ticks1 < ticks2
