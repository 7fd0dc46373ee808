# =============================================================================
# core/timestamps.py - Timestamp normalization
# =============================================================================

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple


FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)
INT64_MAX = 2 ** 63 - 1

_INTEGER_PATTERN = re.compile(r"\s*[+-]?\d+\s*")
_ISO_EXTENDED_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}")

DEFAULT_DATE_FORMATS: Tuple[str, ...] = (
    "%Y%m%d%H%M%S.0Z",         # generalized time as returned for whenCreated
    "%Y%m%d%H%M%SZ",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%d.%m.%Y %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
)

# month-first slash forms read by the invariant parse before the explicit list
INVARIANT_SLASH_FORMATS: Tuple[str, ...] = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimestampFormats:
    """Parsing configuration for textual dates"""
    patterns: Tuple[str, ...] = DEFAULT_DATE_FORMATS
    general_parse: bool = True
    invariant_patterns: Tuple[str, ...] = INVARIANT_SLASH_FORMATS


class TimestampNormalizer:
    """Converts directory timestamp encodings to aware UTC datetimes or None"""

    def __init__(self, formats: Optional[TimestampFormats] = None):
        self.formats = formats or TimestampFormats()

    def from_file_time(self, raw: Any) -> Optional[datetime]:
        """
        Convert a Windows file-time tick count (100ns since 1601-01-01 UTC).

        Zero and negative values mean "never" / "not set" and give None, as
        does anything that is not a signed 64-bit integer.
        """
        if raw is None or isinstance(raw, bool):
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")

        if isinstance(raw, int):
            ticks = raw
        else:
            text = str(raw)
            if not _INTEGER_PATTERN.fullmatch(text):
                return None
            ticks = int(text)

        if ticks <= 0 or ticks > INT64_MAX:
            return None

        try:
            return FILETIME_EPOCH + timedelta(microseconds=ticks // 10)
        except OverflowError:
            logger.debug(f"File time {ticks} is outside the supported date range")
            return None

    def from_general_date(self, raw: Any) -> Optional[datetime]:
        """Convert a structured or textual date, trying each configured format in turn"""
        if raw is None:
            return None
        if isinstance(raw, datetime):
            return raw
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")

        text = str(raw).strip()
        if not text:
            return None

        parsed = None
        if self.formats.general_parse:
            parsed = self._general_parse(text)

        if parsed is None:
            for pattern in self.formats.patterns:
                try:
                    parsed = datetime.strptime(text, pattern)
                    break
                except ValueError:
                    continue

        if parsed is None:
            logger.debug(f"Unrecognized date value: {text!r}")
            return None

        try:
            return _as_utc(parsed)
        except (OverflowError, ValueError):
            logger.debug(f"Date value {text!r} is outside the supported range in UTC")
            return None

    def _general_parse(self, text: str) -> Optional[datetime]:
        """Invariant parse: ISO-8601 extended forms, then month-first slash dates"""
        if _ISO_EXTENDED_PREFIX.match(text):
            try:
                return datetime.fromisoformat(text)
            except ValueError:
                return None

        for pattern in self.formats.invariant_patterns:
            try:
                return datetime.strptime(text, pattern)
            except ValueError:
                continue
        return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


_default_normalizer = TimestampNormalizer()


def from_file_time(raw: Any) -> Optional[datetime]:
    return _default_normalizer.from_file_time(raw)


def from_general_date(raw: Any) -> Optional[datetime]:
    return _default_normalizer.from_general_date(raw)


def format_timestamp(value: Optional[datetime]) -> str:
    """Render a timestamp as ISO-8601 UTC, or blank when unknown"""
    if value is None:
        return ""
    return _as_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")
