"""Presentation helpers for conversion and preview results.

Pure functions; no state. `None` always renders as `"-"`.
"""

from __future__ import annotations

import math
import time
from datetime import datetime

from core.domain.language import Language, message
from core.domain.models import SubscriptionInfo


BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")
SECONDS_PER_DAY = 86400
COUNTDOWN_DAYS = 7


def format_bytes(value: int | float | None) -> str:
    """Render a byte count with the largest unit not exceeding it.

    Examples: `0 -> "0 B"`, `1536 -> "1.50 KB"`.
    """

    if value is None:
        return "-"
    if value == 0:
        return "0 B"

    magnitude = abs(value)
    index = math.floor(math.log(magnitude, 1024)) if magnitude >= 1 else 0
    # Floating point log can land on either side of an exact power of 1024.
    if magnitude >= 1024 ** (index + 1):
        index += 1
    elif index > 0 and magnitude < 1024 ** index:
        index -= 1
    index = max(0, min(index, len(BYTE_UNITS) - 1))
    return f"{value / 1024 ** index:.2f} {BYTE_UNITS[index]}"


def _format_date(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")


def format_expire(
    timestamp: int | None,
    *,
    now: float | None = None,
    language: Language = Language.ENGLISH,
) -> str:
    """Render an expiry timestamp as a countdown or a date.

    Rules:
    - `0` means the subscription never expires.
    - Past timestamps render as expired, annotated with the date.
    - Within a week the number of whole days left is shown with the date.
    """

    if timestamp is None:
        return "-"
    if timestamp == 0:
        return message("never_expires", language)

    current = time.time() if now is None else now
    date = _format_date(timestamp)
    if timestamp < current:
        return f"{message('expired', language)} ({date})"

    days = int((timestamp - current) // SECONDS_PER_DAY)
    if days == 0:
        return message("expires_today", language)
    if days <= COUNTDOWN_DAYS:
        return f"{message('days_left', language, days=days)} ({date})"
    return date


def has_quota_info(info: SubscriptionInfo | None) -> bool:
    """Whether any quota UI should be shown at all."""

    if info is None:
        return False
    return info.total is not None or info.expire is not None


def usage_percentage(info: SubscriptionInfo | None) -> int | None:
    """Used traffic as a whole percentage of the allowance, clamped to 0..100.

    Returns `None` (render nothing) when there is no positive `total`.
    """

    if info is None or not info.total:
        return None
    used = (info.upload or 0) + (info.download or 0)
    percent = round(100 * used / info.total)
    return max(0, min(100, percent))
