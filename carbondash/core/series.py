"""Merge raw intensity series into chart samples and pick the one nearest now."""
from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

from carbondash.core.abstractions import IntensitySample, IntensitySeries
from carbondash.core.errors import EmptySeries, MalformedResponse

DISPLAY_TIME_ZONE = ZoneInfo("Europe/London")


def parse_instant(value: str) -> datetime:
    """Parse an upstream ISO 8601 timestamp into an aware UTC datetime."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError) as exc:
        raise MalformedResponse(f"Unrecognised timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def display_label(instant: datetime, tz: tzinfo = DISPLAY_TIME_ZONE) -> str:
    """en-GB style chart label, e.g. ``"1 Jan, 00:00"``."""
    local = instant.astimezone(tz)
    return f"{local.day} {local:%b}, {local:%H:%M}"


def merge_series(
    primary: Mapping[str, Optional[float]],
    secondary: Optional[Mapping[str, Optional[float]]] = None,
    *,
    tz: tzinfo = DISPLAY_TIME_ZONE,
) -> IntensitySeries:
    """Pair ``primary`` with ``secondary`` on identical timestamp keys.

    A pair is dropped when the primary value is missing, or when a secondary
    series was supplied but has no value for that key. Without a secondary
    series every primary sample survives with a ``None`` national value.
    The result is ordered by instant, never by label.
    """
    lookup = dict(secondary) if secondary is not None else None

    pairs: List[Tuple[datetime, str, float, Optional[float]]] = []
    for timestamp, local in primary.items():
        if local is None:
            continue
        national = None
        if lookup is not None:
            national = lookup.get(timestamp)
            if national is None:
                continue
        pairs.append((parse_instant(timestamp), timestamp, local, national))

    pairs.sort(key=lambda pair: pair[0])
    return tuple(
        IntensitySample(
            timestamp_iso=timestamp,
            local_intensity=local,
            national_intensity=national,
            display_label=display_label(instant, tz),
        )
        for instant, timestamp, local, national in pairs
    )


def select_nearest(series: IntensitySeries, now: datetime) -> IntensitySample:
    """Return the sample closest to ``now``; ties go to the earliest sample."""
    if not series:
        raise EmptySeries("No carbon intensity data available to generate tips. Please fetch data first.")
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return min(series, key=lambda sample: abs(parse_instant(sample.timestamp_iso) - now))


__all__ = ["merge_series", "select_nearest", "parse_instant", "display_label", "DISPLAY_TIME_ZONE"]
