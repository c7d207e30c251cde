from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..entities import DailyBucket, HourlySample


MAX_DAYS = 5
HOURLY_WINDOW_HOURS = 72
DEFAULT_CADENCE_HOURS = 3


def local_date(sample: HourlySample, tz: tzinfo) -> date:
    return datetime.fromtimestamp(sample.dt, tz=tz).date()


def group_by_day(
    hourly: Iterable[HourlySample],
    tz: Optional[tzinfo] = None,
    max_days: int = MAX_DAYS,
) -> Tuple[DailyBucket, ...]:
    """Group the forecast series into per-day buckets.

    Buckets keep the order in which their dates first appear in the series;
    dates are never sorted. The representative icon and description come from
    the middle sample ``samples[len // 2]``. The mean temperature keeps full
    precision.
    """
    tz = tz or timezone.utc
    grouped: Dict[date, List[HourlySample]] = {}
    for sample in hourly:
        grouped.setdefault(local_date(sample, tz), []).append(sample)

    buckets: List[DailyBucket] = []
    for key, samples in list(grouped.items())[:max_days]:
        middle = samples[len(samples) // 2]
        temps = [sample.temp_raw for sample in samples]
        buckets.append(
            DailyBucket(
                date_key=key,
                day_label=key.strftime("%a"),
                date_label=f"{key.strftime('%b')} {key.day}",
                representative_icon=middle.weather.icon_code,
                representative_description=middle.weather.description,
                mean_temp=sum(temps) / len(temps),
                samples=tuple(samples),
            )
        )
    return tuple(buckets)


def next_hours(
    hourly: Sequence[HourlySample],
    window_hours: int = HOURLY_WINDOW_HOURS,
    cadence_hours: int = DEFAULT_CADENCE_HOURS,
) -> Tuple[HourlySample, ...]:
    """The leading samples covering ``window_hours`` of the series, for charts."""
    if cadence_hours <= 0:
        raise ValueError("cadence_hours must be positive")
    return tuple(hourly[: max(window_hours // cadence_hours, 1)])


def offset_timezone(utc_offset_seconds: int) -> tzinfo:
    return timezone(timedelta(seconds=utc_offset_seconds))


__all__ = ["group_by_day", "local_date", "next_hours", "offset_timezone"]
