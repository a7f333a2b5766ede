"""
Derived views over the resolved visit set.

All pure functions, recomputed from the current set on every call.
"""

import math
from typing import Iterable, Sequence

from .types import DurationBar, Visit, VisitStats

# Chart scale never drops below one hour
MIN_CHART_SCALE = 60


def total_duration(visits: Iterable[Visit]) -> int:
    return sum(v.duration for v in visits)


def average_duration(durations: Sequence[int]) -> int:
    """Mean of the durations rounded half up; 0 for an empty sequence."""
    if not durations:
        return 0
    return math.floor(sum(durations) / len(durations) + 0.5)


def compute_stats(visits: Sequence[Visit]) -> VisitStats:
    durations = [v.duration for v in visits]
    return VisitStats(
        count=len(visits),
        total_duration=sum(durations),
        average_duration=average_duration(durations),
    )


def filter_visits(visits: Iterable[Visit], term: str) -> list[Visit]:
    """Visits whose audio guide or visitor contains ``term``, ignoring case.

    An empty term matches everything.
    """
    needle = term.lower()
    return [
        v for v in visits
        if needle in v.audio_guide.lower() or needle in v.visitor.lower()
    ]


def recent_durations(visits: Sequence[Visit], limit: int = 5) -> list[DurationBar]:
    """Bars for the first ``limit`` visits, scaled against the longest visit."""
    scale = max([v.duration for v in visits] + [MIN_CHART_SCALE])
    return [
        DurationBar(label=f"#{v.short_id}", duration=v.duration, ratio=v.duration / scale)
        for v in visits[:limit]
    ]
