from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..core.constants import ARRIVAL_BUCKET_LABELS
from .model import ArrivalBucket, Tally


def minutes_late(starts_at: datetime, arrived_at: datetime) -> float:
    return (arrived_at - starts_at).total_seconds() / 60


def bucket_label(minutes: float) -> str:
    on_time, up_to_10, up_to_20, over_20 = ARRIVAL_BUCKET_LABELS
    if minutes <= 0:
        return on_time
    if minutes <= 10:
        return up_to_10
    if minutes <= 20:
        return up_to_20
    return over_20


def bucketize_arrivals(starts_at: Optional[datetime], tallies: Iterable[Tally]) -> tuple[ArrivalBucket, ...]:
    """Count arrivals per lateness bucket using each tally's issued_at.

    Every tally with an issued_at counts, including one voided after it was
    handed out. Tallies never issued, and every tally of a program without a
    start time, are left out.
    """
    counts = {label: 0 for label in ARRIVAL_BUCKET_LABELS}
    if starts_at is not None:
        for t in tallies:
            if t.issued_at is None:
                continue
            counts[bucket_label(minutes_late(starts_at, t.issued_at))] += 1
    return tuple(ArrivalBucket(label=label, count=count) for label, count in counts.items())
