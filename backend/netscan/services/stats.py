"""
Stats Aggregator

Summary numbers over one owner's history. Every figure comes from the same
snapshot, so a concurrent append/evict can't make the average and the count
disagree.
"""
import datetime as dt
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from netscan.storage.base import HistoryRecord
from .history import HistoryStore

RECENT_WINDOW = dt.timedelta(days=7)


def _mean(values: Sequence[float], digits: int):
    """Arithmetic mean rounded half-up; digits=0 gives an int"""
    avg = Decimal(str(sum(values))) / Decimal(len(values))
    quantum = Decimal(1).scaleb(-digits)
    rounded = avg.quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


@dataclass
class HistoryStats:
    total_tests: int
    avg_download: float
    avg_upload: float
    avg_ping: int
    avg_jitter: int
    avg_packet_loss: float
    avg_score: float
    max_download: float
    max_upload: float
    min_ping: int
    best_score: int
    worst_score: int
    tests_last_7_days: int
    last_tested_at: dt.datetime
    first_tested_at: dt.datetime


def summarize(records: Sequence[HistoryRecord], now: Optional[dt.datetime] = None) -> Optional[HistoryStats]:
    """Pure reduction over a newest-first record list"""
    if not records:
        return None
    now = now or dt.datetime.now(dt.timezone.utc)
    since = now - RECENT_WINDOW
    downloads = [r.download_speed for r in records]
    uploads = [r.upload_speed for r in records]
    pings = [r.ping for r in records]
    scores = [r.network_score for r in records]
    return HistoryStats(
        total_tests=len(records),
        avg_download=_mean(downloads, 2),
        avg_upload=_mean(uploads, 2),
        avg_ping=_mean(pings, 0),
        avg_jitter=_mean([r.jitter for r in records], 0),
        avg_packet_loss=_mean([r.packet_loss for r in records], 2),
        avg_score=_mean(scores, 1),
        max_download=max(downloads),
        max_upload=max(uploads),
        min_ping=min(pings),
        best_score=max(scores),
        worst_score=min(scores),
        tests_last_7_days=sum(1 for r in records if r.timestamp > since),
        last_tested_at=max(r.timestamp for r in records),
        first_tested_at=min(r.timestamp for r in records),
    )


class StatsAggregator:
    def __init__(self, history: HistoryStore):
        self.history = history

    async def compute_stats(self, owner_id: str, now: Optional[dt.datetime] = None) -> Optional[HistoryStats]:
        """None when the owner has no records"""
        records = await self.history.snapshot(owner_id)
        return summarize(records, now=now)
