"""
Unit tests for services.stats (StatsAggregator / summarize).
"""
import datetime as dt
import uuid

import pytest

from netscan.services.stats import summarize
from netscan.storage.base import HistoryRecord


pytestmark = pytest.mark.asyncio

OWNER = "owner-a"
NOW = dt.datetime(2026, 3, 1, 12, 0, tzinfo=dt.timezone.utc)


def _record(score=50, download=10.0, upload=5.0, ping=20, jitter=2, loss=0.0, age_days=0.0) -> HistoryRecord:
    return HistoryRecord(
        id=str(uuid.uuid4()),
        owner_id=OWNER,
        download_speed=download,
        upload_speed=upload,
        ping=ping,
        jitter=jitter,
        packet_loss=loss,
        network_score=score,
        timestamp=NOW - dt.timedelta(days=age_days),
    )


async def test_no_records_means_no_stats(stats):
    assert await stats.compute_stats(OWNER) is None


async def test_score_aggregates(stats, history, observation):
    for score in (50, 70, 90):
        await history.append(OWNER, observation(networkScore=score))

    result = await stats.compute_stats(OWNER)
    assert result.avg_score == 70.0
    assert result.best_score == 90
    assert result.worst_score == 50
    assert result.total_tests == 3


async def test_means_maxima_and_minima(stats, history, observation):
    await history.append(OWNER, observation(downloadSpeed=100.0, uploadSpeed=10.0, ping=30, jitter=5, packetLoss=1.0))
    await history.append(OWNER, observation(downloadSpeed=50.0, uploadSpeed=20.5, ping=11, jitter=2, packetLoss=0.0))

    result = await stats.compute_stats(OWNER)
    assert result.avg_download == 75.0
    assert result.avg_upload == 15.25
    assert result.max_download == 100.0
    assert result.max_upload == 20.5
    assert result.avg_ping == 21  # 20.5 rounds half-up
    assert result.min_ping == 11
    assert result.avg_jitter == 4  # 3.5 rounds half-up
    assert result.avg_packet_loss == 0.5
    assert isinstance(result.avg_ping, int)


async def test_precision_per_field():
    result = summarize([
        _record(download=10.004, score=33),
        _record(download=10.0, score=33),
        _record(download=10.0, score=34),
    ], now=NOW)
    assert result.avg_download == 10.0
    assert result.avg_score == 33.3


async def test_recent_window_and_bounds():
    records = [
        _record(age_days=0.5),
        _record(age_days=6.9),
        _record(age_days=7.5),
        _record(age_days=30),
    ]
    result = summarize(records, now=NOW)
    assert result.tests_last_7_days == 2
    assert result.last_tested_at == NOW - dt.timedelta(days=0.5)
    assert result.first_tested_at == NOW - dt.timedelta(days=30)


async def test_stats_follow_eviction(storage, observation):
    from netscan.services.history import HistoryStore
    from netscan.services.stats import StatsAggregator

    history = HistoryStore(storage, max_records=2)
    aggregator = StatsAggregator(history)
    for score in (10, 60, 80):
        await history.append(OWNER, observation(networkScore=score))

    result = await aggregator.compute_stats(OWNER)
    assert result.total_tests == 2
    assert result.worst_score == 60


async def test_stats_are_owner_scoped(stats, history, observation):
    await history.append(OWNER, observation(networkScore=10))
    await history.append("someone-else", observation(networkScore=99))

    result = await stats.compute_stats(OWNER)
    assert result.total_tests == 1
    assert result.best_score == 10
