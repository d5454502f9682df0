from __future__ import annotations

import pytest

from sdbsplits.utils.profiler import ProfileStats, profile_block


def test_profile_block_records_duration_and_memory() -> None:
    with profile_block("plan", sample_interval_ms=5) as stats:
        payload = [bytes(1024) for _ in range(256)]
        del payload

    assert stats.label == "plan"
    assert stats.duration_seconds >= 0
    assert stats.end_ts >= stats.start_ts
    assert stats.peak_rss_bytes is not None and stats.peak_rss_bytes > 0
    assert stats.cpu_percent is not None


def test_profile_block_finishes_stats_when_block_raises() -> None:
    with pytest.raises(RuntimeError):
        with profile_block("read") as stats:
            raise RuntimeError("boom")

    assert stats.duration_seconds >= 0
    assert stats.peak_rss_bytes is not None


def test_as_dict_rounds_floats() -> None:
    stats = ProfileStats(label="read", start_ts=1.23456, end_ts=2.34567, duration_seconds=1.11111)

    data = stats.as_dict(decimals=2)

    assert data == {
        "label": "read",
        "start_ts": 1.23,
        "end_ts": 2.35,
        "duration_seconds": 1.11,
        "peak_rss_bytes": None,
        "cpu_percent": None,
    }
