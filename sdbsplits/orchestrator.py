"""
Job orchestration: plan a domain once, read every split in worker processes.

Usage (example from CLI):
    from sdbsplits.orchestrator import RunConfig, run_job

    summary = run_job(RunConfig(conf={"simpledb.domain": "events"}, processes=4))
    print(summary["rows_read"])

Each split travels to its worker in the serialized split format and the
worker builds its own reader and store client; nothing is shared between
splits. Outputs are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import json
import multiprocessing as mp
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, TypedDict

from sdbsplits.config import StoreConfig, get_settings
from sdbsplits.domain.models import Record, Split
from sdbsplits.errors import SplitReadError, SplitsError
from sdbsplits.planner import SplitPlanner
from sdbsplits.reader import SplitReader
from sdbsplits.utils.logging import configure_logging, get_logger
from sdbsplits.utils.profiler import profile_block

log = get_logger(__name__)

FailurePolicy = Literal["strict", "tolerant"]


class SplitOutcome(TypedDict, total=False):
    """
    Result of reading one split on a worker.

    ``error`` is None when the split was read completely.
    """

    index: int
    start_row: int
    end_row: int
    rows: int
    duration_seconds: float
    error: Optional[str]
    error_type: Optional[str]


@dataclass(frozen=True)
class WorkItem:
    index: int
    payload: bytes


@dataclass
class RunConfig:
    """
    Options for one ``run_job`` call.

    Attributes
    ----------
    conf : Mapping[str, str]
        Job configuration map shared by the planner and all workers.
    processes : int | None
        Worker processes. Defaults to settings.job_processes.
    timeout_seconds : float | None
        Upper bound for the whole fan-out. Defaults to settings.job_timeout_seconds.
    results_dir : Path | str
        Directory for the JSON run summary.
    persist : bool
        Whether to write the summary to disk.
    failure_policy : "strict" | "tolerant"
        strict raises once any split fails; tolerant records the failure and
        returns the summary.
    inline : bool
        Read splits one after another in this process instead of a pool.
    """

    conf: Mapping[str, str]
    processes: Optional[int] = None
    timeout_seconds: Optional[float] = None
    results_dir: Path | str = "results"
    persist: bool = True
    failure_policy: FailurePolicy = "strict"
    inline: bool = False


def drain_split(split: Split, conf: Mapping[str, str]) -> List[Record]:
    """Read every record of ``split`` in this process."""
    config = StoreConfig.from_mapping(conf)
    with SplitReader(split, config) as reader:
        return list(reader)


def _init_worker(level: str, json_logs: bool) -> None:
    configure_logging(level=level, json_logs=json_logs)


def _read_split(conf: Dict[str, str], work: WorkItem) -> SplitOutcome:
    """
    Worker function: deserialize one split, drain it, and report the count.

    Library errors are returned in the outcome rather than raised so one bad
    split does not hide the others from the summary.
    """
    start = time.perf_counter()
    outcome = SplitOutcome(index=work.index, rows=0, error=None, error_type=None)
    try:
        split = Split.from_bytes(work.payload)
        outcome["start_row"] = split.start_row
        outcome["end_row"] = split.end_row
        config = StoreConfig.from_mapping(conf)
        with SplitReader(split, config) as reader:
            slot = reader.create_slot()
            while reader.next(slot):
                outcome["rows"] += 1
    except SplitsError as exc:
        log.error("Split %d failed: %s", work.index, exc, extra={"split_index": work.index})
        outcome["rows"] = 0
        outcome["error"] = str(exc)
        outcome["error_type"] = type(exc).__name__
    outcome["duration_seconds"] = round(time.perf_counter() - start, 3)
    log.info(
        "Split %d read %d row(s)",
        work.index,
        outcome["rows"],
        extra={"split_index": work.index, "rows": outcome["rows"], "failed": outcome["error"] is not None},
    )
    return outcome


def _fan_out(
    conf: Dict[str, str],
    work_items: List[WorkItem],
    processes: int,
    timeout_seconds: float,
    inline: bool,
) -> List[SplitOutcome]:
    if inline:
        return [_read_split(conf, work) for work in work_items]

    settings = get_settings()
    worker = partial(_read_split, conf)
    # Local spawn context; the global start method is left alone
    ctx = mp.get_context("spawn")
    with ctx.Pool(
        processes=processes,
        initializer=_init_worker,
        initargs=(settings.log_level, settings.log_json),
    ) as pool:
        async_result = pool.map_async(worker, work_items)
        try:
            return async_result.get(timeout_seconds)
        except mp.TimeoutError as exc:
            pool.terminate()
            raise SplitReadError(
                f"Reading {len(work_items)} split(s) did not finish within {timeout_seconds}s"
            ) from exc


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def run_job(run: RunConfig) -> Dict[str, Any]:
    """
    Plan the configured domain and read every split.

    Returns
    -------
    dict
        Run summary: plan details, per-split outcomes sorted by split index,
        totals, and profiler stats for the planning and reading phases.

    Raises
    ------
    ConfigurationError
        If the configuration map is invalid.
    PlanningError
        If planning fails; no split is read.
    SplitReadError
        Under the strict policy when any split fails, or when the fan-out
        times out.
    """
    settings = get_settings()
    config = StoreConfig.from_mapping(run.conf)
    conf = config.to_mapping()

    log.info(
        f"[PLAN START] {config.domain}",
        extra={"domain": config.domain, "split_size": config.split_size, "boundary_mode": config.boundary_mode},
    )
    with profile_block("plan") as plan_stats:
        splits = SplitPlanner(config).plan()
    log.info(f"[PLAN COMPLETE] {len(splits)} split(s)", extra={"total_splits": len(splits)})

    work_items = [WorkItem(index=index, payload=split.to_bytes()) for index, split in enumerate(splits)]
    processes = max(1, min(run.processes or settings.job_processes, len(work_items)))
    timeout_seconds = run.timeout_seconds or settings.job_timeout_seconds

    with profile_block("read") as read_stats:
        outcomes = _fan_out(conf, work_items, processes, timeout_seconds, run.inline)
    outcomes = sorted(outcomes, key=lambda outcome: outcome["index"])

    failed = [outcome for outcome in outcomes if outcome.get("error")]
    payload: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "domain": config.domain,
        "where_clause": config.where_clause,
        "split_size": config.split_size,
        "boundary_mode": config.boundary_mode,
        "total_rows": splits[-1].end_row,
        "total_splits": len(splits),
        "rows_read": sum(outcome.get("rows", 0) for outcome in outcomes),
        "failed_splits": len(failed),
        "processes": 1 if run.inline else processes,
        "profile": {"plan": plan_stats.as_dict(), "read": read_stats.as_dict()},
        "outcomes": outcomes,
    }

    if run.persist:
        _persist_results(payload, Path(run.results_dir))

    if failed and run.failure_policy == "strict":
        first = failed[0]
        raise SplitReadError(
            f"{len(failed)} of {len(outcomes)} split(s) failed; "
            f"split {first['index']}: {first['error']}"
        )

    log.info(
        f"[JOB COMPLETE] {payload['rows_read']} row(s) from {len(splits)} split(s)",
        extra={"rows_read": payload["rows_read"], "failed_splits": len(failed)},
    )
    return payload


__all__ = [
    "RunConfig",
    "SplitOutcome",
    "WorkItem",
    "drain_split",
    "run_job",
]
