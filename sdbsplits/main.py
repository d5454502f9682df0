from __future__ import annotations

import json
import sys
from typing import Dict, List, NoReturn, Optional

import typer

from sdbsplits.config import SIMPLEDB_AWS_SECRETKEY, StoreConfig, get_settings
from sdbsplits.errors import SplitsError
from sdbsplits.infrastructure.store_client import StoreClient
from sdbsplits.orchestrator import RunConfig, run_job
from sdbsplits.planner import SplitPlanner
from sdbsplits.reporter import print_splits, print_summary
from sdbsplits.utils.logging import configure_logging

app = typer.Typer(help="Plan and read SimpleDB domains in parallel splits.")

_CONF_OPTION = typer.Option(
    None,
    "--conf",
    "-c",
    help="Job configuration override as key=value (e.g. -c simpledb.split.size=50000). Repeatable.",
)


def _job_conf(overrides: Optional[List[str]]) -> Dict[str, str]:
    """Environment-derived job configuration with command-line overrides applied."""
    conf = get_settings().job_conf()
    for item in overrides or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got {item!r}", param_hint="--conf")
        conf[key.strip()] = value
    return conf


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _fail(exc: SplitsError) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


@app.command()
def info(conf: Optional[List[str]] = _CONF_OPTION) -> None:
    """
    Show the effective job configuration.
    """
    settings = get_settings()
    job_conf = _job_conf(conf)
    if SIMPLEDB_AWS_SECRETKEY in job_conf:
        job_conf[SIMPLEDB_AWS_SECRETKEY] = "****"
    for key in sorted(job_conf):
        typer.echo(f"{key}={job_conf[key]}")
    typer.echo(f"processes={settings.job_processes} timeout={settings.job_timeout_seconds}s")


@app.command()
def plan(
    conf: Optional[List[str]] = _CONF_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Print splits as JSON (with serialized hex)."),
) -> None:
    """
    Plan the configured domain and print its splits.
    """
    _setup_logging()
    try:
        config = StoreConfig.from_mapping(_job_conf(conf))
        splits = SplitPlanner(config).plan()
    except SplitsError as exc:
        _fail(exc)

    if as_json:
        rows = [
            {**split.model_dump(), "length": split.length(), "serialized": split.to_bytes().hex()}
            for split in splits
        ]
        typer.echo(json.dumps(rows, indent=2))
    else:
        print_splits(splits)


@app.command()
def run(
    conf: Optional[List[str]] = _CONF_OPTION,
    processes: Optional[int] = typer.Option(
        None, "--processes", "-p", min=1, help="Worker processes (default from settings)."
    ),
    inline: bool = typer.Option(False, "--inline", help="Read splits in this process, one by one."),
    tolerant: bool = typer.Option(
        False, "--tolerant", help="Record failed splits and keep going instead of failing the job."
    ),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Write results/latest.json."),
    results_dir: str = typer.Option("results", "--results-dir", help="Directory for run summaries."),
) -> None:
    """
    Plan the configured domain and read every split in worker processes.
    """
    _setup_logging()
    try:
        summary = run_job(
            RunConfig(
                conf=_job_conf(conf),
                processes=processes,
                results_dir=results_dir,
                persist=persist,
                failure_policy="tolerant" if tolerant else "strict",
                inline=inline,
            )
        )
    except SplitsError as exc:
        _fail(exc)
    print_summary(summary)


@app.command()
def unique(
    field: str = typer.Argument(..., help="Attribute to count distinct values of."),
    conf: Optional[List[str]] = _CONF_OPTION,
    top: int = typer.Option(20, "--top", "-n", min=1, help="How many values to print."),
) -> None:
    """
    Count occurrences of each distinct value of one attribute.
    """
    _setup_logging()
    try:
        config = StoreConfig.from_mapping(_job_conf(conf))
        with StoreClient(config) as client:
            occurrences = client.unique_values(field, client.where_clause)
    except SplitsError as exc:
        _fail(exc)

    typer.echo(f"{len(occurrences)} distinct value(s) of {field!r}")
    for value, count in occurrences.most_common(top):
        typer.echo(f"{count:>10,}  {value}")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
