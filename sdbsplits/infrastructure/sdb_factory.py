"""
SimpleDB client factory for simpledb-splits.

Every planner and reader builds its own boto3 client from the job
configuration; nothing here is cached or shared between splits. Clients are
created with bounded connect/read timeouts and with botocore's automatic
retries switched off, so a failed call is reported exactly once.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional, Tuple

import boto3
from botocore.config import Config

from sdbsplits.config import StoreConfig
from sdbsplits.utils.logging import get_logger

log = get_logger(__name__)

_DEFAULT_REGION_NAME = "us-east-1"
_REGIONAL_HOST = re.compile(r"^sdb\.([a-z0-9-]+)\.amazonaws\.com$")


def resolve_endpoint(region: str) -> Tuple[str, Optional[str]]:
    """
    Turn the configured region into ``(region_name, endpoint_url)``.

    The value may be a plain region name (``eu-west-1``) or an endpoint host
    (``sdb.eu-west-1.amazonaws.com``, ``sdb.amazonaws.com``) or URL.
    """
    value = region.strip()
    if "." not in value and "/" not in value:
        return value or _DEFAULT_REGION_NAME, None

    endpoint_url = value if "://" in value else f"https://{value}"
    host = endpoint_url.split("://", 1)[1].split("/", 1)[0].split(":", 1)[0]
    match = _REGIONAL_HOST.match(host)
    region_name = match.group(1) if match else _DEFAULT_REGION_NAME
    return region_name, endpoint_url


def client_config(config: StoreConfig) -> Config:
    return Config(
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
        retries={"total_max_attempts": 1},
    )


def build_client(config: StoreConfig) -> Any:
    """
    Create a dedicated boto3 SimpleDB client.

    Credentials come from the configuration when both keys are set, otherwise
    from boto3's default credential chain.
    """
    region_name, endpoint_url = resolve_endpoint(config.region)
    kwargs: Dict[str, Any] = {
        "region_name": region_name,
        "config": client_config(config),
    }
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    if config.access_key and config.secret_key:
        kwargs["aws_access_key_id"] = config.access_key
        kwargs["aws_secret_access_key"] = config.secret_key

    client = boto3.client("sdb", **kwargs)
    log.debug(
        "Created SimpleDB client",
        extra={"domain": config.domain, "region": region_name, "endpoint": endpoint_url or "default"},
    )
    return client


@contextmanager
def sdb_client(config: StoreConfig) -> Generator[Any, None, None]:
    """
    Context manager yielding a client that is closed on every exit path.

    Example
    -------
        with sdb_client(config) as client:
            client.domain_metadata(DomainName=config.domain)
    """
    client = build_client(config)
    try:
        yield client
    finally:
        client.close()


__all__ = ["build_client", "client_config", "resolve_endpoint", "sdb_client"]
