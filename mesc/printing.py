"""Terminal rendering of endpoints and defaults for the CLI."""

from __future__ import annotations

import json
from typing import Dict, List, Optional, Sequence

import click

from mesc.config import MASKED_URL
from mesc.queries import get_default_endpoint
from mesc.types import Endpoint, RpcConfig, chain_id_sort_key

COLUMN_DELIMITER = "  │  "
HEADER_RULE = "─"


def render_table(headers: Sequence[str], columns: Sequence[Sequence[str]]) -> List[str]:
    """Lay out equal-length columns under their headers."""
    widths = [
        max([len(header), *(len(str(value)) for value in column)])
        for header, column in zip(headers, columns)
    ]
    header_line = COLUMN_DELIMITER.join(header.ljust(width) for header, width in zip(headers, widths))
    rule_line = COLUMN_DELIMITER.join(HEADER_RULE * width for width in widths)
    lines = [header_line.rstrip(), rule_line]
    for row in zip(*columns):
        lines.append(COLUMN_DELIMITER.join(str(value).ljust(width) for value, width in zip(row, widths)).rstrip())
    return lines


def print_endpoint_json(endpoint: Endpoint, reveal: bool = False) -> None:
    data = endpoint.to_dict()
    if not reveal:
        data["url"] = MASKED_URL
    try:
        click.echo(json.dumps(data))
    except (TypeError, ValueError):
        click.echo("could not serialize endpoint", err=True)


def print_endpoint_pretty(endpoint: Endpoint, reveal: bool = False) -> None:
    click.echo(f"Endpoint: {endpoint.name}")
    click.echo(f"- url: {endpoint.url if reveal else MASKED_URL}")
    click.echo(f"- chain_id: {endpoint.chain_id_string()}")
    click.echo(f"- metadata: {endpoint.endpoint_metadata}")


def print_endpoints(endpoints: Sequence[Endpoint], reveal: bool = False) -> None:
    """Print endpoints sorted by chain id; URLs are masked unless reveal."""
    if not endpoints:
        click.echo("[none]")
        return
    ordered = sorted(endpoints, key=lambda endpoint: chain_id_sort_key(endpoint.chain_id))
    names = [endpoint.name for endpoint in ordered]
    networks = [endpoint.chain_id_string() for endpoint in ordered]
    urls = [endpoint.url if reveal else MASKED_URL for endpoint in ordered]
    for line in render_table(["endpoint", "network", "url"], [names, networks, urls]):
        click.echo(line)


def print_defaults(config: RpcConfig, profile: Optional[str] = None) -> None:
    classes: List[str] = ["global default"]
    networks: List[str] = []
    names: List[str] = []
    default_endpoint = get_default_endpoint(profile, config=config)
    if default_endpoint is not None:
        names.append(default_endpoint.name)
        networks.append(default_endpoint.chain_id_string())
    else:
        names.append("-")
        networks.append("-")

    selected = config.profiles.get(profile) if profile is not None else None
    network_defaults: Dict[str, str] = {}
    if selected is None or selected.use_mesc:
        network_defaults.update(config.network_defaults)
        if selected is not None:
            network_defaults.update(selected.network_defaults)
    for chain_id in sorted(network_defaults, key=chain_id_sort_key):
        classes.append("network default")
        networks.append(chain_id)
        names.append(network_defaults[chain_id])

    for line in render_table(["", "network", "endpoint"], [classes, networks, names]):
        click.echo(line)
