"""``mesc`` command line interface."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import click

from mesc import __version__
from mesc.config import MASKED_URL, ServiceConfig, default_config
from mesc.errors import InvalidChainIdError, MescError
from mesc.loading import load_config
from mesc.network_names import network_name_to_chain_id
from mesc.printing import print_defaults, print_endpoint_json, print_endpoint_pretty, print_endpoints, render_table
from mesc.queries import find_endpoints, get_default_endpoint, get_endpoint_by_query, get_global_metadata
from mesc.rpc import RpcClient, ping_endpoints
from mesc.tools import get_status
from mesc.types import EndpointQuery, RpcConfig, to_chain_id


def configure_logging(debug: bool = False) -> None:
    """Send warnings (or everything, with --debug) to stderr."""
    log_level = logging.DEBUG if debug else logging.WARNING
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))
    root_logger.addHandler(handler)


def _fail(exc: Exception) -> click.ClickException:
    return click.ClickException(str(exc))


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _network_chain_id(value: str, config: RpcConfig) -> str:
    """Accept a chain id or a network name for --network."""
    try:
        return to_chain_id(value)
    except InvalidChainIdError:
        chain_id = network_name_to_chain_id(value, config.network_names)
        if chain_id is None:
            raise
        return chain_id


@click.group(invoke_without_command=True)
@click.option("--debug", is_flag=True, help="Show debug logging")
@click.version_option(__version__, prog_name="mesc")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Inspect the MESC RPC endpoint configuration."""
    configure_logging(debug)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def status(json_output: bool) -> None:
    """Show whether MESC is enabled and where its config comes from."""
    result = get_status()
    if json_output:
        _echo_json(result)
        return
    for key, value in result.items():
        if isinstance(value, list):
            value = ", ".join(value) or "-"
        click.echo(f"{key}: {value if value is not None else '-'}")
    if result.get("error"):
        raise click.exceptions.Exit(1)


@cli.command(name="ls")
@click.option("--network", help="Only endpoints on this chain id or network name")
@click.option("--name", "name_contains", help="Only endpoints whose name contains this text")
@click.option("--url", "url_contains", help="Only endpoints whose url contains this text")
@click.option("--reveal", is_flag=True, help="Show endpoint URLs")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def list_command(
    network: Optional[str],
    name_contains: Optional[str],
    url_contains: Optional[str],
    reveal: bool,
    json_output: bool,
) -> None:
    """List configured endpoints."""
    try:
        config = load_config()
        query = EndpointQuery()
        if network is not None:
            query.chain_id(_network_chain_id(network, config))
        if name_contains:
            query.name(name_contains)
        if url_contains:
            query.url(url_contains)
        endpoints = find_endpoints(query, config=config)
    except MescError as exc:
        raise _fail(exc) from exc
    if json_output:
        payload = [endpoint.to_dict() for endpoint in endpoints]
        if not reveal:
            for item in payload:
                item["url"] = MASKED_URL
        _echo_json(payload)
    else:
        print_endpoints(endpoints, reveal=reveal)


@cli.command()
@click.option("--profile", help="Profile name to use")
def defaults(profile: Optional[str]) -> None:
    """Show the default endpoint and per-network defaults."""
    try:
        config = load_config()
    except MescError as exc:
        raise _fail(exc) from exc
    print_defaults(config, profile)


@cli.command()
@click.argument("query", required=False)
@click.option("--profile", help="Profile name to use")
@click.option("--reveal", is_flag=True, help="Show the endpoint URL")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def endpoint(query: Optional[str], profile: Optional[str], reveal: bool, json_output: bool) -> None:
    """Resolve QUERY (endpoint name, chain id or network name) to an endpoint."""
    try:
        config = load_config()
        if query is None:
            result = get_default_endpoint(profile, config=config)
        else:
            result = get_endpoint_by_query(query, profile, config=config)
    except MescError as exc:
        raise _fail(exc) from exc
    if result is None:
        raise click.ClickException("endpoint not found")
    if json_output:
        print_endpoint_json(result, reveal=reveal)
    else:
        print_endpoint_pretty(result, reveal=reveal)


@cli.command()
@click.argument("query", required=False)
@click.option("--profile", help="Profile name to use")
def url(query: Optional[str], profile: Optional[str]) -> None:
    """Print only the URL of the resolved endpoint."""
    try:
        config = load_config()
        if query is None:
            result = get_default_endpoint(profile, config=config)
        else:
            result = get_endpoint_by_query(query, profile, config=config)
    except MescError as exc:
        raise _fail(exc) from exc
    if result is None:
        raise click.ClickException("endpoint not found")
    click.echo(result.url)


@cli.command()
@click.option("--profile", help="Profile name to use")
def metadata(profile: Optional[str]) -> None:
    """Print global metadata merged with profile metadata."""
    try:
        result = get_global_metadata(profile, config=load_config())
    except MescError as exc:
        raise _fail(exc) from exc
    _echo_json(result)


@cli.command()
@click.option("--network", help="Only ping endpoints on this chain id or network name")
@click.option("--name", "name_contains", help="Only ping endpoints whose name contains this text")
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds")
@click.option("--client-version", is_flag=True, help="Also query web3_clientVersion")
@click.option("--reveal", is_flag=True, help="Show endpoint URLs")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def ping(
    network: Optional[str],
    name_contains: Optional[str],
    timeout: Optional[float],
    client_version: bool,
    reveal: bool,
    json_output: bool,
) -> None:
    """Ping endpoints and report latency, block number and chain id."""
    try:
        config = load_config()
        query = EndpointQuery()
        if network is not None:
            query.chain_id(_network_chain_id(network, config))
        if name_contains:
            query.name(name_contains)
        endpoints = find_endpoints(query, config=config)
    except MescError as exc:
        raise _fail(exc) from exc

    fields = ["block_number", "chain_id"]
    if client_version:
        fields.append("client_version")

    async def _run():
        client = RpcClient(ServiceConfig(timeout=timeout) if timeout is not None else None)
        try:
            return await ping_endpoints(
                endpoints, client, concurrency=default_config.ping_concurrency, fields=fields
            )
        finally:
            await client.aclose()

    results = asyncio.run(_run())
    rows = [result.to_dict(url=None if reveal else MASKED_URL) for result in results]
    if json_output:
        _echo_json(rows)
        return
    if not rows:
        click.echo("[none]")
        return
    headers = ["endpoint", "network", "latency", "block", "status"]
    columns = [
        [row["name"] for row in rows],
        [row["configuredChainId"] or "-" for row in rows],
        [f"{row['latencyMs']:.1f} ms" if row["latencyMs"] is not None else "-" for row in rows],
        [str(row["blockNumber"]) if row["blockNumber"] is not None else "-" for row in rows],
        [_ping_status(row) for row in rows],
    ]
    if client_version:
        headers.append("client")
        columns.append([row["clientVersion"] or "-" for row in rows])
    for line in render_table(headers, columns):
        click.echo(line)


def _ping_status(row: dict) -> str:
    if row["error"]:
        return row["error"]
    if row["chainIdMatches"] is False:
        return f"chain id mismatch ({row['chainId']})"
    return "ok"


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int) -> None:
    """Serve the read-only HTTP and MCP surface."""
    import uvicorn

    uvicorn.run("mesc.server:app", host=host, port=port, log_level=default_config.log_level.lower())


def main() -> None:
    cli()
