"""Minimal sanity checks for the MESC tools against the local environment."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from mesc.rpc import default_client  # noqa: E402
from mesc.tools import (  # noqa: E402
    get_defaults,
    get_endpoint,
    get_status,
    list_endpoints,
    ping_endpoints,
    validate_chain_id,
)

# Optional endpoint query to resolve; defaults to the configured default endpoint.
SAMPLE_QUERY = os.getenv("MESC_SAMPLE_QUERY")
# Opt-in to pinging endpoints (makes network calls).
RUN_PING = os.getenv("RUN_PING_SANITY", "false").lower() in {"1", "true", "yes"}


async def main() -> None:
    status = get_status()
    print("Status:", status)
    print("Validate chain id 0xa:", validate_chain_id("0xa"))
    if not status.get("enabled"):
        print("MESC is not enabled; set MESC_PATH or MESC_ENV to check more.")
        return

    print("Endpoints:", list_endpoints())
    print("Defaults:", get_defaults())
    print("Endpoint:", get_endpoint(SAMPLE_QUERY))

    if RUN_PING:
        print("Ping (limit 3):", await ping_endpoints(limit=3))
    await default_client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
