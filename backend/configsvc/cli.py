"""Management and client CLI for the configuration service.

Usage:
    python -m configsvc.cli serve                 # Run the API (uvicorn)
    python -m configsvc.cli init-db               # Create missing tables
    python -m configsvc.cli list-clients          # GET /api/configuration/clients
    python -m configsvc.cli get-client KEY        # GET /api/configuration/clients/KEY
    python -m configsvc.cli list-globals          # GET /api/configuration/globals
    python -m configsvc.cli get-active            # GET /api/configuration/globals/active
    python -m configsvc.cli activate ID           # POST .../globals/ID/activate

Client commands talk to a running service at SERVICE_URL (or --url).
"""

import argparse
import asyncio
import json
import logging
import sys
from urllib.parse import quote

import httpx

from configsvc.config import settings

API_PREFIX = "/api/configuration"


def _print_response(resp: httpx.Response) -> int:
    try:
        payload = resp.json()
    except ValueError:
        payload = resp.text
    print(json.dumps(payload, indent=2) if not isinstance(payload, str) else payload)
    return 0 if resp.is_success else 1


def call_service(method: str, path: str, base_url: str, **kwargs) -> int:
    with httpx.Client(base_url=base_url, timeout=settings.context_timeout_seconds + 5) as client:
        try:
            resp = client.request(method, f"{API_PREFIX}{path}", **kwargs)
        except httpx.HTTPError as exc:
            print(f"Request to {base_url} failed: {exc}", file=sys.stderr)
            return 2
    return _print_response(resp)


def activate(config_global_id: int, base_url: str) -> int:
    """Activate a global config, keeping its stored settings."""
    return call_service("POST", f"/globals/{config_global_id}/activate", base_url, json={})


def init_db() -> int:
    from configsvc.database import create_tables

    asyncio.run(create_tables())
    print("Tables ready.")
    return 0


def serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("configsvc.main:app", host=host, port=port, log_level=settings.log_level.lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="configsvc", description="Configuration service management and client CLI"
    )
    parser.add_argument("--url", default=settings.service_url, help="Service base URL")
    sub = parser.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the API server")
    p_serve.add_argument("--host", default=settings.host)
    p_serve.add_argument("--port", type=int, default=settings.port)

    sub.add_parser("init-db", help="Create missing tables")
    sub.add_parser("list-clients", help="List live client configurations")
    p_get = sub.add_parser("get-client", help="Client configuration by tenant key")
    p_get.add_argument("tenant_key")
    sub.add_parser("list-globals", help="List global configurations")
    sub.add_parser("get-active", help="Active (or fallback) global configuration")
    p_act = sub.add_parser("activate", help="Make a global configuration the active one")
    p_act.add_argument("config_global_id", type=int)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        return serve(args.host, args.port)
    if args.command == "init-db":
        return init_db()
    if args.command == "list-clients":
        return call_service("GET", "/clients", args.url)
    if args.command == "get-client":
        return call_service("GET", f"/clients/{quote(args.tenant_key, safe='')}", args.url)
    if args.command == "list-globals":
        return call_service("GET", "/globals", args.url)
    if args.command == "get-active":
        return call_service("GET", "/globals/active", args.url)
    if args.command == "activate":
        return activate(args.config_global_id, args.url)
    return 1


if __name__ == "__main__":
    sys.exit(main())
