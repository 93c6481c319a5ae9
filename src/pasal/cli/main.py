"""Pasal CLI — poke a running backend, resolve hosts, run the server.

Usage:
    pasal serve                               # Run the API with uvicorn
    pasal resolve acme.pasal.com:443          # Which tenant does a Host map to?
    pasal check-subdomain acme                # Is a subdomain free?
    pasal login owner@example.com             # Prompts for password, prints tokens
    pasal me --token <access>                 # Current user's profile
    pasal stores --token <access>             # Stores you own
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from pasal import __version__
from pasal.config import Settings
from pasal.services.tenant_resolver import TenantResolver

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:7000"


def _api_url() -> str:
    return os.environ.get("PASAL_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Pasal backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. CliRunner
    inside an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _token_from_ctx(token: Optional[str]) -> str:
    """Resolve the access token from --token or PASAL_TOKEN."""
    tok = token or os.environ.get("PASAL_TOKEN")
    if not tok:
        click.secho("Error: --token required (or set PASAL_TOKEN env var)", fg="red", err=True)
        sys.exit(1)
    return tok


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _check(r: httpx.Response) -> None:
    """Exit with the API's error message on any non-2xx response."""
    if r.is_success:
        return
    try:
        body = r.json()
        message = f"{body.get('detail')} ({body.get('code')})"
    except ValueError:
        message = r.text
    click.secho(f"Error {r.status_code}: {message}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table. columns: (header, dict_key, width)."""
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "-"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="pasal")
def main():
    """Pasal — multi-tenant storefront backend tools."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: PASAL_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: PASAL_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "pasal.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# pasal resolve
# ---------------------------------------------------------------------------


@main.command()
@click.argument("host")
def resolve(host: str):
    """Show which store subdomain HOST resolves to (offline)."""
    resolver = TenantResolver(Settings().local_dev_suffix)
    tenant = resolver.resolve(host)
    if tenant.is_tenant_scoped:
        click.secho(tenant.subdomain, fg="green")
    else:
        click.secho("(no tenant)", fg="yellow")


# ---------------------------------------------------------------------------
# pasal check-subdomain
# ---------------------------------------------------------------------------


@main.command("check-subdomain")
@click.argument("name")
def check_subdomain(name: str):
    """Ask the API whether a subdomain can be registered."""
    _run(_check_subdomain_impl(name))


async def _check_subdomain_impl(name: str):
    async with _client() as c:
        r = await c.get(f"/api/v1/stores/check-subdomain/{name}")
        _check(r)
        data = r.json()
    if data["available"]:
        click.secho(f"{data['subdomain']}: available", fg="green")
    else:
        click.secho(f"{data['subdomain']}: taken or reserved", fg="red")


# ---------------------------------------------------------------------------
# pasal login / me
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
def login(email: str, password: str):
    """Sign in and print the profile plus tokens."""
    _run(_login_impl(email, password))


async def _login_impl(email: str, password: str):
    async with _client() as c:
        r = await c.post("/api/v1/auth/login", json={"email": email, "password": password})
        _check(r)
        data = r.json()
    user = data["user"]
    click.secho(f"Signed in as {user['email']} ({user['role']})", fg="green")
    click.echo(_pretty_json({
        "access_token": data["access_token"],
        "refresh_token": data["refresh_token"],
    }))


@main.command()
@click.option("--token", "-t", help="Access token (or set PASAL_TOKEN)")
def me(token: Optional[str]):
    """Show the profile behind an access token."""
    _run(_me_impl(_token_from_ctx(token)))


async def _me_impl(token: str):
    async with _client() as c:
        r = await c.get("/api/v1/auth/me", headers=_auth(token))
        _check(r)
        click.echo(_pretty_json(r.json()))


# ---------------------------------------------------------------------------
# pasal stores
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", "-t", help="Access token (or set PASAL_TOKEN)")
def stores(token: Optional[str]):
    """List the stores you own."""
    _run(_stores_impl(_token_from_ctx(token)))


async def _stores_impl(token: str):
    async with _client() as c:
        r = await c.get("/api/v1/stores", headers=_auth(token))
        _check(r)
        rows = r.json()

    if not rows:
        click.echo("No stores found.")
        return

    base_domain = Settings().base_domain
    for row in rows:
        row["url"] = f"https://{row['subdomain']}.{base_domain}"
        row["active"] = "yes" if row["is_active"] else "no"

    click.secho(f"Stores ({len(rows)}):", bold=True)
    click.echo()
    _print_table(rows, [
        ("Subdomain", "subdomain", 20),
        ("Name", "name", 30),
        ("Active", "active", 6),
        ("Products", "product_count", 8),
        ("URL", "url", 40),
    ])
