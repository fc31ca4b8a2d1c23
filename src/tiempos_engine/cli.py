"""Typer CLI for Tiempos-Engine."""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

app = typer.Typer(name="tiempos", help="Tiempos-Engine: backend client and in-memory emulator")
console = Console()


def _client():
    from tiempos_engine.client import create_client
    from tiempos_engine.common.config import get_settings
    from tiempos_engine.common.logging import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level)
    return create_client(settings)


def _fail(result) -> None:
    console.print(f"[bold red]{result.error.code}[/bold red] - {result.error.message}")
    raise typer.Exit(1)


@app.command()
def tables():
    """List emulated tables and the writes each one accepts."""
    from tiempos_engine.emulator.rules import TABLE_RULES, TableRule

    table = Table("table", "insert", "update", "delete", "default order")
    for name, rule in TABLE_RULES.items():
        cls = type(rule)
        marks = [
            "yes" if getattr(cls, op) is not getattr(TableRule, op) else "-"
            for op in ("insert", "update", "delete")
        ]
        order = "-"
        if rule.default_order:
            field, ascending = rule.default_order
            order = f"{field} {'asc' if ascending else 'desc'}"
        table.add_row(name, *marks, order)
    console.print(table)


@app.command()
def login(
    email: str = typer.Argument(..., help="Account email"),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Account password"),
):
    """Sign in and persist the session."""
    async def run():
        async with _client() as client:
            return await client.auth.sign_in_with_password({"email": email, "password": password})

    result = asyncio.run(run())
    if not result.ok:
        _fail(result)
    console.print(f"[bold green]Signed in[/bold green] as {result.data['user']['email']}")


@app.command()
def logout():
    """Clear the persisted session."""
    async def run():
        async with _client() as client:
            return await client.auth.sign_out()

    result = asyncio.run(run())
    if not result.ok:
        _fail(result)
    console.print("[bold]Signed out[/bold]")


@app.command()
def whoami():
    """Show the profile behind the persisted session."""
    async def run():
        async with _client() as client:
            session_res = await client.auth.get_session()
            session = session_res.data["session"]
            if session is None:
                return None
            return await (
                client.from_("app_users").select("*").eq("auth_uid", session["user"]["id"]).single()
            )

    result = asyncio.run(run())
    if result is None:
        console.print("[yellow]No active session[/yellow]")
        raise typer.Exit(1)
    if not result.ok:
        _fail(result)
    profile = result.data
    console.print(f"[bold]{profile['name']}[/bold] ({profile['role']}) - {profile['id']}")


@app.command()
def query(
    table_name: str = typer.Argument(..., metavar="TABLE", help="Table name"),
    eq: Optional[str] = typer.Option(None, help="Equality filter as field=value"),
    order: Optional[str] = typer.Option(None, help="Sort field"),
    asc: bool = typer.Option(False, help="Sort ascending"),
    limit: Optional[int] = typer.Option(None, help="Row limit"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Fetch rows from a table."""
    if eq is not None and "=" not in eq:
        raise typer.BadParameter("expected field=value", param_hint="--eq")

    async def run():
        async with _client() as client:
            builder = client.from_(table_name).select("*")
            if eq is not None:
                field, value = eq.split("=", 1)
                builder = builder.eq(field, value)
            if order:
                builder = builder.order(order, ascending=asc)
            if limit is not None:
                builder = builder.limit(limit)
            return await builder.fetch()

    result = asyncio.run(run())
    if not result.ok:
        _fail(result)
    rows = result.data
    if as_json:
        console.print_json(json.dumps(rows, ensure_ascii=False))
        return
    if not rows:
        console.print("[yellow]No rows[/yellow]")
        return

    columns = list(rows[0].keys())
    table = Table(*columns)
    for row in rows:
        table.add_row(*(escape(str(row.get(col, ""))) for col in columns))
    console.print(table)
    console.print(f"{len(rows)} row(s)")


@app.command("verify-audit")
def verify_audit():
    """Verify the audit trail's hash chain."""
    from tiempos_engine.audit.hashing import verify_trail

    async def run():
        async with _client() as client:
            return await client.from_("audit_trail").select("*").fetch()

    result = asyncio.run(run())
    if not result.ok:
        _fail(result)
    report = verify_trail(result.data)
    if report["valid"]:
        console.print(f"[bold green]VALID[/bold green] - {report['events_checked']} events checked")
    else:
        console.print(f"[bold red]BROKEN[/bold red] at event {report['break_at']}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
