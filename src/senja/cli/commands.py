"""CLI commands for senja.

Commands:
- list: Show the cached contents of a table
- save: Create or replace a record from JSON
- delete: Delete a record by id
- import-students: Bulk import students from a JSON file
- set-api-url: Configure the spreadsheet endpoint
- sync: Pull every table from the spreadsheet
- init-admin: Seed the admin account into an empty users table
- settings: Show or overwrite the settings record

Every command waits for its background sync jobs before exiting.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import typer
from rich.console import Console
from rich.table import Table as RichTable

from senja.core.engine import Engine, get_engine
from senja.core.errors import StorageError, UnknownTableError

app = typer.Typer(
    name="senja",
    help="Local-first record store with background spreadsheet sync.",
    no_args_is_help=True,
)

console = Console()

T = TypeVar("T")


def _run(action: Callable[[Engine], Awaitable[T]]) -> T:
    """Run an engine action inside an event loop, then drain sync jobs."""

    async def _main() -> T:
        engine = get_engine()
        result = await action(engine)
        await engine.drain()
        return result

    try:
        return asyncio.run(_main())
    except StorageError as e:
        console.print(f"[red]✗ Error de almacenamiento: {e}[/red]")
        raise typer.Exit(code=1)


def _parse_json_object(text: str) -> dict[str, Any]:
    """Parse a JSON object argument, or exit with a helpful error."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        console.print(f"[red]✗ JSON inválido: {e}[/red]")
        raise typer.Exit(code=1)
    if not isinstance(data, dict):
        console.print("[red]✗ Se esperaba un objeto JSON[/red]")
        raise typer.Exit(code=1)
    return data


def _table_or_exit(engine: Engine, name: str):
    try:
        return engine.table(name)
    except UnknownTableError as e:
        console.print(f"[red]✗ {e}[/red]")
        console.print("Tablas: users, students, materials, submissions")
        raise typer.Exit(code=1)


@app.command("list")
def list_records(
    table: str = typer.Argument(..., help="users | students | materials | submissions"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
) -> None:
    """Show the cached contents of a table."""

    async def action(engine: Engine) -> list[dict[str, Any]]:
        return list(_table_or_exit(engine, table).all())

    records = _run(action)

    if as_json:
        console.print_json(json.dumps(records, ensure_ascii=False))
        return

    if not records:
        console.print(f"[yellow]⚠ La tabla '{table}' está vacía[/yellow]")
        return

    columns: list[str] = ["id"]
    for record in records:
        for key in record:
            if key not in columns and not isinstance(record[key], (dict, list)):
                columns.append(key)

    view = RichTable(title=f"{table} ({len(records)})")
    for column in columns:
        view.add_column(column)
    for record in records:
        view.add_row(*[str(record.get(column, "")) for column in columns])
    console.print(view)


@app.command("save")
def save_record(
    table: str = typer.Argument(..., help="users | students | materials | submissions"),
    record_json: str = typer.Argument(..., help='Record as JSON, e.g. \'{"name": "Ana"}\''),
) -> None:
    """Create or replace a record."""
    record = _parse_json_object(record_json)

    async def action(engine: Engine) -> dict[str, Any]:
        return dict(_table_or_exit(engine, table).save(record))

    saved = _run(action)
    console.print(f"[green]✓ Guardado:[/green] {saved['id']}")


@app.command("delete")
def delete_record(
    table: str = typer.Argument(..., help="users | students | materials | submissions"),
    record_id: str = typer.Argument(..., help="Id of the record to delete"),
) -> None:
    """Delete a record by id."""

    async def action(engine: Engine) -> bool:
        return _table_or_exit(engine, table).delete(record_id)

    if _run(action):
        console.print(f"[green]✓ Eliminado:[/green] {record_id}")
    else:
        console.print(f"[yellow]⚠ No existe '{record_id}' en {table}[/yellow]")


@app.command("import-students")
def import_students(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON array of students"),
) -> None:
    """Bulk import students from a JSON file."""
    try:
        data = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]✗ JSON inválido en {file}: {e}[/red]")
        raise typer.Exit(code=1)

    if not isinstance(data, list) or not all(isinstance(s, dict) for s in data):
        console.print("[red]✗ Se esperaba un array JSON de objetos[/red]")
        raise typer.Exit(code=1)

    async def action(engine: Engine) -> int:
        return len(engine.students.bulk_import(data))

    count = _run(action)
    console.print(f"[green]✓ Importados {count} estudiantes[/green]")


@app.command("set-api-url")
def set_api_url(
    url: str = typer.Argument(..., help="Spreadsheet web app URL; empty string disables sync"),
) -> None:
    """Configure the spreadsheet endpoint and pull everything from it."""

    async def action(engine: Engine) -> bool:
        engine.set_api_url(url)
        return engine.has_api_url()

    if _run(action):
        console.print("[green]✓ Endpoint configurado y sincronizado[/green]")
    else:
        console.print("[yellow]⚠ Sincronización remota desactivada (modo local)[/yellow]")


@app.command("sync")
def sync() -> None:
    """Pull every table from the spreadsheet."""

    async def action(engine: Engine) -> dict[str, int] | None:
        if not engine.has_api_url():
            return None
        return await engine.sync_all_from_cloud()

    applied = _run(action)
    if applied is None:
        console.print("[yellow]⚠ No hay endpoint configurado (modo local)[/yellow]")
        raise typer.Exit(code=1)

    if not applied:
        console.print("Nada que sincronizar")
        return
    for table, count in applied.items():
        console.print(f"[green]✓[/green] {table}: {count}")


@app.command("init-admin")
def init_admin() -> None:
    """Seed the admin account into an empty users table."""

    async def action(engine: Engine) -> dict[str, Any] | None:
        admin = engine.init_admin_user()
        return dict(admin) if admin else None

    admin = _run(action)
    if admin is None:
        console.print("Ya existen usuarios, no se creó el administrador")
    else:
        console.print(f"[green]✓ Administrador creado:[/green] {admin['username']}")


@app.command("settings")
def settings(
    set_json: str | None = typer.Option(None, "--set", help="Overwrite settings with this JSON"),
) -> None:
    """Show or overwrite the settings record."""
    new_settings = _parse_json_object(set_json) if set_json is not None else None

    async def action(engine: Engine) -> dict[str, Any]:
        if new_settings is not None:
            return engine.settings.save(new_settings)
        return engine.settings.get()

    console.print_json(json.dumps(_run(action), ensure_ascii=False))


def main() -> None:
    app()
