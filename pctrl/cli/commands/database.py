#  pctrl - Database Commands
#
#  Depends on: cli/_common.py, store/store.py
#  Used by:    cli/main.py

import typer
from rich.table import Table

from pctrl.cli._common import build, console, parse_enum, print_fields, print_json, resolve, run, slugify
from pctrl.exceptions import NotFoundError
from pctrl.models.enums import DatabaseType
from pctrl.models.schemas import DatabaseCredential

app = typer.Typer(no_args_is_help=True)

_MASK = "********"


@app.command("list")
def list_databases(json_output: bool = typer.Option(False, "--json", help="Output as JSON")):
    """List all database credentials."""
    databases = run(lambda store: store.list_databases())

    if json_output:
        print_json(databases)
        return
    if not databases:
        console.print("No databases yet. Add one with [cyan]pctrl database add NAME[/cyan].")
        return

    table = Table(title="Databases")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Type", style="green")
    table.add_column("Host")
    for d in databases:
        endpoint = f"{d.host}:{d.port}" if d.host and d.port else (d.host or "")
        table.add_row(d.id, d.name, d.db_type.value, endpoint)
    console.print(table)


@app.command("add")
def add_database(
    name: str = typer.Argument(..., help="Display name"),
    database_id: str | None = typer.Option(None, "--id", help="Database id (default: slug of name)"),
    db_type: str = typer.Option("postgres", "--type", "-t", help="mongodb, postgres, mysql, redis or sqlite"),
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
    database_name: str | None = typer.Option(None, "--db-name"),
    username: str | None = typer.Option(None, "--user"),
    password: str | None = typer.Option(None, "--password"),
    connection_string: str | None = typer.Option(None, "--connection-string"),
    server: str | None = typer.Option(None, "--server", help="Server id"),
    container: str | None = typer.Option(None, "--container", help="Container id"),
    notes: str | None = typer.Option(None, "--notes"),
):
    """Add a database credential."""
    record = build(
        DatabaseCredential,
        id=database_id or slugify(name),
        name=name,
        db_type=parse_enum(DatabaseType, db_type, "--type"),
        host=host,
        port=port,
        database_name=database_name,
        username=username,
        password=password,
        connection_string=connection_string,
        server_id=server,
        container_id=container,
        notes=notes,
    )
    run(lambda store: store.add_database(record))
    console.print(f"[bold green]✓[/bold green] Database [magenta]{record.name}[/magenta] added ({record.id})")


@app.command("show")
def show_database(
    ref: str = typer.Argument(..., help="Database id or name"),
    reveal: bool = typer.Option(False, "--reveal", help="Print the password"),
):
    """Show a database credential."""
    record = run(lambda store: resolve("database", store.get_database, store.get_database_by_name, ref))
    password = record.password if reveal or not record.password else _MASK
    print_fields(f"Database: {record.name} ({record.id})", {
        "Type": record.db_type.value,
        "Host": record.host,
        "Port": record.port,
        "Database": record.database_name,
        "User": record.username,
        "Password": password,
        "Connection string": record.connection_string if reveal else None,
        "Server": record.server_id,
        "Container": record.container_id,
        "Notes": record.notes,
    })


@app.command("remove")
def remove_database(ref: str = typer.Argument(..., help="Database id or name")):
    """Remove a database credential."""

    async def _remove(store):
        record = await resolve("database", store.get_database, store.get_database_by_name, ref)
        if not await store.remove_database(record.id):
            raise NotFoundError("database", ref)
        return record

    record = run(_remove)
    console.print(f"[bold green]✓[/bold green] Database [magenta]{record.name}[/magenta] removed")
