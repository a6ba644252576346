#  pctrl - Server Commands
#
#  Depends on: cli/_common.py, store/store.py
#  Used by:    cli/main.py

import typer
from rich.table import Table

from pctrl.cli._common import build, console, parse_enum, print_fields, print_json, resolve, run, slugify
from pctrl.exceptions import NotFoundError
from pctrl.models.enums import ResourceType, ServerType
from pctrl.models.schemas import Server, ServerSpecs

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_servers(json_output: bool = typer.Option(False, "--json", help="Output as JSON")):
    """List all servers."""
    servers = run(lambda store: store.list_servers())

    if json_output:
        print_json(servers)
        return
    if not servers:
        console.print("No servers yet. Add one with [cyan]pctrl server add NAME HOST[/cyan].")
        return

    table = Table(title="Servers")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Host")
    table.add_column("Type", style="green")
    table.add_column("Provider")
    for s in servers:
        table.add_row(s.id, s.name, s.host, s.server_type.value, s.provider or "")
    console.print(table)


@app.command("add")
def add_server(
    name: str = typer.Argument(..., help="Server name"),
    host: str = typer.Argument(..., help="Hostname or IP address"),
    server_id: str | None = typer.Option(None, "--id", help="Server id (default: slug of name)"),
    server_type: str = typer.Option("vps", "--type", "-t", help="vps, dedicated, local or cloud"),
    provider: str | None = typer.Option(None, "--provider"),
    credential: str | None = typer.Option(None, "--credential", "-c", help="SSH credential id or name"),
    location: str | None = typer.Option(None, "--location"),
    cpu_cores: int | None = typer.Option(None, "--cpu"),
    ram_gb: int | None = typer.Option(None, "--ram", help="RAM in GB"),
    disk_gb: int | None = typer.Option(None, "--disk", help="Disk in GB"),
    notes: str | None = typer.Option(None, "--notes"),
):
    """Add a server."""
    kind = parse_enum(ServerType, server_type, "--type")
    specs = None
    if cpu_cores is not None or ram_gb is not None or disk_gb is not None:
        specs = build(ServerSpecs, cpu_cores=cpu_cores, ram_gb=ram_gb, disk_gb=disk_gb)

    async def _add(store):
        credential_id = None
        if credential:
            cred = await resolve(
                "credential", store.get_credential, store.get_credential_by_name, credential
            )
            credential_id = cred.id
        server = build(
            Server,
            id=server_id or slugify(name),
            name=name,
            host=host,
            server_type=kind,
            provider=provider,
            credential_id=credential_id,
            location=location,
            specs=specs,
            notes=notes,
        )
        await store.add_server(server)
        return server

    server = run(_add)
    console.print(f"[bold green]✓[/bold green] Server [magenta]{server.name}[/magenta] added ({server.id})")


@app.command("show")
def show_server(
    ref: str = typer.Argument(..., help="Server id or name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show a server, its domains and the projects it belongs to."""

    async def _show(store):
        server = await resolve("server", store.get_server, store.get_server_by_name, ref)
        domains = await store.list_domains_for_server(server.id)
        projects = await store.projects_of(ResourceType.SERVER, server.id)
        return server, domains, projects

    server, domains, projects = run(_show)
    if json_output:
        print_json(server)
        return

    specs = server.specs
    print_fields(f"Server: {server.name} ({server.id})", {
        "Host": server.host,
        "Type": server.server_type.value,
        "Provider": server.provider,
        "Location": server.location,
        "Credential": server.credential_id,
        "CPU cores": specs.cpu_cores if specs else None,
        "RAM (GB)": specs.ram_gb if specs else None,
        "Disk (GB)": specs.disk_gb if specs else None,
        "Domains": [d.domain for d in domains],
        "Projects": projects,
        "Notes": server.notes,
    })


@app.command("remove")
def remove_server(ref: str = typer.Argument(..., help="Server id or name")):
    """Remove a server. Domains and links that reference it are kept."""

    async def _remove(store):
        server = await resolve("server", store.get_server, store.get_server_by_name, ref)
        if not await store.remove_server(server.id):
            raise NotFoundError("server", ref)
        return server

    server = run(_remove)
    console.print(f"[bold green]✓[/bold green] Server [magenta]{server.name}[/magenta] removed")
