#  pctrl - Domain Commands
#
#  Depends on: cli/_common.py, store/store.py
#  Used by:    cli/main.py

import typer
from rich.table import Table

from pctrl.cli._common import build, console, parse_enum, print_fields, print_json, resolve, run, slugify
from pctrl.exceptions import NotFoundError
from pctrl.models.enums import DomainType
from pctrl.models.schemas import Domain

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_domains(json_output: bool = typer.Option(False, "--json", help="Output as JSON")):
    """List all domains."""
    domains = run(lambda store: store.list_domains())

    if json_output:
        print_json(domains)
        return
    if not domains:
        console.print("No domains yet. Add one with [cyan]pctrl domain add DOMAIN[/cyan].")
        return

    table = Table(title="Domains")
    table.add_column("Domain", style="magenta")
    table.add_column("Type", style="green")
    table.add_column("SSL")
    table.add_column("Server", style="cyan")
    for d in domains:
        table.add_row(d.domain, d.domain_type.value, "yes" if d.ssl else "no", d.server_id or "")
    console.print(table)


@app.command("add")
def add_domain(
    domain: str = typer.Argument(..., help="Domain name, e.g. example.com"),
    domain_id: str | None = typer.Option(None, "--id", help="Domain id (default: slug of domain)"),
    domain_type: str = typer.Option("production", "--type", "-t", help="production, staging or dev"),
    ssl: bool = typer.Option(True, "--ssl/--no-ssl"),
    ssl_expiry: str | None = typer.Option(None, "--ssl-expiry"),
    server: str | None = typer.Option(None, "--server", help="Server id"),
    container: str | None = typer.Option(None, "--container", help="Container id"),
    cloudflare_zone_id: str | None = typer.Option(None, "--cf-zone"),
    cloudflare_record_id: str | None = typer.Option(None, "--cf-record"),
    notes: str | None = typer.Option(None, "--notes"),
):
    """Add a domain."""
    record = build(
        Domain,
        id=domain_id or slugify(domain),
        domain=domain,
        domain_type=parse_enum(DomainType, domain_type, "--type"),
        ssl=ssl,
        ssl_expiry=ssl_expiry,
        cloudflare_zone_id=cloudflare_zone_id,
        cloudflare_record_id=cloudflare_record_id,
        server_id=server,
        container_id=container,
        notes=notes,
    )
    run(lambda store: store.add_domain(record))
    console.print(f"[bold green]✓[/bold green] Domain [magenta]{record.domain}[/magenta] added ({record.id})")


@app.command("show")
def show_domain(
    ref: str = typer.Argument(..., help="Domain id or name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show a domain."""
    record = run(lambda store: resolve("domain", store.get_domain, store.get_domain_by_name, ref))
    if json_output:
        print_json(record)
        return

    print_fields(f"Domain: {record.domain} ({record.id})", {
        "Type": record.domain_type.value,
        "SSL": "yes" if record.ssl else "no",
        "SSL expiry": record.ssl_expiry,
        "Server": record.server_id,
        "Container": record.container_id,
        "Cloudflare zone": record.cloudflare_zone_id,
        "Cloudflare record": record.cloudflare_record_id,
        "Notes": record.notes,
    })


@app.command("remove")
def remove_domain(ref: str = typer.Argument(..., help="Domain id or name")):
    """Remove a domain."""

    async def _remove(store):
        record = await resolve("domain", store.get_domain, store.get_domain_by_name, ref)
        if not await store.remove_domain(record.id):
            raise NotFoundError("domain", ref)
        return record

    record = run(_remove)
    console.print(f"[bold green]✓[/bold green] Domain [magenta]{record.domain}[/magenta] removed")
