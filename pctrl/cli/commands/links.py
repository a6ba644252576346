#  pctrl - Link Commands
#
#  link / unlink / links: edges between projects and resources.
#
#  Depends on: cli/_common.py, store/resources.py
#  Used by:    cli/main.py

import typer
from rich.table import Table

from pctrl.cli._common import console, parse_enum, print_json, resolve, run
from pctrl.exceptions import NotFoundError
from pctrl.models.enums import ResourceType


def link(
    project: str = typer.Argument(..., help="Project id or name"),
    resource_type: str = typer.Argument(..., help="server, container, database, domain, git, coolify or script"),
    resource_id: str = typer.Argument(..., help="Id of the resource"),
    role: str | None = typer.Option(None, "--role", "-r", help="e.g. production, database, repository"),
    notes: str | None = typer.Option(None, "--notes"),
):
    """Link a resource to a project."""
    kind = parse_enum(ResourceType, resource_type, "RESOURCE_TYPE")

    async def _link(store):
        p = await resolve("project", store.get_project, store.get_project_by_name, project)
        return p, await store.link(p.id, kind, resource_id, role=role, notes=notes)

    p, link_id = run(_link)
    console.print(
        f"[bold green]✓[/bold green] Linked {kind.value} [cyan]{resource_id}[/cyan] "
        f"to [magenta]{p.name}[/magenta] ({link_id})"
    )


def unlink(link_id: str = typer.Argument(..., help="Link id (see `pctrl links PROJECT`)")):
    """Remove a project-resource link."""

    async def _unlink(store):
        if not await store.unlink(link_id):
            raise NotFoundError("link", link_id)

    run(_unlink)
    console.print(f"[bold green]✓[/bold green] Link {link_id} removed")


def links(
    project: str = typer.Argument(..., help="Project id or name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List the resources linked to a project."""

    async def _links(store):
        p = await resolve("project", store.get_project, store.get_project_by_name, project)
        return p, await store.resources_of(p.id)

    p, records = run(_links)
    if json_output:
        print_json(records)
        return
    if not records:
        console.print(f"Project [magenta]{p.name}[/magenta] has no linked resources.")
        return

    table = Table(title=f"Resources of {p.name}")
    table.add_column("Link", style="dim", no_wrap=True)
    table.add_column("Type", style="green")
    table.add_column("Resource", style="cyan")
    table.add_column("Role")
    for r in records:
        table.add_row(r.id, r.resource_type.value, r.resource_id, r.role or "")
    console.print(table)
