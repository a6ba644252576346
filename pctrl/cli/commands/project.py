#  pctrl - Project Commands
#
#  Depends on: cli/_common.py, store/store.py
#  Used by:    cli/main.py

import typer
from rich.table import Table

from pctrl.cli._common import (
    build,
    console,
    parse_enum,
    print_fields,
    print_json,
    resolve,
    run,
    slugify,
    split_csv,
)
from pctrl.exceptions import NotFoundError
from pctrl.models.enums import ProjectStatus
from pctrl.models.schemas import Project

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_projects(json_output: bool = typer.Option(False, "--json", help="Output as JSON")):
    """List all projects."""
    projects = run(lambda store: store.list_projects())

    if json_output:
        print_json(projects)
        return
    if not projects:
        console.print("No projects yet. Add one with [cyan]pctrl project add NAME[/cyan].")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Status", style="green")
    table.add_column("Stack")
    for p in projects:
        table.add_row(p.id, p.name, p.status.value, ", ".join(p.stack))
    console.print(table)


@app.command("add")
def add_project(
    name: str = typer.Argument(..., help="Project name"),
    project_id: str | None = typer.Option(None, "--id", help="Project id (default: slug of name)"),
    description: str | None = typer.Option(None, "--description", "-d"),
    stack: str | None = typer.Option(None, "--stack", help="Comma-separated tech stack"),
    status: str = typer.Option("dev", "--status", "-s", help="dev, staging, live or archived"),
    color: str | None = typer.Option(None, "--color"),
    icon: str | None = typer.Option(None, "--icon"),
    notes: str | None = typer.Option(None, "--notes"),
):
    """Add a project."""
    project = build(
        Project,
        id=project_id or slugify(name),
        name=name,
        description=description,
        stack=split_csv(stack),
        status=parse_enum(ProjectStatus, status, "--status"),
        color=color,
        icon=icon,
        notes=notes,
    )
    run(lambda store: store.add_project(project))
    console.print(f"[bold green]✓[/bold green] Project [magenta]{project.name}[/magenta] added ({project.id})")


@app.command("show")
def show_project(
    ref: str = typer.Argument(..., help="Project id or name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show a project and its linked resources."""

    async def _show(store):
        project = await resolve("project", store.get_project, store.get_project_by_name, ref)
        return project, await store.resources_of(project.id)

    project, links = run(_show)
    if json_output:
        print_json(project)
        return

    print_fields(f"Project: {project.name} ({project.id})", {
        "Status": project.status.value,
        "Description": project.description,
        "Stack": project.stack,
        "Color": project.color,
        "Icon": project.icon,
        "Notes": project.notes,
    })
    if links:
        console.print("  [cyan]Resources:[/cyan]")
        for link in links:
            role = f" ({link.role})" if link.role else ""
            console.print(f"    {link.resource_type.value}: {link.resource_id}{role}  [dim]{link.id}[/dim]")


@app.command("remove")
def remove_project(ref: str = typer.Argument(..., help="Project id or name")):
    """Remove a project and all of its resource links."""

    async def _remove(store):
        project = await resolve("project", store.get_project, store.get_project_by_name, ref)
        if not await store.remove_project(project.id):
            raise NotFoundError("project", ref)
        return project

    project = run(_remove)
    console.print(f"[bold green]✓[/bold green] Project [magenta]{project.name}[/magenta] removed")
