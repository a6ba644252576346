#  pctrl - Script Commands
#
#  Depends on: cli/_common.py, store/store.py, services/script_runner.py
#  Used by:    cli/main.py

import typer
from rich.table import Table

from pctrl.cli._common import (
    build,
    console,
    container,
    parse_enum,
    print_fields,
    print_json,
    resolve,
    run,
    slugify,
)
from pctrl.exceptions import NotFoundError
from pctrl.models.enums import ScriptResult, ScriptType
from pctrl.models.schemas import Script

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_scripts(
    project: str | None = typer.Option(None, "--project", "-p", help="Only scripts of this project id"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List saved scripts."""
    if project:
        scripts = run(lambda store: store.list_scripts_for_project(project))
    else:
        scripts = run(lambda store: store.list_scripts())

    if json_output:
        print_json(scripts)
        return
    if not scripts:
        console.print("No scripts yet. Add one with [cyan]pctrl script add NAME COMMAND[/cyan].")
        return

    table = Table(title="Scripts")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Type", style="green")
    table.add_column("Target")
    table.add_column("Last result")
    for s in scripts:
        target = s.server_id or s.container_id or ""
        name = f"{s.name} [red](!)[/red]" if s.dangerous else s.name
        table.add_row(s.id, name, s.script_type.value, target, s.last_result.value if s.last_result else "")
    console.print(table)


@app.command("add")
def add_script(
    name: str = typer.Argument(..., help="Script name"),
    command: str = typer.Argument(..., help="Shell command to run"),
    script_id: str | None = typer.Option(None, "--id", help="Script id (default: slug of name)"),
    script_type: str = typer.Option("ssh", "--type", "-t", help="ssh, local or docker"),
    description: str | None = typer.Option(None, "--description", "-d"),
    server: str | None = typer.Option(None, "--server", help="Server id (ssh scripts)"),
    project: str | None = typer.Option(None, "--project", "-p", help="Project id"),
    docker_host: str | None = typer.Option(None, "--docker-host", help="Docker host id (docker scripts)"),
    container_id: str | None = typer.Option(None, "--container", help="Container id (docker scripts)"),
    dangerous: bool = typer.Option(False, "--dangerous", help="Require --force to run"),
):
    """Add a script."""
    record = build(
        Script,
        id=script_id or slugify(name),
        name=name,
        description=description,
        command=command,
        script_type=parse_enum(ScriptType, script_type, "--type"),
        server_id=server,
        project_id=project,
        docker_host_id=docker_host,
        container_id=container_id,
        dangerous=dangerous,
    )
    run(lambda store: store.add_script(record))
    console.print(f"[bold green]✓[/bold green] Script [magenta]{record.name}[/magenta] added ({record.id})")


@app.command("show")
def show_script(
    ref: str = typer.Argument(..., help="Script id or name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show a script and its last run."""
    record = run(lambda store: resolve("script", store.get_script, store.get_script_by_name, ref))
    if json_output:
        print_json(record)
        return

    print_fields(f"Script: {record.name} ({record.id})", {
        "Command": record.command,
        "Type": record.script_type.value,
        "Description": record.description,
        "Server": record.server_id,
        "Project": record.project_id,
        "Docker host": record.docker_host_id,
        "Container": record.container_id,
        "Dangerous": "yes" if record.dangerous else None,
        "Last run": record.last_run.isoformat() if record.last_run else None,
        "Last result": record.last_result.value if record.last_result else None,
        "Exit code": record.exit_code,
    })
    if record.last_output:
        console.print("  [cyan]Last output:[/cyan]")
        console.print(record.last_output, markup=False, highlight=False)


@app.command("remove")
def remove_script(ref: str = typer.Argument(..., help="Script id or name")):
    """Remove a script."""

    async def _remove(store):
        record = await resolve("script", store.get_script, store.get_script_by_name, ref)
        if not await store.remove_script(record.id):
            raise NotFoundError("script", ref)
        return record

    record = run(_remove)
    console.print(f"[bold green]✓[/bold green] Script [magenta]{record.name}[/magenta] removed")


@app.command("run")
def run_script(
    ref: str = typer.Argument(..., help="Script id or name"),
    force: bool = typer.Option(False, "--force", "-f", help="Run even if marked dangerous"),
):
    """Run a script and record its result."""
    outcome = run(lambda store: container.script_runner(store=store).run(ref, force=force))

    if outcome.output:
        console.print(outcome.output, markup=False, highlight=False)
    if outcome.result == ScriptResult.SUCCESS:
        console.print(f"[bold green]✓[/bold green] {outcome.script_id} succeeded")
        return
    console.print(f"[bold red]✗[/bold red] {outcome.script_id} failed (exit {outcome.exit_code})")
    raise typer.Exit(1)
