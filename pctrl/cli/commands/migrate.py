#  pctrl - Migrate Command
#
#  Interactive (or --auto) conversion of legacy records into servers and
#  project links.
#
#  Depends on: cli/_common.py, services/legacy_migration.py
#  Used by:    cli/main.py

import typer

from pctrl.cli._common import console, container, run
from pctrl.models.schemas import Project


def _confirm(prompt: str) -> bool:
    return typer.confirm(prompt, default=True)


def _choose_project(label: str, projects: list[Project]) -> str | None:
    console.print(f"Link {label} to a project?")
    for i, p in enumerate(projects, start=1):
        console.print(f"  [cyan]{i}[/cyan]) {p.name}")
    choice = typer.prompt("Project number (0 to skip)", default=0, type=int)
    if 1 <= choice <= len(projects):
        return projects[choice - 1].id
    return None


def migrate(
    auto: bool = typer.Option(False, "--auto", help="Create servers without prompting; skip linking"),
    cleanup: bool = typer.Option(False, "--cleanup", help="Remove migrated legacy SSH connections"),
):
    """Migrate legacy SSH/Docker/Coolify/Git records to the project model."""
    report = run(
        lambda store: container.legacy_migrator(store=store).migrate(
            auto=auto,
            cleanup=cleanup,
            confirm=_confirm,
            choose_project=_choose_project,
        )
    )

    for server_id in report.servers_created:
        console.print(f"[bold green]✓[/bold green] Server [cyan]{server_id}[/cyan] created")
    for server_id in report.servers_skipped:
        console.print(f"[yellow]-[/yellow] Server [cyan]{server_id}[/cyan] skipped (already exists)")
    for server_id in report.servers_declined:
        console.print(f"[yellow]-[/yellow] Server [cyan]{server_id}[/cyan] not created")
    for server_id in report.servers_retargeted:
        console.print(f"[bold green]✓[/bold green] Server [cyan]{server_id}[/cyan] moved to its migrated credential")
    for cred_id in report.credentials_created:
        console.print(f"[bold green]✓[/bold green] Credential [cyan]{cred_id}[/cyan] created")
    if report.links_created:
        console.print(f"[bold green]✓[/bold green] {len(report.links_created)} link(s) created")
    for conn_id in report.legacy_removed:
        console.print(f"[bold green]✓[/bold green] Legacy SSH connection [cyan]{conn_id}[/cyan] removed")
    if not report.changed:
        console.print("Nothing to migrate.")
