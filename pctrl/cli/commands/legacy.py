#  pctrl - Legacy Record Commands
#
#  ssh / docker / coolify / git: the flat connection records that
#  `pctrl migrate` turns into servers and project links.
#
#  Depends on: cli/_common.py, store/legacy.py, integrations/*
#  Used by:    cli/main.py

import typer
from rich.table import Table

from pctrl.cli._common import build, console, container, run, slugify
from pctrl.exceptions import NotFoundError
from pctrl.models.legacy import (
    CoolifyInstance,
    DockerHost,
    GitRepo,
    PasswordAuth,
    PublicKeyAuth,
    SshConnection,
)

ssh_app = typer.Typer(no_args_is_help=True)
docker_app = typer.Typer(no_args_is_help=True)
coolify_app = typer.Typer(no_args_is_help=True)
git_app = typer.Typer(no_args_is_help=True)


def _removed(kind: str, record_id: str) -> None:
    console.print(f"[bold green]✓[/bold green] {kind} [cyan]{record_id}[/cyan] removed")


async def _require(getter, entity: str, record_id: str):
    record = await getter(record_id)
    if record is None:
        raise NotFoundError(entity, record_id)
    return record


# ---------------------------------------------------------------------------
# SSH connections
# ---------------------------------------------------------------------------

@ssh_app.command("list")
def list_ssh():
    """List legacy SSH connections."""
    conns = run(lambda store: store.list_ssh_connections())
    table = Table(title="SSH connections")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Target")
    table.add_column("Auth")
    for c in conns:
        table.add_row(c.id, c.name, f"{c.username}@{c.host}:{c.port}", c.auth_method.kind)
    console.print(table)


@ssh_app.command("add")
def add_ssh(
    name: str = typer.Argument(...),
    host: str = typer.Argument(...),
    username: str = typer.Option(..., "--user", "-u"),
    port: int = typer.Option(22, "--port", "-p"),
    key_path: str | None = typer.Option(None, "--key", "-k", help="Private key path (public-key auth)"),
    conn_id: str | None = typer.Option(None, "--id"),
):
    """Add a legacy SSH connection."""
    auth = build(PublicKeyAuth, key_path=key_path) if key_path else PasswordAuth()
    conn = build(
        SshConnection,
        id=conn_id or slugify(name),
        name=name,
        host=host,
        port=port,
        username=username,
        auth_method=auth,
    )
    run(lambda store: store.save_ssh_connection(conn))
    console.print(f"[bold green]✓[/bold green] SSH connection [magenta]{conn.name}[/magenta] saved ({conn.id})")


@ssh_app.command("remove")
def remove_ssh(conn_id: str = typer.Argument(...)):
    """Remove a legacy SSH connection."""

    async def _remove(store):
        if not await store.remove_ssh_connection(conn_id):
            raise NotFoundError("ssh connection", conn_id)

    run(_remove)
    _removed("SSH connection", conn_id)


# ---------------------------------------------------------------------------
# Docker hosts
# ---------------------------------------------------------------------------

@docker_app.command("list")
def list_docker():
    """List Docker hosts."""
    hosts = run(lambda store: store.list_docker_hosts())
    table = Table(title="Docker hosts")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("URL")
    for h in hosts:
        table.add_row(h.id, h.name, h.url)
    console.print(table)


@docker_app.command("add")
def add_docker(
    name: str = typer.Argument(...),
    url: str = typer.Argument(..., help="e.g. unix:///var/run/docker.sock or tcp://host:2375"),
    host_id: str | None = typer.Option(None, "--id"),
):
    """Add a Docker host."""
    host = build(DockerHost, id=host_id or slugify(name), name=name, url=url)
    run(lambda store: store.save_docker_host(host))
    console.print(f"[bold green]✓[/bold green] Docker host [magenta]{host.name}[/magenta] saved ({host.id})")


@docker_app.command("remove")
def remove_docker(host_id: str = typer.Argument(...)):
    """Remove a Docker host."""

    async def _remove(store):
        if not await store.remove_docker_host(host_id):
            raise NotFoundError("docker host", host_id)

    run(_remove)
    _removed("Docker host", host_id)


# ---------------------------------------------------------------------------
# Coolify instances
# ---------------------------------------------------------------------------

@coolify_app.command("list")
def list_coolify():
    """List Coolify instances."""
    instances = run(lambda store: store.list_coolify_instances())
    table = Table(title="Coolify instances")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("URL")
    for i in instances:
        table.add_row(i.id, i.name, i.url)
    console.print(table)


@coolify_app.command("add")
def add_coolify(
    name: str = typer.Argument(...),
    url: str = typer.Argument(...),
    api_key: str = typer.Option(..., "--api-key"),
    instance_id: str | None = typer.Option(None, "--id"),
):
    """Add a Coolify instance."""
    instance = build(CoolifyInstance, id=instance_id or slugify(name), name=name, url=url, api_key=api_key)
    run(lambda store: store.save_coolify_instance(instance))
    console.print(
        f"[bold green]✓[/bold green] Coolify instance [magenta]{instance.name}[/magenta] saved ({instance.id})"
    )


@coolify_app.command("remove")
def remove_coolify(instance_id: str = typer.Argument(...)):
    """Remove a Coolify instance."""

    async def _remove(store):
        if not await store.remove_coolify_instance(instance_id):
            raise NotFoundError("coolify instance", instance_id)

    run(_remove)
    _removed("Coolify instance", instance_id)


@coolify_app.command("deployments")
def coolify_deployments(instance_id: str = typer.Argument(...)):
    """List deployments on a Coolify instance."""

    async def _list(store):
        instance = await _require(store.get_coolify_instance, "coolify instance", instance_id)
        return await container.deployments().list_deployments(instance.url, instance.api_key)

    deployments = run(_list)
    table = Table(title=f"Deployments on {instance_id}")
    table.add_column("Name", style="magenta")
    table.add_column("Status", style="green")
    for d in deployments:
        table.add_row(str(d.get("application_name") or d.get("name", "")), str(d.get("status", "")))
    console.print(table)


# ---------------------------------------------------------------------------
# Git repositories
# ---------------------------------------------------------------------------

@git_app.command("list")
def list_git():
    """List Git repositories."""
    repos = run(lambda store: store.list_git_repos())
    table = Table(title="Git repositories")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Path")
    table.add_column("Remote")
    for r in repos:
        table.add_row(r.id, r.name, r.path, r.remote_url or "")
    console.print(table)


@git_app.command("add")
def add_git(
    name: str = typer.Argument(...),
    path: str = typer.Argument(..., help="Local repository path"),
    remote_url: str | None = typer.Option(None, "--remote"),
    repo_id: str | None = typer.Option(None, "--id"),
):
    """Add a Git repository."""
    repo = build(GitRepo, id=repo_id or slugify(name), name=name, path=path, remote_url=remote_url)
    run(lambda store: store.save_git_repo(repo))
    console.print(f"[bold green]✓[/bold green] Git repo [magenta]{repo.name}[/magenta] saved ({repo.id})")


@git_app.command("remove")
def remove_git(repo_id: str = typer.Argument(...)):
    """Remove a Git repository."""

    async def _remove(store):
        if not await store.remove_git_repo(repo_id):
            raise NotFoundError("git repo", repo_id)

    run(_remove)
    _removed("Git repo", repo_id)


@git_app.command("tags")
def git_tags(repo_id: str = typer.Argument(...)):
    """List tags of a Git repository."""

    async def _tags(store):
        repo = await _require(store.get_git_repo, "git repo", repo_id)
        return await container.version_control().list_tags(repo.path)

    for tag in run(_tags):
        console.print(tag, markup=False, highlight=False)


@git_app.command("tag")
def git_tag(
    repo_id: str = typer.Argument(...),
    tag: str = typer.Argument(...),
    message: str | None = typer.Option(None, "--message", "-m"),
    push: bool = typer.Option(False, "--push", help="Push tags to the remote afterwards"),
):
    """Create a tag (and optionally push tags)."""

    async def _tag(store):
        repo = await _require(store.get_git_repo, "git repo", repo_id)
        vcs = container.version_control()
        await vcs.create_tag(repo.path, tag, message)
        if push:
            await vcs.push_tags(repo.path)

    run(_tag)
    console.print(f"[bold green]✓[/bold green] Tagged {repo_id} with [cyan]{tag}[/cyan]")
