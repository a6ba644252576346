#  pctrl - CLI Entry Point
#
#  Typer application: entity sub-commands, links, legacy records,
#  migrate and status. Configures logging and validates config before
#  any command runs.
#
#  Depends on: cli/commands/*, config.py, logging_config.py
#  Used by:    run.py, `pctrl` console script

import uuid

import typer

from pctrl import config
from pctrl.cli._common import fail
from pctrl.cli.commands import credential, database, domain, legacy, links, migrate, project, script, server, status
from pctrl.logging_config import set_command_id, setup_logging

app = typer.Typer(
    name="pctrl",
    help="Local control panel for self-hosted infrastructure.",
    add_completion=False,
    no_args_is_help=True,
)

# Entity sub-commands
app.add_typer(project.app, name="project", help="Manage projects")
app.add_typer(server.app, name="server", help="Manage servers")
app.add_typer(domain.app, name="domain", help="Manage domains")
app.add_typer(database.app, name="database", help="Manage database credentials")
app.add_typer(script.app, name="script", help="Manage and run scripts")
app.add_typer(credential.app, name="credential", help="Manage encrypted credentials")

# Legacy records
app.add_typer(legacy.ssh_app, name="ssh", help="Legacy SSH connections")
app.add_typer(legacy.docker_app, name="docker", help="Legacy Docker hosts")
app.add_typer(legacy.coolify_app, name="coolify", help="Legacy Coolify instances")
app.add_typer(legacy.git_app, name="git", help="Legacy Git repositories")

# Top-level commands
app.command()(links.link)
app.command()(links.unlink)
app.command()(links.links)
app.command()(migrate.migrate)
app.command()(status.status)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
):
    """pctrl: projects, servers, domains, databases, scripts and credentials."""
    setup_logging(level=config.LOG_LEVEL, fmt=config.LOG_FORMAT, verbose=verbose)
    set_command_id(uuid.uuid4().hex[:8])
    try:
        config.validate_config()
    except config.ConfigError as e:
        raise fail(str(e)) from e


if __name__ == "__main__":
    app()
