#  pctrl - Status Command
#
#  Probes every stored server, Docker host and Coolify instance.
#
#  Depends on: cli/_common.py, services/resource_monitor.py
#  Used by:    cli/main.py

from rich.table import Table

from pctrl.cli._common import console, container, run
from pctrl.models.enums import ResourceStatus

_STATUS_STYLE = {
    ResourceStatus.ONLINE: "green",
    ResourceStatus.OFFLINE: "red",
    ResourceStatus.UNKNOWN: "yellow",
}


def status():
    """Check reachability of servers, Docker hosts and Coolify instances."""

    async def _check(store):
        monitor = container.resource_monitor(store=store)
        try:
            return await monitor.check_all()
        finally:
            await monitor.close()

    states = run(_check)
    if not states:
        console.print("Nothing to check yet.")
        return

    table = Table(title="Status")
    table.add_column("Kind", style="dim")
    table.add_column("Name", style="magenta")
    table.add_column("Status")
    table.add_column("Via")
    for s in states:
        style = _STATUS_STYLE[s.status]
        table.add_row(s.category.value, s.name, f"[{style}]{s.status.value}[/{style}]", s.method)
    console.print(table)
