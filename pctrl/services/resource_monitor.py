#  pctrl - Resource Monitor
#
#  Health checks for stored servers, Docker hosts and Coolify instances.
#  All I/O is async (httpx + asyncio). Every probe races a PROBE_TIMEOUT
#  timer; a timeout is reported exactly like a failed probe (offline).
#
#  Depends on: config.py, store/store.py
#  Used by:    container.py, cli/commands/status.py

import asyncio
import logging
from dataclasses import dataclass, field
from urllib.parse import urlparse

import httpx

from pctrl.config import PROBE_DEFAULT_SSH_PORT, PROBE_TIMEOUT
from pctrl.exceptions import StorageError
from pctrl.models.enums import ResourceStatus, ResourceType
from pctrl.store.store import Store

logger = logging.getLogger("pctrl.resource_monitor")


@dataclass
class ResourceDef:
    id: str
    name: str
    host: str
    port: int
    health_url: str | None
    category: ResourceType = ResourceType.SERVER


@dataclass
class ResourceState:
    id: str
    name: str
    status: ResourceStatus = ResourceStatus.OFFLINE
    method: str = ""
    details: dict = field(default_factory=dict)
    category: ResourceType = ResourceType.SERVER


# ---------------------------------------------------------------------------
# Resource definitions (built from the store)
# ---------------------------------------------------------------------------

_DOCKER_DEFAULT_PORT = 2375


async def _server_port(store: Store, credential_id: str | None) -> int:
    if not credential_id:
        return PROBE_DEFAULT_SSH_PORT
    try:
        credential = await store.get_credential(credential_id)
    except StorageError as e:
        logger.warning("Cannot read credential %s, probing default SSH port: %s", credential_id, e)
        return PROBE_DEFAULT_SSH_PORT
    ssh = credential.as_ssh() if credential else None
    return ssh.port if ssh else PROBE_DEFAULT_SSH_PORT


async def build_resources(store: Store) -> list[ResourceDef]:
    """Build probe definitions from stored records."""
    resources = []

    for server in await store.list_servers():
        resources.append(ResourceDef(
            id=f"server_{server.id}",
            name=server.name,
            host=server.host,
            port=await _server_port(store, server.credential_id),
            health_url=None,
            category=ResourceType.SERVER,
        ))

    for host in await store.list_docker_hosts():
        parsed = urlparse(host.url)
        if parsed.scheme in ("tcp", "http", "https") and parsed.hostname:
            port = parsed.port or _DOCKER_DEFAULT_PORT
            scheme = "https" if parsed.scheme == "https" else "http"
            health_url = f"{scheme}://{parsed.hostname}:{port}/_ping"
            hostname = parsed.hostname
        else:
            # unix:// sockets and other local transports have no network probe
            port, health_url, hostname = 0, None, ""
        resources.append(ResourceDef(
            id=f"docker_{host.id}",
            name=host.name,
            host=hostname,
            port=port,
            health_url=health_url,
            category=ResourceType.CONTAINER,
        ))

    for instance in await store.list_coolify_instances():
        parsed = urlparse(instance.url)
        default_port = 443 if parsed.scheme == "https" else 80
        resources.append(ResourceDef(
            id=f"coolify_{instance.id}",
            name=instance.name,
            host=parsed.hostname or "",
            port=parsed.port or default_port,
            health_url=f"{instance.url.rstrip('/')}/api/health",
            category=ResourceType.COOLIFY,
        ))

    return resources


# ---------------------------------------------------------------------------
# Health check helpers (async)
# ---------------------------------------------------------------------------

async def _check_tcp(host: str, port: int) -> bool:
    """Async TCP connection check."""
    try:
        _, writer = await asyncio.open_connection(host, port)
        writer.close()
        await writer.wait_closed()
        return True
    except OSError:
        return False


async def _check_http(url: str, client: httpx.AsyncClient) -> bool:
    try:
        resp = await client.get(url)
    except httpx.HTTPError:
        return False
    return 200 <= resp.status_code < 300


async def _check_resource(res: ResourceDef, client: httpx.AsyncClient) -> ResourceState:
    """Check a single resource's health."""
    state = ResourceState(id=res.id, name=res.name, category=res.category)

    if not res.host:
        state.status = ResourceStatus.UNKNOWN
        state.method = "none"
        return state

    # HTTP check
    if res.health_url and await _check_http(res.health_url, client):
        state.status = ResourceStatus.ONLINE
        state.method = "http"
        return state

    # TCP fallback
    if res.port > 0 and await _check_tcp(res.host, res.port):
        state.status = ResourceStatus.ONLINE
        state.method = "tcp"
        return state

    state.status = ResourceStatus.OFFLINE
    state.method = "none"
    return state


async def probe(res: ResourceDef, client: httpx.AsyncClient, timeout: float = PROBE_TIMEOUT) -> ResourceState:
    """Run one health check against a timer. No answer in time means offline."""
    try:
        return await asyncio.wait_for(_check_resource(res, client), timeout=timeout)
    except asyncio.TimeoutError:
        logger.debug("Probe %s timed out after %.1fs", res.id, timeout)
        return ResourceState(
            id=res.id,
            name=res.name,
            status=ResourceStatus.OFFLINE,
            method="timeout",
            details={"timeout_sec": timeout},
            category=res.category,
        )


# ---------------------------------------------------------------------------
# Monitor class
# ---------------------------------------------------------------------------

class ResourceMonitor:
    """Checks resource health on demand and caches the last results.

    All state mutations happen on the event loop. Checks run concurrently
    via asyncio.gather but cache updates are serial.
    """

    def __init__(self, store: Store):
        self._store = store
        self._states: dict[str, ResourceState] = {}
        self._http: httpx.AsyncClient | None = None

    async def check_all(self) -> list[ResourceState]:
        """Probe every stored resource concurrently. Updates cache."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=PROBE_TIMEOUT)
        resources = await build_resources(self._store)
        states = await asyncio.gather(*[probe(res, self._http) for res in resources])
        for state in states:
            self._states[state.id] = state
        return list(states)

    def get_all(self) -> list[ResourceState]:
        """Return cached states (sync, no I/O)."""
        return list(self._states.values())

    def get(self, resource_id: str) -> ResourceState | None:
        return self._states.get(resource_id)

    def is_available(self, resource_id: str) -> bool:
        state = self._states.get(resource_id)
        return state is not None and state.status == ResourceStatus.ONLINE

    async def close(self):
        if self._http:
            await self._http.aclose()
            self._http = None
