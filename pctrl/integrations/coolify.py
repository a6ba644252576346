#  pctrl - Coolify Collaborator
#
#  Read-only calls against a Coolify instance's REST API.
#
#  Depends on: config.py, exceptions.py
#  Used by:    container.py, cli/commands/legacy.py

import logging

import httpx

from pctrl.config import PROBE_TIMEOUT
from pctrl.exceptions import CollaboratorError

logger = logging.getLogger("pctrl.coolify")


class CoolifyClient:
    """DeploymentPlatform implementation over httpx."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client

    async def list_deployments(self, url: str, api_key: str) -> list[dict]:
        endpoint = f"{url.rstrip('/')}/api/v1/deployments"
        headers = {"Authorization": f"Bearer {api_key}", "Accept": "application/json"}
        client = self._client or httpx.AsyncClient(timeout=PROBE_TIMEOUT)
        try:
            resp = await client.get(endpoint, headers=headers)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise CollaboratorError(f"Coolify request to {endpoint} failed: {e}") from e
        except ValueError as e:
            raise CollaboratorError(f"Coolify returned invalid JSON: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()
        if not isinstance(data, list):
            raise CollaboratorError(f"Unexpected Coolify response: {type(data).__name__}")
        return data
