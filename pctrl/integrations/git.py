#  pctrl - Git Collaborator
#
#  Tag operations on a local repository via the git binary. Stateless;
#  sync subprocess calls are wrapped in asyncio.to_thread() with a
#  configurable timeout.
#
#  Depends on: config.py, exceptions.py
#  Used by:    container.py, cli/commands/legacy.py

import asyncio
import logging
import subprocess
from pathlib import Path

from pctrl.config import GIT_COMMAND_TIMEOUT
from pctrl.exceptions import CollaboratorError

logger = logging.getLogger("pctrl.git")


class GitCli:
    """VersionControl implementation backed by the ``git`` command."""

    @staticmethod
    def _run_git_sync(*args: str, cwd: str | Path, timeout: int | None = None) -> str:
        """Run a git command synchronously. Raises CollaboratorError on failure."""
        cmd = ["git"] + list(args)
        timeout = timeout or GIT_COMMAND_TIMEOUT
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise CollaboratorError(f"Git command timed out after {timeout}s: {' '.join(cmd)}")
        except OSError as e:
            raise CollaboratorError(f"Failed to run git: {e}")

        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise CollaboratorError(f"git {args[0]} failed (rc={result.returncode}): {stderr}")

        return result.stdout.strip()

    async def list_tags(self, repo_path: str) -> list[str]:
        out = await asyncio.to_thread(self._run_git_sync, "tag", "--list", cwd=repo_path)
        return [line for line in out.splitlines() if line]

    async def create_tag(self, repo_path: str, tag: str, message: str | None = None) -> None:
        if message:
            await asyncio.to_thread(self._run_git_sync, "tag", "-a", tag, "-m", message, cwd=repo_path)
        else:
            await asyncio.to_thread(self._run_git_sync, "tag", tag, cwd=repo_path)
        logger.info("Created tag %s in %s", tag, repo_path)

    async def push_tags(self, repo_path: str) -> None:
        await asyncio.to_thread(self._run_git_sync, "push", "--tags", cwd=repo_path)
        logger.info("Pushed tags from %s", repo_path)
