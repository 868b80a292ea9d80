"""
Git history access through the git command line.
"""
import asyncio
import logging
from pathlib import Path
from typing import List

from ..core.exceptions import VersionControlError
from .base import VersionControl


class GitClient(VersionControl):
    """Runs git in the repository working directory"""

    def __init__(self, cwd: Path, git_binary: str = "git"):
        """
        Initialize git client.

        Args:
            cwd: Working tree root
            git_binary: git executable name or path
        """
        self.cwd = Path(cwd)
        self.git_binary = git_binary
        self.logger = logging.getLogger(__name__)

    async def _run(self, *args: str) -> bytes:
        """Run a git command and return stdout; non-zero exit raises"""
        cmd = [self.git_binary, *args]
        self.logger.debug(f"Running {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.cwd)
            )
        except OSError as e:
            raise VersionControlError(f"Cannot run {self.git_binary}: {e}") from e

        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise VersionControlError(
                f"git {args[0]} failed with exit code {process.returncode}: {message}"
            )

        return stdout

    async def last_two_commits(self) -> List[str]:
        output = await self._run("log", "-n", "2", "--format=%H")
        return [line.strip() for line in output.decode().splitlines() if line.strip()]

    async def show(self, revision: str, path: str) -> bytes:
        # "./" makes git resolve the path against cwd, not the repository root
        return await self._run("show", f"{revision}:./{path}")
