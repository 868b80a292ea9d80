import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from ..core.models import ApplyOutput
from .base import ClusterTransport


class KubectlTransport(ClusterTransport):
    """Applies manifests with `kubectl apply -f`"""

    def __init__(self, kubectl: str = "kubectl", extra_args: Optional[List[str]] = None):
        self.kubectl = kubectl
        self.extra_args = list(extra_args or [])
        self.logger = logging.getLogger(__name__)

    async def apply(self, manifest_path: Path) -> ApplyOutput:
        cmd = [self.kubectl, "apply", "-f", str(manifest_path), *self.extra_args]
        self.logger.debug(f"Running {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            return ApplyOutput(stdout="", stderr=f"Cannot run {self.kubectl}: {e}", returncode=127)

        stdout, stderr = await process.communicate()

        return ApplyOutput(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            returncode=process.returncode
        )
