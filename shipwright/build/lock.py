"""
Exclusive run lock on the output root.

Build and deploy both write under the output root, so only one of them may
run at a time against a given checkout.
"""
import asyncio
import fcntl
import logging
import os
import time
from pathlib import Path
from typing import IO, Optional


class RunLock:
    """
    fcntl.flock on `<output_root>/.shipwright.lock`.
    The kernel drops the lock if the holding process dies.
    """

    LOCK_FILE_NAME = ".shipwright.lock"
    POLL_INTERVAL = 0.5

    def __init__(self, output_root: Path, timeout: float = 30):
        """
        Args:
            output_root: Directory holding all build outputs
            timeout: Seconds to wait for another run to finish
        """
        self.path = Path(output_root) / self.LOCK_FILE_NAME
        self.timeout = timeout
        self._handle: Optional[IO[str]] = None
        self.logger = logging.getLogger(__name__)

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.release()
        return False

    def _try_lock(self) -> Optional[IO[str]]:
        handle = open(self.path, 'a+')
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            handle.close()
            return None
        except OSError:
            handle.close()
            raise
        return handle

    def holder(self) -> Optional[int]:
        """Pid recorded by the current holder, if readable"""
        try:
            content = self.path.read_text().strip()
        except OSError:
            return None
        return int(content) if content.isdigit() else None

    async def acquire(self) -> None:
        """
        Wait for the lock.

        Raises:
            TimeoutError: If another run still holds it after `timeout` seconds
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + self.timeout

        handle = self._try_lock()
        while handle is None:
            if time.monotonic() >= deadline:
                holder = self.holder()
                owner = f" (held by pid {holder})" if holder else ""
                raise TimeoutError(
                    f"Could not acquire {self.path} within {self.timeout}s{owner}. "
                    "Another build or deploy is running."
                )
            self.logger.debug(f"Waiting for run lock {self.path}")
            await asyncio.sleep(self.POLL_INTERVAL)
            handle = self._try_lock()

        handle.seek(0)
        handle.truncate()
        handle.write(f"{os.getpid()}\n")
        handle.flush()
        self._handle = handle
        self.logger.debug(f"Run lock acquired: {self.path}")

    async def release(self) -> None:
        if self._handle is None:
            return

        fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        self._handle.close()
        self._handle = None
        self.logger.debug("Run lock released")
