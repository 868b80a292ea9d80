"""
Decides whether a unit of work must be (re)processed.

Two signals are combined with OR:
  1. history diff of the unit's files between the two most recent commits
  2. the persisted fingerprint against a freshly computed one
Either one can force processing; missing information always counts as changed.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional
import logging

from ..core.enums import EventType
from ..core.events import EventEmitter
from ..core.exceptions import DiffError, VersionControlError
from ..adapters.base import VersionControl
from .hasher import Fingerprinter, hash_bytes
from .metadata import read_fingerprint


@dataclass(frozen=True)
class RevisionPair:
    """The fixed pair of revisions every diff in a run compares"""
    head: str
    previous: str


class ChangeOracle:
    """Combines history and fingerprint signals into a rebuild decision"""

    def __init__(
        self,
        vcs: VersionControl,
        fingerprinter: Fingerprinter,
        emitter: EventEmitter,
        revisions: Optional[RevisionPair] = None
    ):
        """
        Initialize change oracle.

        Args:
            vcs: Version-control client
            fingerprinter: Fingerprinter for the current input digest
            emitter: Event channel for diff events
            revisions: Revision pair; set by resolve_revisions() once per run
        """
        self.vcs = vcs
        self.fingerprinter = fingerprinter
        self.emitter = emitter
        self.revisions = revisions
        self.logger = logging.getLogger(__name__)

    async def resolve_revisions(self) -> Optional[RevisionPair]:
        """
        Capture the two most recent commits for the rest of the run.

        Returns:
            RevisionPair, or None when there is no usable history
            (not a repository, first commit, lookup failure)
        """
        self.revisions = None

        try:
            commits = await self.vcs.last_two_commits()
        except VersionControlError as e:
            self.logger.warning(f"History unavailable, assuming everything changed: {e}")
            self.emitter.emit(EventType.DIFF_ERROR, build=None, file=None, errors=[DiffError(None, e)])
            return None

        if len(commits) < 2:
            self.logger.info(
                f"Only {len(commits)} commit(s) in history, assuming everything changed"
            )
            return None

        self.revisions = RevisionPair(head=commits[0], previous=commits[1])
        self.logger.debug(
            f"Comparing revisions {self.revisions.previous[:8]}..{self.revisions.head[:8]}"
        )
        return self.revisions

    async def file_changed(
        self,
        file: str,
        build: Optional[str] = None,
        event: EventType = EventType.DIFF_FILE
    ) -> bool:
        """
        Compare one cwd-relative file between the two revisions.
        Any read failure counts as changed and is reported, not raised.
        """
        if self.revisions is None:
            return True

        try:
            current = await self.vcs.show(self.revisions.head, file)
            previous = await self.vcs.show(self.revisions.previous, file)
        except VersionControlError as e:
            self.logger.debug(f"Diff lookup failed for {file}: {e}")
            self.emitter.emit(EventType.DIFF_ERROR, build=build, file=file, errors=[DiffError(file, e)])
            return True

        current_hash = hash_bytes(current)
        previous_hash = hash_bytes(previous)
        changed = current_hash != previous_hash

        if event == EventType.DIFF_DEPENDENCY:
            self.emitter.emit(
                event,
                dependency=file,
                changed=changed,
                current_hash=current_hash,
                previous_hash=previous_hash
            )
        else:
            self.emitter.emit(
                event,
                build=build,
                file=file,
                changed=changed,
                current_hash=current_hash,
                previous_hash=previous_hash
            )

        return changed

    async def history_changed(
        self,
        files: Iterable[str],
        build: Optional[str] = None,
        event: EventType = EventType.DIFF_FILE
    ) -> bool:
        """
        History signal over a set of files.
        Every file is compared so each gets its own diff event.
        """
        if self.revisions is None:
            return True

        changed = False
        for file in files:
            if await self.file_changed(file, build=build, event=event):
                changed = True
        return changed

    async def changed_files(
        self,
        files: Iterable[str],
        event: EventType = EventType.DIFF_DEPENDENCY
    ) -> List[str]:
        """Files whose content differs between the revisions (or cannot be compared)"""
        return [file for file in files if await self.file_changed(file, event=event)]

    async def needs_processing(
        self,
        input_files: List[str],
        persisted_fingerprint_path: Path,
        previous_fingerprint: Optional[str] = None,
        force: bool = False,
        build: Optional[str] = None
    ) -> bool:
        """
        Decide whether a unit must be rebuilt.

        Args:
            input_files: cwd-relative input files
            persisted_fingerprint_path: Sidecar file holding the last fingerprint
            previous_fingerprint: Already-read persisted value, skips the file read
            force: Bypass both signals
            build: Unit identifier for events

        Returns:
            True if the unit needs processing

        Raises:
            InputReadError: If an input file cannot be hashed
            OSError: If the fingerprint file exists but cannot be read
        """
        if force:
            return True

        if await self.history_changed(input_files, build=build):
            return True

        if previous_fingerprint is None:
            previous_fingerprint = read_fingerprint(persisted_fingerprint_path)
            if previous_fingerprint is None:
                self.logger.debug(f"No persisted fingerprint at {persisted_fingerprint_path}")
                return True

        current_fingerprint = self.fingerprinter.compute_fingerprint(input_files)

        if current_fingerprint != previous_fingerprint:
            self.logger.debug(
                f"Fingerprint changed for {build}: {previous_fingerprint} -> {current_fingerprint}"
            )
            return True

        return False
