"""
Build pipeline: discover, lint, decide, bundle and record every build unit.
"""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from ..adapters.base import Bundler, DependencyExtractor, LintEngine, VersionControl
from ..config.settings import ShipwrightConfig, load_yaml_file
from ..core.enums import EventType
from ..core.events import EventEmitter
from ..core.exceptions import BundleError, InputReadError, LintEngineError, LintError
from ..core.models import BuildReport, BuildUnit, PackageDescriptor
from ..utils.merge import deep_merge
from .change_detector import ChangeOracle
from .hasher import Fingerprinter
from .lock import RunLock
from .metadata import ArtifactStore
from .scanner import BuildScanner


class UnitOutcome(Enum):
    BUILT = "built"
    SKIPPED = "skipped"
    FAILED = "failed"
    ABORT = "abort"


class BuildPipeline:
    """
    Main orchestrator for the build phase.
    Units are processed one at a time, in discovery order.
    """

    def __init__(
        self,
        config: ShipwrightConfig,
        emitter: EventEmitter,
        extractor: DependencyExtractor,
        linter: LintEngine,
        bundler: Bundler,
        vcs: VersionControl,
        fingerprinter: Optional[Fingerprinter] = None,
        store: Optional[ArtifactStore] = None,
        lock_manager: Optional[RunLock] = None
    ):
        """
        Initialize build pipeline.

        Args:
            config: Run configuration
            emitter: Event channel
            extractor: Dependency extractor
            linter: Lint engine
            bundler: Bundler
            vcs: Version-control client for the history signal
            fingerprinter: Defaults to one rooted at config.cwd
            store: Defaults to one rooted at config.output_root
            lock_manager: Defaults to a lock on config.output_root
        """
        self.config = config
        self.emitter = emitter
        self.linter = linter
        self.bundler = bundler

        self.scanner = BuildScanner(config, extractor)
        self.fingerprinter = fingerprinter or Fingerprinter(config.root, config.hash_length)
        self.store = store or ArtifactStore(
            config.output_root,
            fingerprint_file=config.fingerprint_file,
            descriptor_file=config.descriptor_file,
            artifact_name=config.artifact_name
        )
        self.lock_manager = lock_manager or RunLock(config.output_root, config.lock_timeout)
        self.oracle = ChangeOracle(vcs, self.fingerprinter, emitter)
        self.logger = logging.getLogger(__name__)

    async def run(self) -> BuildReport:
        """
        Build every unit whose inputs changed.

        Returns:
            BuildReport; success is False if any unit failed or the run aborted
        """
        self.logger.info("Starting build process...")

        async with self.lock_manager:
            return await self._run()

    async def _run(self) -> BuildReport:
        units = self.scanner.scan_units()
        report = BuildReport(units=[unit.name for unit in units])

        self.emitter.emit(EventType.BUILDS, builds=[unit.build for unit in units])

        lint_config = load_yaml_file(self.config.lint_config_path)
        bundle_config = load_yaml_file(self.config.bundle_config_path)

        if not self.config.force:
            await self.oracle.resolve_revisions()

        for unit in units:
            outcome = await self._process_unit(unit, lint_config, bundle_config)

            if outcome == UnitOutcome.BUILT:
                report.built.append(unit.name)
            elif outcome == UnitOutcome.SKIPPED:
                report.skipped.append(unit.name)
            else:
                report.failed.append(unit.name)
                report.success = False

                if outcome == UnitOutcome.ABORT:
                    self.logger.error(f"Build aborted at {unit.name}")
                    return report

        self.emitter.emit(
            EventType.BUILD_STATS,
            files=[unit.build for unit in units],
            built=list(report.built),
            skipped=list(report.skipped),
            failed=list(report.failed)
        )

        self.logger.info(
            f"Build process complete: built={len(report.built)}, "
            f"skipped={len(report.skipped)}, failed={len(report.failed)}"
        )
        return report

    def _failure(self) -> UnitOutcome:
        return UnitOutcome.ABORT if self.config.fail_fast else UnitOutcome.FAILED

    async def _process_unit(
        self,
        unit: BuildUnit,
        lint_config: Dict[str, Any],
        bundle_config: Dict[str, Any]
    ) -> UnitOutcome:
        try:
            inputs = self.scanner.resolve_inputs(unit)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to resolve dependencies for {unit.name}: {e}")
            self.emitter.emit(
                EventType.BUILD_ERROR, build=unit.build, file=unit.file,
                errors=[InputReadError(unit.file, e)]
            )
            return self._failure()

        self.emitter.emit(
            EventType.BUILD_DEPENDENCIES, build=unit.build, dependencies=inputs, file=unit.file
        )

        try:
            lint_outcome = self._lint_unit(unit, inputs, lint_config)
        except (InputReadError, LintEngineError) as e:
            self.emitter.emit(EventType.BUILD_ERROR, build=unit.build, file=unit.file, errors=[e])
            return self._failure()

        if lint_outcome is not None:
            return lint_outcome

        try:
            needs_build = await self.oracle.needs_processing(
                inputs,
                self.store.get_fingerprint_path(unit.output_dir),
                force=self.config.force,
                build=unit.build
            )
        except (InputReadError, OSError) as e:
            self.logger.error(f"Change detection failed for {unit.name}: {e}")
            self.emitter.emit(EventType.BUILD_ERROR, build=unit.build, file=unit.file, errors=[e])
            return self._failure()

        if not needs_build:
            self.emitter.emit(EventType.BUILD_SKIP, build=unit.build, file=unit.file)
            self.logger.debug(f"Unit unchanged: {unit.name}")
            return UnitOutcome.SKIPPED

        self.emitter.emit(
            EventType.BUILD_READY, build=unit.build, build_name=unit.name,
            file=unit.file, forced=self.config.force
        )

        return await self._bundle_unit(unit, inputs, bundle_config)

    def _lint_unit(
        self,
        unit: BuildUnit,
        inputs: List[str],
        lint_config: Dict[str, Any]
    ) -> Optional[UnitOutcome]:
        """
        Lint every input file.

        Returns:
            None when the unit is clean, otherwise the failure outcome
        """
        lint_errors: List[Dict[str, Any]] = []

        for target in inputs:
            try:
                content = (self.config.root / target).read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError) as e:
                raise InputReadError(target, e) from e

            file_report = self.linter.lint(content, target, lint_config)

            if file_report.error_count > 0:
                errors = [dict(message.to_dict(), file=target) for message in file_report.errors]
                lint_errors.extend(errors)

                self.emitter.emit(
                    EventType.LINT_FILE_ERROR, build=unit.build, file=target, errors=errors
                )

                if self.config.fail_fast:
                    break
                continue

            self.emitter.emit(
                EventType.LINT_FILE, build=unit.build, file=target, report=file_report
            )

        if lint_errors:
            self.emitter.emit(
                EventType.LINT_ERROR, build=unit.build, errors=lint_errors,
                error=LintError(unit.name, lint_errors)
            )
            return self._failure()

        self.emitter.emit(EventType.LINT, file=unit.file, dependencies=inputs)
        return None

    async def _bundle_unit(
        self,
        unit: BuildUnit,
        inputs: List[str],
        bundle_config: Dict[str, Any]
    ) -> UnitOutcome:
        merged = deep_merge({'context': str(self.config.root)}, bundle_config)
        merged = deep_merge(merged, {
            'output': {
                'path': str(unit.output_dir),
                'filename': self.config.artifact_name
            },
            'entry': str(unit.entry)
        })

        try:
            stats = await self.bundler.run(merged)
        except Exception as e:
            self.logger.error(f"Bundler crashed for {unit.name}: {e}", exc_info=True)
            self.emitter.emit(
                EventType.BUILD_ERROR, build=unit.build, file=unit.file,
                errors=[BundleError(unit.name, [str(e)])]
            )
            return UnitOutcome.ABORT

        if stats.has_errors():
            self.emitter.emit(
                EventType.BUILD_ERROR, build=unit.build, file=unit.file,
                errors=[BundleError(unit.name, stats.errors)]
            )
            # bundler failures end the run regardless of fail_fast
            return UnitOutcome.ABORT

        try:
            dependency_hash = self.fingerprinter.compute_fingerprint(inputs)
            version = self.fingerprinter.compute_artifact_version(
                self.store.get_artifact_path(unit.output_dir)
            )
            descriptor = PackageDescriptor(name=unit.name, version=version, deps=dependency_hash)
            self.store.save(unit.output_dir, descriptor)
        except (InputReadError, OSError) as e:
            self.logger.error(f"Failed to record artifact for {unit.name}: {e}")
            self.emitter.emit(EventType.BUILD_ERROR, build=unit.build, file=unit.file, errors=[e])
            return UnitOutcome.ABORT

        self.emitter.emit(
            EventType.BUILD,
            build=unit.build,
            build_name=unit.name,
            file=unit.file,
            dependency_hash=dependency_hash,
            hash=version,
            stats=stats
        )

        self.logger.info(f"Built unit: {unit.name} (version {version})")
        return UnitOutcome.BUILT
