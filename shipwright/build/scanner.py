"""
Scans the source tree for build units.
"""
from pathlib import Path
from typing import List
import logging

from ..config.settings import ShipwrightConfig
from ..core.models import BuildUnit
from ..adapters.base import DependencyExtractor


class BuildScanner:
    """Discovers build units and resolves their input files"""

    def __init__(self, config: ShipwrightConfig, extractor: DependencyExtractor):
        """
        Initialize scanner.

        Args:
            config: Run configuration
            extractor: Dependency extractor used to resolve input files
        """
        self.config = config
        self.extractor = extractor
        self.logger = logging.getLogger(__name__)

    def scan_units(self) -> List[BuildUnit]:
        """
        Recursively scan for entry files.

        Returns:
            Build units in sorted path order
        """
        source_root = self.config.source_root
        units = []

        if not source_root.exists():
            self.logger.warning(f"Source directory does not exist: {source_root}")
            return units

        for entry in sorted(source_root.rglob(self.config.entry_name)):
            if not entry.is_file():
                continue

            relative_dir = entry.parent.relative_to(source_root)
            units.append(BuildUnit(
                name=self.unit_name(entry),
                entry=entry.resolve(),
                file=self.config.relative(entry),
                output_dir=(self.config.output_root / relative_dir).resolve()
            ))

        self.logger.info(f"Scanned {len(units)} build units from {source_root}")
        return units

    def unit_name(self, entry: Path) -> str:
        """
        Logical name from the entry's directory, e.g.
        build/svc/api/main.py -> svc-api
        """
        relative_dir = entry.parent.relative_to(self.config.source_root)
        if not relative_dir.parts:
            return entry.stem
        return "-".join(relative_dir.parts)

    def resolve_inputs(self, unit: BuildUnit) -> List[str]:
        """
        Resolve the unit's input files.

        Returns:
            cwd-relative paths of same-ecosystem files, entry first
        """
        graph = self.extractor.extract(unit.entry, self.config.bundle_config_path)

        inputs = []
        for node in graph:
            if not node.endswith(self.config.source_suffix):
                continue
            relative = self.config.relative(node)
            if relative not in inputs:
                inputs.append(relative)

        return inputs
