"""
Dependency extraction by walking Python import statements.
"""
import ast
import logging
from collections import deque
from pathlib import Path
from typing import Dict, List, Optional

from ..config.settings import load_yaml_file
from .base import DependencyExtractor


class ImportGraphExtractor(DependencyExtractor):
    """
    Follows absolute and relative imports that resolve to files under the
    entry's directory or one of the bundle config's `search_paths`.
    Anything else (stdlib, installed packages) is not part of the graph.
    """

    def __init__(self, search_paths: Optional[List[Path]] = None):
        self.search_paths = [Path(p) for p in (search_paths or [])]
        self.logger = logging.getLogger(__name__)

    def roots_for(self, entry: Path, bundle_config_path: Optional[Path] = None) -> List[Path]:
        """Import roots for an entry: its own directory first, then search paths"""
        roots = [entry.parent.resolve()]
        roots.extend(p.resolve() for p in self.search_paths)

        if bundle_config_path:
            bundle_config_path = Path(bundle_config_path)
            bundle_config = load_yaml_file(bundle_config_path)
            base = bundle_config_path.parent
            for search_path in bundle_config.get('search_paths', []) or []:
                roots.append((base / search_path).resolve())

        unique = []
        for root in roots:
            if root not in unique:
                unique.append(root)
        return unique

    def extract(self, entry: Path, bundle_config_path: Optional[Path] = None) -> Dict[str, List[str]]:
        entry = Path(entry).resolve()
        roots = self.roots_for(entry, bundle_config_path)

        graph: Dict[str, List[str]] = {}
        queue = deque([entry])

        while queue:
            current = queue.popleft()
            key = str(current)
            if key in graph:
                continue

            deps = self._file_dependencies(current, roots)
            graph[key] = [str(dep) for dep in deps]

            for dep in deps:
                if str(dep) not in graph:
                    queue.append(dep)

        self.logger.debug(f"Resolved {len(graph)} files for {entry}")
        return graph

    def _file_dependencies(self, path: Path, roots: List[Path]) -> List[Path]:
        try:
            tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        except SyntaxError as e:
            # the lint pass reports it
            self.logger.debug(f"Cannot parse {path}: {e}")
            return []

        found: List[Path] = []

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    found.extend(self._resolve_absolute(alias.name, roots))

            elif isinstance(node, ast.ImportFrom):
                names = [alias.name for alias in node.names if alias.name != '*']

                if node.level:
                    base = path.parent
                    for _ in range(node.level - 1):
                        base = base.parent
                    search = [base]
                    module = node.module or ''
                else:
                    search = roots
                    module = node.module

                if module:
                    found.extend(self._resolve_absolute(module, search))
                for name in names:
                    dotted = f"{module}.{name}" if module else name
                    found.extend(self._resolve_absolute(dotted, search))

        unique: List[Path] = []
        for dep in found:
            if dep != path and dep not in unique:
                unique.append(dep)
        return unique

    @staticmethod
    def _resolve_absolute(dotted: str, roots: List[Path]) -> List[Path]:
        """
        Files needed to import `dotted` from the first root that has it:
        every package __init__.py on the way plus the module itself.
        """
        parts = dotted.split('.')

        for root in roots:
            files: List[Path] = []
            current = root

            for index, part in enumerate(parts):
                is_last = index == len(parts) - 1
                package_dir = current / part
                module_file = current / f"{part}.py"
                init_file = package_dir / "__init__.py"

                if init_file.is_file():
                    files.append(init_file.resolve())
                    current = package_dir
                elif is_last and module_file.is_file():
                    files.append(module_file.resolve())
                elif not is_last and package_dir.is_dir():
                    # namespace package
                    current = package_dir
                else:
                    files = []
                    break

            if files:
                return files

        return []
