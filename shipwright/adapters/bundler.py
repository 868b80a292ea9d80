"""
Bundles an entry point and its local imports into a single executable zip.
"""
import hashlib
import io
import logging
import time
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Tuple

from ..core.models import BundleReport
from ..utils.fileio import atomic_write
from .base import Bundler
from .import_graph import ImportGraphExtractor


# zip timestamps are fixed so identical sources give identical bytes
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


class ZipappBundler(Bundler):
    """
    Writes a `.pyz` archive runnable with `python main.pyz`.

    Recognised config keys:
        entry: absolute path to the entry module (stored as __main__.py)
        output: {path, filename}
        context: directory that relative `search_paths` are resolved against
        search_paths: extra import roots
        interpreter: shebang interpreter (default '/usr/bin/env python3')
        compress: deflate members (default True)
    """

    DEFAULT_INTERPRETER = "/usr/bin/env python3"

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    async def run(self, config: Dict[str, Any]) -> BundleReport:
        report = BundleReport(start_time=time.time())

        try:
            entry, output_file, extractor = self._parse_config(config)
        except (KeyError, TypeError, ValueError) as e:
            report.errors.append(f"Invalid bundle configuration: {e}")
            report.end_time = time.time()
            return report

        if not entry.is_file():
            report.errors.append(f"Entry module not found: {entry}")
            report.end_time = time.time()
            return report

        graph = extractor.extract(entry)
        roots = extractor.roots_for(entry)

        members: List[Tuple[str, bytes]] = []
        for file_path in graph:
            path = Path(file_path)
            try:
                source = path.read_bytes()
            except OSError as e:
                report.errors.append(f"Cannot read {path}: {e}")
                continue

            try:
                compile(source, str(path), 'exec', dont_inherit=True)
            except (SyntaxError, ValueError) as e:
                report.errors.append(f"{path}: {e}")
                continue

            if path == entry:
                arcname = "__main__.py"
            else:
                arcname = self._archive_name(path, roots)
            members.append((arcname, source))

        if report.errors:
            report.end_time = time.time()
            return report

        data = self._write_archive(
            members,
            interpreter=config.get('interpreter', self.DEFAULT_INTERPRETER),
            compress=config.get('compress', True)
        )

        atomic_write(output_file, data)

        report.hash = hashlib.sha256(data).hexdigest()[:20]
        report.files = sorted(name for name, _ in members)
        report.end_time = time.time()

        self.logger.debug(
            f"Bundled {len(members)} modules into {output_file} in {report.duration_ms}ms"
        )
        return report

    def _parse_config(self, config: Dict[str, Any]):
        entry = Path(config['entry']).resolve()
        output = config['output']
        output_file = Path(output['path']) / output['filename']

        context = Path(config.get('context') or entry.parent)
        search_paths = [
            (context / p).resolve() for p in (config.get('search_paths') or [])
        ]
        return entry, output_file, ImportGraphExtractor(search_paths=search_paths)

    @staticmethod
    def _archive_name(path: Path, roots: List[Path]) -> str:
        for root in roots:
            try:
                return path.relative_to(root).as_posix()
            except ValueError:
                continue
        # reached through a relative import above every root
        return path.name

    @staticmethod
    def _write_archive(members: List[Tuple[str, bytes]], interpreter: str, compress: bool) -> bytes:
        buffer = io.BytesIO()

        if interpreter:
            buffer.write(b'#!' + interpreter.encode('utf-8') + b'\n')

        compression = zipfile.ZIP_DEFLATED if compress else zipfile.ZIP_STORED

        with zipfile.ZipFile(buffer, 'w', compression=compression) as archive:
            for arcname, source in sorted(members):
                info = zipfile.ZipInfo(arcname, date_time=FIXED_DATE_TIME)
                info.compress_type = compression
                info.external_attr = 0o644 << 16
                archive.writestr(info, source)

        return buffer.getvalue()
