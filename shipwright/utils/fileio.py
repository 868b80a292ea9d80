import os
import uuid
from pathlib import Path
from typing import Union


def atomic_write(path: Union[str, Path], data: Union[str, bytes]) -> None:
    """
    Write a file via temp file + rename so readers never see a partial file.
    The temp file lives in the target directory (rename is only atomic within
    one filesystem).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = path.parent / f".temp_{uuid.uuid4().hex[:8]}_{path.name}"
    mode = 'wb' if isinstance(data, bytes) else 'w'

    try:
        with open(temp_path, mode) as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        os.replace(str(temp_path), str(path))
    finally:
        if temp_path.exists():
            temp_path.unlink()
