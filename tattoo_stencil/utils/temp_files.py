"""Temporary file management utilities"""

import os
from contextlib import contextmanager
from pathlib import Path
from uuid import uuid4


@contextmanager
def staged_file(target: Path):
    """Context manager that stages a write next to target and swaps it in.

    Args:
        target: Final file path

    Yields:
        Path object for the staging file

    Example:
        with staged_file(path) as tmp:
            tmp.write_bytes(data)
        # tmp replaced target atomically; on error tmp is deleted and
        # target is left untouched
    """
    temp_path = target.with_name(f".{target.name}.{uuid4().hex}.tmp")

    try:
        yield temp_path
        os.replace(temp_path, target)
    finally:
        temp_path.unlink(missing_ok=True)


def write_atomic(target: Path, data: bytes) -> None:
    """Write bytes to target so readers never observe a partial file."""
    with staged_file(target) as tmp:
        tmp.write_bytes(data)
