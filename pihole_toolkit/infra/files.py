"""Atomic replacement and single-slot backups for system text files."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path


def backup_path_for(path: Path, suffix: str = ".bak") -> Path:
    """Return the deterministic backup location for ``path``."""

    return path.with_name(path.name + suffix)


def backup_file(path: Path, suffix: str = ".bak") -> Path:
    """Copy ``path`` next to itself, overwriting any previous backup."""

    target = backup_path_for(path, suffix)
    shutil.copy2(path, target)
    return target


def atomic_write_text(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` via a temp file in the same directory.

    Symlinks are followed so the link target is updated and the link stays.
    The original file mode is kept when the file already exists. The temp file
    is removed if anything fails before the rename.
    """

    path = Path(path).resolve()
    directory = path.parent
    directory.mkdir(parents=True, exist_ok=True)
    tmp_path: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="\n",
            delete=False,
            dir=directory,
            prefix=f".{path.name}.tmp-",
        ) as handle:
            tmp_path = handle.name
            handle.write(content)
        if path.exists():
            shutil.copymode(path, tmp_path)
        else:
            os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
        tmp_path = None
    finally:
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)


__all__ = ["atomic_write_text", "backup_file", "backup_path_for"]
