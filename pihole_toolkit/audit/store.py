"""Adlist store: the newline-delimited file of list-source URLs."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence
from urllib.parse import urlsplit

from ..errors import StoreAccessError
from ..infra.files import atomic_write_text, backup_file, backup_path_for

COMMENT_PREFIX = "#"


@dataclass(slots=True, frozen=True)
class ListSource:
    """One line of the adlist store."""

    raw: str
    line_number: int = 0

    @property
    def normalized(self) -> str:
        return self.raw.strip()

    @property
    def is_blank(self) -> bool:
        return not self.normalized

    @property
    def is_comment(self) -> bool:
        return self.normalized.startswith(COMMENT_PREFIX)

    @property
    def is_probeable(self) -> bool:
        """True for lines carrying a list URL (not blank, not a comment)."""
        return not self.is_blank and not self.is_comment


def is_valid_adlist_url(url: str) -> bool:
    """http(s) URL with a host; whitespace inside the URL is rejected."""

    candidate = url.strip()
    if not candidate or any(char.isspace() for char in candidate):
        return False
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.hostname)


def split_store_lines(text: str) -> list[str]:
    """Split on ``\\n`` only; a trailing ``\\r`` is dropped from each line.

    ``str.splitlines`` would also break on form feeds and Unicode separators
    that can legitimately sit inside a URL line.
    """

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_sources(lines: Iterable[str]) -> list[ListSource]:
    return [ListSource(raw=line, line_number=index) for index, line in enumerate(lines, start=1)]


def find_duplicates(sources: Sequence[ListSource]) -> list[str]:
    """Return URL lines that appear more than once, sorted, each listed once.

    Comments and blank lines never count as duplicates.
    """

    counts = Counter(source.raw for source in sources if source.is_probeable)
    return sorted(line for line, count in counts.items() if count > 1)


def deduplicated_lines(sources: Sequence[ListSource]) -> list[str]:
    """Distinct non-blank lines, sorted lexicographically."""

    return sorted({source.raw for source in sources if not source.is_blank})


class ListStore:
    """Read, back up, and rewrite the adlist file at an explicit path."""

    def __init__(self, path: Path, backup_suffix: str = ".bak") -> None:
        self.path = Path(path)
        self.backup_suffix = backup_suffix

    @property
    def backup_path(self) -> Path:
        return backup_path_for(self.path, self.backup_suffix)

    def read(self) -> list[ListSource]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise StoreAccessError(self.path, "file not found") from exc
        except UnicodeDecodeError as exc:
            raise StoreAccessError(self.path, f"not valid UTF-8 ({exc.reason})") from exc
        except OSError as exc:
            raise StoreAccessError(self.path, exc.strerror or str(exc)) from exc
        return parse_sources(split_store_lines(text))

    def backup(self) -> Path:
        try:
            return backup_file(self.path, self.backup_suffix)
        except OSError as exc:
            raise StoreAccessError(self.path, f"backup failed: {exc}") from exc

    def rewrite(self, lines: Sequence[str]) -> None:
        content = "\n".join(lines) + ("\n" if lines else "")
        try:
            atomic_write_text(self.path, content)
        except OSError as exc:
            raise StoreAccessError(self.path, f"rewrite failed: {exc}") from exc

    def append(self, line: str) -> None:
        """Append one entry, inserting a newline first if the file lacks one."""

        entry = line.strip()
        if not entry:
            raise ValueError("Cannot append an empty adlist entry")
        try:
            prefix = ""
            if self.path.exists():
                with self.path.open("rb") as stream:
                    stream.seek(0, 2)
                    if stream.tell() > 0:
                        stream.seek(-1, 2)
                        if stream.read(1) != b"\n":
                            prefix = "\n"
            with self.path.open("a", encoding="utf-8", newline="\n") as stream:
                stream.write(f"{prefix}{entry}\n")
        except OSError as exc:
            raise StoreAccessError(self.path, exc.strerror or str(exc)) from exc


__all__ = [
    "COMMENT_PREFIX",
    "ListSource",
    "ListStore",
    "deduplicated_lines",
    "find_duplicates",
    "is_valid_adlist_url",
    "parse_sources",
    "split_store_lines",
]
