"""Read and write pipe-delimited record files.

RecordStore is the public API:
    store = RecordStore("/path/to/records.txt")
    store.append("a|b|c")
    store.read_all()            # [["a", "b", "c"]]
    store.find_by_value("b")    # "a|b|c"
    store.update("b", "B")
    store.delete("a")

Every operation opens and closes the file itself and scans it from the start.
I/O failures are logged on the "pipestore.store" logger and turned into a
benign default ([], None, 0 or False); they are never raised to the caller.

Writes (locking=True):
    append            O_APPEND write under a shared flock on <path>.lock
    update/delete     read, write <path>.tmp, rename over <path>, all under
    clear             an exclusive flock on <path>.lock
Readers take no lock; rename guarantees they see a complete file.
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from pipestore.models import DELIMITER, Record, split_record

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from pipestore.config import StoreConfig

logger = logging.getLogger("pipestore.store")

# UnicodeError covers files that do not decode with the configured encoding.
_IO_ERRORS = (OSError, UnicodeError)


def _strip_newline(line: str) -> str:
    return line[:-1] if line.endswith("\n") else line


class RecordStore:
    """Flat-file record store over a single delimited text file."""

    def __init__(
        self,
        path: Path | str,
        *,
        delimiter: str = DELIMITER,
        encoding: str | None = None,
        locking: bool = True,
    ) -> None:
        if len(delimiter) != 1:
            msg = f"delimiter must be a single character, got {delimiter!r}"
            raise ValueError(msg)
        self.path = Path(path)
        self.delimiter = delimiter
        self.encoding = encoding
        self.locking = locking

    @classmethod
    def from_config(cls, cfg: StoreConfig) -> RecordStore:
        return cls(cfg.path, delimiter=cfg.delimiter, encoding=cfg.encoding, locking=cfg.locking)

    def __repr__(self) -> str:
        return f"RecordStore({str(self.path)!r})"

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    @property
    def _tmp_path(self) -> Path:
        target = self.path.resolve()
        return target.with_name(target.name + ".tmp")

    def exists(self) -> bool:
        return self.path.exists()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _read_lines(self) -> list[str]:
        with self.path.open(encoding=self.encoding) as f:
            return [_strip_newline(line) for line in f]

    def read_all(self) -> list[list[str]]:
        """Every line split into fields, in file order."""
        try:
            lines = self._read_lines()
        except _IO_ERRORS as exc:
            logger.error("read_all failed for %s: %s", self.path, exc)
            return []
        return [split_record(line, self.delimiter) for line in lines]

    def records(self) -> list[Record]:
        """Like read_all, but keeps the raw line next to its fields."""
        try:
            lines = self._read_lines()
        except _IO_ERRORS as exc:
            logger.error("records failed for %s: %s", self.path, exc)
            return []
        return [Record.parse(line, self.delimiter) for line in lines]

    def read_last_line(self) -> str | None:
        """Final line of the file, or None if the file is empty or unreadable."""
        last: str | None = None
        try:
            with self.path.open(encoding=self.encoding) as f:
                for line in f:
                    last = line
        except _IO_ERRORS as exc:
            logger.error("read_last_line failed for %s: %s", self.path, exc)
            return None
        return _strip_newline(last) if last is not None else None

    def find_by_value(self, target: str) -> str | None:
        """First line with a field exactly equal to target.

        A target that only occurs inside a field (``"b"`` in ``"abc"``) does
        not match.
        """
        try:
            with self.path.open(encoding=self.encoding) as f:
                for raw in f:
                    line = _strip_newline(raw)
                    if target in split_record(line, self.delimiter):
                        return line
        except _IO_ERRORS as exc:
            logger.error("find_by_value failed for %s: %s", self.path, exc)
        return None

    def count_elements(self) -> int:
        """Number of lines in the file; 0 if it cannot be read."""
        try:
            with self.path.open(encoding=self.encoding) as f:
                return sum(1 for _ in f)
        except _IO_ERRORS as exc:
            logger.error("count_elements failed for %s: %s", self.path, exc)
            return 0

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append(self, line: str) -> bool:
        """Append one line. Creates the file (and its directory) if missing."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock(exclusive=False), self.path.open("a", encoding=self.encoding) as f:
                f.write(line + "\n")
        except _IO_ERRORS as exc:
            logger.error("append failed for %s: %s", self.path, exc)
            return False
        return True

    def update(self, old_value: str, new_value: str) -> bool:
        """Replace every occurrence of old_value in every line that contains it.

        Substring match, not field match: the replacement can span the
        delimiter. Lines without old_value are written back unchanged. An empty
        old_value matches everywhere, as str.replace does.
        """
        return self._rewrite(
            "update",
            lambda line: line.replace(old_value, new_value) if old_value in line else line,
        )

    def delete(self, value: str) -> bool:
        """Drop every line that contains value as a substring.

        An empty value is a substring of every line, so it empties the store.
        """
        return self._rewrite("delete", lambda line: None if value in line else line)

    def clear(self) -> bool:
        """Truncate the store to zero records. Creates the file if missing."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock(exclusive=True):
                self._replace_contents([])
        except _IO_ERRORS as exc:
            logger.error("clear failed for %s: %s", self.path, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _lock(self, *, exclusive: bool) -> Iterator[None]:
        """Hold a flock on the sidecar lock file (no-op when locking is off)."""
        if not self.locking:
            yield
            return
        with self.lock_path.open("a") as f:
            fcntl.flock(f, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            yield

    def _rewrite(self, op: str, transform: Callable[[str], str | None]) -> bool:
        """Read-modify-write the file under an exclusive lock.

        transform returns the replacement line, or None to drop it. If the
        read fails the file is left as it was.
        """
        try:
            with self._lock(exclusive=True):
                lines = self._read_lines()
                new_lines: list[str] = []
                changed = 0
                for line in lines:
                    result = transform(line)
                    if result != line:
                        changed += 1
                    if result is not None:
                        new_lines.append(result)
                self._replace_contents(new_lines)
        except _IO_ERRORS as exc:
            logger.error("%s failed for %s: %s", op, self.path, exc)
            return False
        logger.debug("%s %s: %d of %d lines affected", op, self.path, changed, len(lines))
        return True

    def _replace_contents(self, lines: list[str]) -> None:
        """Write lines to a temp file, then rename it over the store.

        A symlinked store keeps its link: the rename lands on the target, and
        the target's permission bits carry over to the new file.
        """
        target = self.path.resolve()
        tmp = self._tmp_path
        try:
            with tmp.open("w", encoding=self.encoding) as f:
                f.writelines(line + "\n" for line in lines)
            if target.exists():
                shutil.copymode(target, tmp)
            tmp.replace(target)
        except _IO_ERRORS:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise
