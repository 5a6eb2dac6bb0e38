"""
Regex-based editing of text configuration files.

Opening a file for editing backs it up first (see shout.fileio.backup).
Files are rewritten only when an operation changes their content.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Union

from shout import fileio
from shout.errors import EditError

logger = logging.getLogger(__name__)

DEFAULT_COMMENT_CHAR = "#"


@dataclass
class Replacer:
    """Replace every match of ``search`` by the literal ``replace``."""

    search: str
    replace: str


@dataclass
class LineReplacer:
    """Like Replacer, but only on lines matching ``line``."""

    line: str
    search: str
    replace: str


def _compile(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise EditError(f"Invalid regular expression {pattern!r}: {e}") from e


def _count(n: int) -> int:
    # re.sub uses 0 for "all matches"
    return 0 if n < 0 else n


class Editor:
    """An open file being edited.

    Example:
        >>> with Editor("/etc/ssh/sshd_config") as e:
        ...     e.replace([Replacer(r"PermitRootLogin yes", "PermitRootLogin no")])
    """

    def __init__(self, name: Union[str, Path], comment_char: str = DEFAULT_COMMENT_CHAR):
        self.path = Path(name)
        self.comment_char = comment_char
        fileio.backup(self.path)
        self.file = open(self.path, "r+", encoding="utf-8", errors="surrogateescape", newline="")

    def __enter__(self) -> "Editor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.file.close()

    def read(self) -> str:
        self.file.seek(0)
        return self.file.read()

    def append(self, data: str) -> None:
        """Write data at the end of the file."""
        self.file.seek(0, os.SEEK_END)
        self.file.write(data)
        self.file.flush()

    def insert(self, data: str) -> None:
        """Write data at the start of the file."""
        self._rewrite(data + self.read())

    def comment(self, patterns: Iterable[str]) -> bool:
        """
        Comment out the lines matching any of the patterns.

        Returns:
            True if the file changed
        """
        regexes = [_compile(p) for p in patterns]
        prefix = self.comment_char + " "
        changed = False
        lines: List[str] = []

        for line in self.read().splitlines(keepends=True):
            if any(r.search(line) for r in regexes):
                line = prefix + line
                changed = True
            lines.append(line)

        if changed:
            self._rewrite("".join(lines))
        return changed

    def comment_out(self, patterns: Iterable[str]) -> bool:
        """Remove the first comment marker of the lines matching any pattern."""
        marker = r"[ \t]*" + re.escape(self.comment_char) + r"[ \t]*"
        return self.replace_at_line([LineReplacer(p, marker, "") for p in patterns], n=1)

    def replace(self, replacers: Iterable[Replacer], n: int = -1) -> bool:
        """
        Replace regular expression matches in the whole file.

        Args:
            replacers: Searches and their literal replacements
            n: At most n matches per replacer; 0 for none, negative for all

        Returns:
            True if the file changed
        """
        if n == 0:
            return False

        compiled = [(_compile(r.search), r.replace) for r in replacers]
        content = original = self.read()
        for regex, repl in compiled:
            content = regex.sub(lambda _m, repl=repl: repl, content, count=_count(n))

        if content != original:
            self._rewrite(content)
            return True
        return False

    def replace_at_line(self, replacers: Iterable[LineReplacer], n: int = -1) -> bool:
        """Replace matches, only on lines that match each replacer's ``line``."""
        if n == 0:
            return False

        compiled = [(_compile(r.line), _compile(r.search), r.replace) for r in replacers]
        changed = False
        lines: List[str] = []

        for line in self.read().splitlines(keepends=True):
            new_line = line
            for line_re, search_re, repl in compiled:
                if line_re.search(line):
                    new_line = search_re.sub(lambda _m, repl=repl: repl, new_line, count=_count(n))
            if new_line != line:
                changed = True
            lines.append(new_line)

        if changed:
            self._rewrite("".join(lines))
        return changed

    def _rewrite(self, content: str) -> None:
        self.file.seek(0)
        self.file.write(content)
        self.file.truncate()
        self.file.flush()
        os.fsync(self.file.fileno())
        logger.debug(f"Rewrote {self.path}")


def append(name: Union[str, Path], data: str) -> None:
    """Append data to a file, backing it up first."""
    with Editor(name) as e:
        e.append(data)


def insert(name: Union[str, Path], data: str) -> None:
    """Prepend data to a file, backing it up first."""
    with Editor(name) as e:
        e.insert(data)


def comment(name: Union[str, Path], *patterns: str,
            comment_char: str = DEFAULT_COMMENT_CHAR) -> bool:
    with Editor(name, comment_char) as e:
        return e.comment(patterns)


def comment_out(name: Union[str, Path], *patterns: str,
                comment_char: str = DEFAULT_COMMENT_CHAR) -> bool:
    with Editor(name, comment_char) as e:
        return e.comment_out(patterns)


def replace(name: Union[str, Path], replacers: Iterable[Replacer], n: int = -1) -> bool:
    with Editor(name) as e:
        return e.replace(replacers, n)


def replace_at_line(name: Union[str, Path], replacers: Iterable[LineReplacer],
                    n: int = -1) -> bool:
    with Editor(name) as e:
        return e.replace_at_line(replacers, n)
