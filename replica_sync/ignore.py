from __future__ import annotations

from typing import Iterable

from pathspec import PathSpec


class IgnoreMatcher:
    """gitignore-style exclusion over root-relative, forward-slash paths."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns = [p for p in patterns if p and p.strip()]
        self.spec = PathSpec.from_lines("gitwildmatch", self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def is_ignored(self, rel_posix: str, is_dir: bool = False) -> bool:
        if not self.patterns:
            return False
        if is_dir and not rel_posix.endswith("/"):
            rel_posix += "/"
        return self.spec.match_file(rel_posix)
