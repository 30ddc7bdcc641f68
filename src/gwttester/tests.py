from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple, Union

from .errors import HarnessError, PatternError
from .options import DEFAULT_INCLUDES, split_list

log = logging.getLogger(__name__)

PatternsArg = Union[str, Sequence[str], None]


@dataclass(frozen=True)
class TestUnit:
    __test__ = False

    source_root: Path
    source_path: str
    qualified_name: str

    @property
    def file(self) -> Path:
        return self.source_root / self.source_path


def split_patterns(value: PatternsArg) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return split_list(value)
    return tuple(entry.strip() for entry in value if entry and entry.strip())


def _translate_segment(segment: str) -> str:
    parts: List[str] = []
    for char in segment:
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


def compile_pattern(pattern: str) -> Pattern[str]:
    """Compile an ant-style pattern into a regular expression.

    ``*`` and ``?`` never cross a ``/``; a ``**`` segment matches zero or more
    directories. A trailing ``/`` means "everything below".
    """
    normalized = pattern.strip().replace("\\", "/").lstrip("/")
    if normalized.endswith("/"):
        normalized += "**"
    segments: List[str] = []
    for segment in normalized.split("/"):
        if not segment:
            continue
        if "**" in segment and segment != "**":
            raise PatternError(f"invalid pattern {pattern!r}: '**' must be a whole segment")
        if segment == "**" and segments and segments[-1] == "**":
            continue
        segments.append(segment)
    if not segments:
        raise PatternError(f"invalid pattern {pattern!r}")

    pieces: List[str] = []
    last = len(segments) - 1
    for index, segment in enumerate(segments):
        if segment == "**":
            if index < last:
                pieces.append("(?:[^/]+/)*")
            elif pieces:
                pieces[-1] = pieces[-1][:-1]
                pieces.append("(?:/.*)?")
            else:
                pieces.append(".*")
        else:
            pieces.append(_translate_segment(segment) + ("/" if index < last else ""))
    return re.compile("".join(pieces))


class PatternMatcher:
    def __init__(self, includes: PatternsArg = DEFAULT_INCLUDES, excludes: PatternsArg = ()) -> None:
        self.includes = [compile_pattern(p) for p in split_patterns(includes)]
        self.excludes = [compile_pattern(p) for p in split_patterns(excludes)]

    def matches(self, relative_path: str) -> bool:
        candidate = relative_path.replace("\\", "/")
        if not any(p.fullmatch(candidate) for p in self.includes):
            return False
        return not any(p.fullmatch(candidate) for p in self.excludes)

    def scan(self, root: Path) -> List[str]:
        def on_error(error: OSError) -> None:
            raise HarnessError(f"failed to scan {root}: {error}") from error

        found: List[str] = []
        for current, dirs, files in os.walk(root, onerror=on_error):
            dirs.sort()
            base = Path(current).relative_to(root)
            for name in sorted(files):
                relative = (base / name).as_posix()
                if self.matches(relative):
                    found.append(relative)
        return sorted(found)


def qualified_name(relative_path: str) -> str:
    path = PurePosixPath(relative_path.replace("\\", "/"))
    return ".".join(path.with_suffix("").parts)


def discover(
    roots: Iterable[Path],
    includes: PatternsArg = DEFAULT_INCLUDES,
    excludes: PatternsArg = (),
    matcher: Optional[PatternMatcher] = None,
) -> List[TestUnit]:
    if matcher is None:
        matcher = PatternMatcher(includes, excludes)
    units: List[TestUnit] = []
    for root in roots:
        root = Path(root)
        if not root.is_dir():
            log.debug("skipping missing test source root %s", root)
            continue
        for relative in matcher.scan(root):
            units.append(TestUnit(root, relative, qualified_name(relative)))
    units.sort(key=lambda unit: (unit.qualified_name, str(unit.file)))
    return units
