"""
unitsync - Path Filter

Glob based exclusion of candidate unit directories.

Glob syntax:
    *       any run of characters within one path segment
    **      any run of characters across segments
    ?       one character within a segment
    [abc]   character class ([!abc] negates)
    {a,b}   alternatives
    \\x     literal x
"""
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Pattern, Sequence


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> Pattern:
    """Compile a glob pattern into an anchored regex over POSIX paths."""
    out: List[str] = []
    i = 0
    n = len(pattern)
    in_group = False
    while i < n:
        c = pattern[i]
        if c == "*":
            if i + 1 < n and pattern[i + 1] == "*":
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "\\":
            i += 1
            if i >= n:
                raise ValueError(f"Dangling escape in glob: {pattern!r}")
            out.append(re.escape(pattern[i]))
        elif c == "[":
            end = pattern.find("]", i + 2 if pattern[i + 1:i + 2] in ("!", "^") else i + 1)
            if end == -1:
                raise ValueError(f"Unclosed character class in glob: {pattern!r}")
            body = pattern[i + 1:end]
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append(f"(?![/])[{body.replace(chr(92), chr(92) * 2)}]")
            i = end
        elif c == "{":
            if in_group:
                raise ValueError(f"Nested groups are not supported: {pattern!r}")
            in_group = True
            out.append("(?:")
        elif c == "}" and in_group:
            in_group = False
            out.append(")")
        elif c == "," and in_group:
            out.append("|")
        else:
            out.append(re.escape(c))
        i += 1
    if in_group:
        raise ValueError(f"Unclosed group in glob: {pattern!r}")
    return re.compile("".join(out) + r"\Z", re.DOTALL)


def exclude(path: Path, patterns: Iterable[str]) -> bool:
    """True if any pattern matches ``path``. An empty pattern list excludes nothing."""
    target = Path(path).as_posix()
    return any(compile_glob(pattern).match(target) for pattern in patterns)


class PathFilter:
    """Exclusion filter bound to an ordered pattern list."""

    def __init__(self, patterns: Sequence[str] = ()):
        self.patterns = list(patterns)
        for pattern in self.patterns:
            compile_glob(pattern)

    def exclude(self, path: Path) -> bool:
        return exclude(path, self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)
