import pytest
from pathlib import Path

from src.core.config import DEFAULT_IMPORT_EXCLUSIONS
from src.unitsync.discovery.path_filter import PathFilter, compile_glob, exclude


def test_empty_pattern_list_excludes_nothing():
    assert not exclude(Path("/ws/a"), [])
    assert not PathFilter()


@pytest.mark.parametrize("pattern, path, expected", [
    ("/ws/*", "/ws/a", True),
    ("/ws/*", "/ws/a/b", False),
    ("/ws/**", "/ws/a/b", True),
    ("**/node_modules/**", "/ws/web/node_modules/left-pad", True),
    ("**/node_modules/**", "/ws/web/lib", False),
    ("/ws/mod?", "/ws/mod1", True),
    ("/ws/mod?", "/ws/mod12", False),
    ("/ws/[ab]", "/ws/b", True),
    ("/ws/[!ab]", "/ws/b", False),
    ("/ws/{api,impl}", "/ws/impl", True),
    ("/ws/{api,impl}", "/ws/core", False),
    ("/ws/\\*", "/ws/*", True),
    ("/ws/\\*", "/ws/a", False),
])
def test_glob_semantics(pattern, path, expected):
    assert exclude(Path(path), [pattern]) is expected


def test_any_pattern_matches():
    path_filter = PathFilter(["**/target/**", "**/archive"])

    assert path_filter.exclude(Path("/ws/old/archive"))
    assert not path_filter.exclude(Path("/ws/old/current"))


def test_default_exclusions():
    path_filter = PathFilter(DEFAULT_IMPORT_EXCLUSIONS)

    assert path_filter.exclude(Path("/ws/app/src/main/resources/archetype-resources/child"))
    assert path_filter.exclude(Path("/ws/lib/META-INF/maven/org.example/lib"))
    assert not path_filter.exclude(Path("/ws/app/core"))


def test_compiled_patterns_are_cached():
    assert compile_glob("**/a/**") is compile_glob("**/a/**")


@pytest.mark.parametrize("pattern", ["/ws/[ab", "/ws/{a,b", "/ws/\\"])
def test_malformed_patterns(pattern):
    with pytest.raises(ValueError):
        PathFilter([pattern])
