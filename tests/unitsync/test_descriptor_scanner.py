import inspect
import sys
import pytest

from src.core.errors import DescriptorParseError, OperationCanceledError
from src.core.progress import ProgressMonitor
from src.unitsync.discovery import LocalDescriptorScanner, ProjectGraphCollector, parse_descriptor


def test_parse_modules_and_profiles(tmp_path):
    path = tmp_path / "pom.xml"
    path.write_text("""<?xml version="1.0"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <artifactId>parent</artifactId>
  <modules><module>core</module><module>api</module></modules>
  <profiles>
    <profile><modules><module>extra</module><module>core</module></modules></profile>
  </profiles>
</project>""")

    model = parse_descriptor(path)

    assert model.artifact_id == "parent"
    assert model.modules == ["core", "api", "extra"]


@pytest.mark.parametrize("content", ["<project><modules>", "<settings/>"])
def test_parse_failures(tmp_path, content):
    path = tmp_path / "pom.xml"
    path.write_text(content)

    with pytest.raises(DescriptorParseError) as info:
        parse_descriptor(path)
    assert info.value.path == path


def test_scan_builds_module_tree(abc_workspace):
    scanner = LocalDescriptorScanner()

    projects = scanner.scan(abc_workspace.parent, [abc_workspace], ProgressMonitor())

    assert [p.name for p in projects] == ["A", "C"]
    assert [c.name for c in projects[0].children] == ["B"]
    assert projects[0].children[0].parent is projects[0]


def test_undeclared_subfolders_are_not_units(abc_workspace, make_descriptor):
    make_descriptor(abc_workspace / "a" / "stray", "STRAY")

    projects = LocalDescriptorScanner().scan(abc_workspace.parent, [abc_workspace], ProgressMonitor())

    assert [c.name for c in projects[0].children] == ["B"]


def test_bad_descriptor_is_skipped(abc_workspace, log_messages):
    bad = abc_workspace / "bad"
    bad.mkdir()
    (bad / "pom.xml").write_text("<project>")
    scanner = LocalDescriptorScanner()

    projects = scanner.scan(abc_workspace.parent, [abc_workspace], ProgressMonitor())

    assert [p.name for p in projects] == ["A", "C"]
    assert len(scanner.errors) == 1
    assert any("Cannot read descriptor" in m for m in log_messages)


def test_missing_module_is_logged(tmp_path, make_descriptor, log_messages):
    make_descriptor(tmp_path / "ws" / "a", "A", modules=["ghost"])

    projects = LocalDescriptorScanner().scan(tmp_path, [tmp_path / "ws"], ProgressMonitor())

    assert projects[0].children == []
    assert any("'ghost'" in m for m in log_messages)


def test_module_cycle_is_cut(tmp_path, make_descriptor):
    make_descriptor(tmp_path / "ws" / "a", "A", modules=["b"])
    make_descriptor(tmp_path / "ws" / "a" / "b", "B", modules=[".."])

    projects = LocalDescriptorScanner().scan(tmp_path, [tmp_path / "ws"], ProgressMonitor())

    a = projects[0]
    assert [c.name for c in a.children] == ["B"]
    assert a.children[0].children == []


def test_read_single_descriptor(abc_workspace):
    scanner = LocalDescriptorScanner()

    info = scanner.read(abc_workspace / "a" / "pom.xml", recursive=False)

    assert info.name == "A"
    assert info.children == []
    assert [c.name for c in scanner.read(abc_workspace / "a" / "pom.xml").children] == ["B"]


def test_scan_checks_cancellation(abc_workspace):
    monitor = ProgressMonitor()
    monitor.cancel()

    with pytest.raises(OperationCanceledError):
        LocalDescriptorScanner().scan(abc_workspace.parent, [abc_workspace], monitor)


def test_long_module_chain(tmp_path, make_descriptor):
    depth = 1200
    for i in range(depth):
        make_descriptor(tmp_path / "ws" / f"m{i}", f"M{i}", modules=[f"../m{i + 1}"] if i + 1 < depth else [])

    projects = LocalDescriptorScanner().scan(tmp_path / "ws", [tmp_path / "ws" / "m0"], ProgressMonitor())

    node, names = projects[0], []
    while node is not None:
        names.append(node.name)
        node = node.children[0] if node.children else None
    assert names == [f"M{i}" for i in range(depth)]


@pytest.mark.asyncio
async def test_long_module_chain_is_discovered(tmp_path, make_descriptor):
    for i in range(600):
        make_descriptor(tmp_path / "ws" / f"m{i}", f"M{i}", modules=[f"../m{i + 1}"] if i < 599 else [])

    units = await ProjectGraphCollector(LocalDescriptorScanner()).discover(tmp_path / "ws" / "m0")

    assert len(units) == 600
    assert units[0].name == "M0" and units[-1].name == "M599"


def test_deeply_nested_folders(tmp_path, make_descriptor):
    folder = tmp_path / "ws"
    for _ in range(300):
        folder = folder / "d"
    make_descriptor(folder, "DEEP")

    limit = sys.getrecursionlimit()
    sys.setrecursionlimit(len(inspect.stack()) + 150)
    try:
        projects = LocalDescriptorScanner().scan(tmp_path, [tmp_path / "ws"], ProgressMonitor())
    finally:
        sys.setrecursionlimit(limit)

    assert [p.name for p in projects] == ["DEEP"]


def test_sibling_folders_keep_sorted_order(tmp_path, make_descriptor):
    for name in ["b", "a", "c"]:
        make_descriptor(tmp_path / "ws" / "group" / name, name.upper())

    projects = LocalDescriptorScanner().scan(tmp_path, [tmp_path / "ws"], ProgressMonitor())

    assert [p.name for p in projects] == ["A", "B", "C"]
