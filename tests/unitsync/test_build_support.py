import pytest
from unittest.mock import AsyncMock, MagicMock

from src.core.errors import ReconfigurationError
from src.unitsync.digest import DigestGate, FileDigestStore
from src.unitsync.discovery import LocalDescriptorScanner, ProjectGraphCollector
from src.unitsync.importer import BuildSupport, WorkspaceConfigurationManager
from src.unitsync.models import BUILD_NATURE
from src.unitsync.workspace import InMemoryWorkspaceStore


@pytest.fixture
def store(abc_workspace):
    store = InMemoryWorkspaceStore()
    store.create("A", abc_workspace / "a", {BUILD_NATURE})
    store.create("B", abc_workspace / "a" / "b", {BUILD_NATURE})
    store.create("C", abc_workspace / "c", {BUILD_NATURE})
    return store


@pytest.fixture
def engine():
    engine = MagicMock()
    engine.update_configuration = AsyncMock()
    return engine


def make_support(store, engine, **kwargs) -> BuildSupport:
    return BuildSupport(
        store,
        engine,
        DigestGate(FileDigestStore()),
        ProjectGraphCollector(LocalDescriptorScanner()),
        **kwargs,
    )


def request_names(engine):
    request = engine.update_configuration.await_args.args[0]
    return [unit.name for unit in request.units]


@pytest.mark.asyncio
async def test_collect_dependents_updates_module_graph(store, engine, abc_workspace):
    support = make_support(store, engine, collect_dependents=True, offline=True)
    unit = store.find_by_location(abc_workspace / "a")

    assert await support.update(unit) is True

    assert request_names(engine) == ["A", "B"]
    request = engine.update_configuration.await_args.args[0]
    assert request.offline is True
    assert request.force_dependency_update is False


@pytest.mark.asyncio
async def test_single_unit_mode(store, engine, abc_workspace):
    support = make_support(store, engine, collect_dependents=False)

    await support.update(store.find_by_location(abc_workspace / "a"))

    assert request_names(engine) == ["A"]


@pytest.mark.asyncio
async def test_mode_override(store, engine, abc_workspace):
    support = make_support(store, engine, collect_dependents=True)

    await support.update(store.find_by_location(abc_workspace / "a"), collect_dependents=False)

    assert request_names(engine) == ["A"]


@pytest.mark.asyncio
async def test_unchanged_descriptor_is_skipped(store, engine, abc_workspace):
    support = make_support(store, engine)
    unit = store.find_by_location(abc_workspace / "c")

    assert await support.update(unit) is True
    assert await support.update(unit) is False
    assert await support.update(unit, force=True) is True

    assert engine.update_configuration.await_count == 2
    assert engine.update_configuration.await_args.args[0].force_dependency_update is True


@pytest.mark.asyncio
async def test_units_without_nature_do_not_apply(engine, abc_workspace):
    store = InMemoryWorkspaceStore()
    unit = store.create("plain", abc_workspace / "c")
    support = make_support(store, engine)

    assert await support.update(unit, force=True) is False
    engine.update_configuration.assert_not_called()


@pytest.mark.asyncio
async def test_engine_failure_is_wrapped(store, engine, abc_workspace):
    engine.update_configuration.side_effect = RuntimeError("resolver crashed")
    support = make_support(store, engine)

    with pytest.raises(ReconfigurationError) as info:
        await support.update(store.find_by_location(abc_workspace / "c"))
    assert isinstance(info.value.cause, RuntimeError)


@pytest.mark.asyncio
async def test_reference_engine_marks_units_configured(store, abc_workspace):
    engine = WorkspaceConfigurationManager(store)
    support = make_support(store, engine)

    await support.update(store.find_by_location(abc_workspace / "a"))

    assert store.find_by_location(abc_workspace / "a").configured_at is not None
    assert store.find_by_location(abc_workspace / "a" / "b").configured_at is not None
    assert store.find_by_location(abc_workspace / "c").configured_at is None
    assert engine.update_count == 1


def test_unreadable_descriptor_updates_unit_alone(store, engine, abc_workspace):
    (abc_workspace / "a" / "pom.xml").write_text("<project>")
    support = make_support(store, engine)
    unit = store.find_by_location(abc_workspace / "a")

    assert support.collect_units(unit) == [unit]


def test_is_build_file(store, engine, abc_workspace):
    support = make_support(store, engine)
    unit = store.find_by_location(abc_workspace / "a")

    assert support.is_build_file(abc_workspace / "a" / "pom.xml", unit)
    assert not support.is_build_file(abc_workspace / "a" / "b" / "pom.xml", unit)
    assert not support.is_build_file(abc_workspace / "a" / "README.md", unit)
    assert support.is_build_file(abc_workspace / "c" / "pom.xml")
