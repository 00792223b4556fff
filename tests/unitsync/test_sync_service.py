import json
import pytest

from src.core.bootstrap import ApplicationBuilder
from src.core.errors import SyncError
from src.unitsync.bundle import UnitSyncBundle
from src.unitsync.service import WorkspaceSyncService


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "unitsync.json"
    path.write_text(json.dumps({
        "general": {"log_dir": ""},
        "storage": {"state_dir": str(tmp_path / "state")},
    }))
    return str(path)


async def start(config_path):
    locator = await ApplicationBuilder("test", config_path).add_bundle(UnitSyncBundle()).build()
    return locator, locator.get_system(WorkspaceSyncService)


@pytest.mark.asyncio
async def test_sync_persists_between_runs(config_path, abc_workspace, tmp_path):
    locator, service = await start(config_path)
    service.open_root(abc_workspace)
    first = await service.synchronize()
    await locator.stop_all()

    assert len(first.imported) == 3
    assert (tmp_path / "state" / "workspace.json").is_file()
    assert (tmp_path / "state" / "digests.json").is_file()

    locator, service = await start(config_path)
    service.open_root(abc_workspace)
    second = await service.synchronize()
    await locator.stop_all()

    assert second.imported == []
    assert len(second.unchanged) == 3


@pytest.mark.asyncio
async def test_changed_descriptor_updates_known_unit(config_path, abc_workspace):
    locator, service = await start(config_path)
    service.open_root(abc_workspace)
    await service.synchronize()
    pom = abc_workspace / "c" / "pom.xml"
    pom.write_text(pom.read_text().replace("1.0.0", "1.1.0"))

    await service.on_descriptor_changed(pom)

    assert service.engine.update_count == 1
    assert service.store.find_by_location(abc_workspace / "c").configured_at is not None
    await locator.stop_all()


@pytest.mark.asyncio
async def test_new_descriptor_triggers_rescan(config_path, abc_workspace, make_descriptor):
    locator, service = await start(config_path)
    service.open_root(abc_workspace)
    await service.synchronize()

    pom = make_descriptor(abc_workspace / "d", "D")
    await service.on_descriptor_changed(pom)

    assert service.store.find_by_location(abc_workspace / "d") is not None
    await locator.stop_all()


@pytest.mark.asyncio
async def test_importer_settings_apply_live(config_path, abc_workspace):
    locator, service = await start(config_path)
    orchestrator = service.open_root(abc_workspace)

    locator.config.update("importer", "exclusions", ["**/c"])
    locator.config.update("importer", "download_sources", True)
    locator.config.update("importer", "collect_dependents", False)

    assert orchestrator.path_filter.patterns == ["**/c"]
    assert service.batcher.download_sources is True
    assert service.build_support.collect_dependents is False
    result = await service.synchronize()
    assert [info.name for info in result.skipped] == ["C"]
    await locator.stop_all()


@pytest.mark.asyncio
async def test_root_required(config_path):
    locator, service = await start(config_path)

    with pytest.raises(SyncError):
        await service.synchronize()
    await locator.stop_all()


@pytest.mark.asyncio
async def test_refresh_picks_up_units_added_on_disk(config_path, abc_workspace, make_descriptor):
    locator, service = await start(config_path)
    service.open_root(abc_workspace)
    await service.synchronize()

    make_descriptor(abc_workspace / "e", "E")
    result = await service.synchronize()

    assert [r.info.name for r in result.imported] == ["E"]
    assert service.store.find_by_location(abc_workspace / "e") is not None
    await locator.stop_all()


@pytest.mark.asyncio
async def test_module_declared_after_its_folder_appears(config_path, abc_workspace, make_descriptor):
    locator, service = await start(config_path)
    service.open_root(abc_workspace)
    await service.synchronize()

    module_pom = make_descriptor(abc_workspace / "a" / "d", "D")
    await service.on_descriptor_changed(module_pom)
    assert service.store.find_by_location(abc_workspace / "a" / "d") is None

    parent_pom = make_descriptor(abc_workspace / "a", "A", modules=["b", "d"])
    await service.on_descriptor_changed(parent_pom)

    assert service.store.find_by_location(abc_workspace / "a" / "d") is not None
    await locator.stop_all()


@pytest.mark.asyncio
async def test_unchanged_modules_do_not_rescan(config_path, abc_workspace):
    locator, service = await start(config_path)
    orchestrator = service.open_root(abc_workspace)
    await service.synchronize()
    cached = await orchestrator.get_project_infos()

    pom = abc_workspace / "a" / "pom.xml"
    pom.write_text(pom.read_text().replace("1.0.0", "1.1.0"))
    await service.on_descriptor_changed(pom)

    assert await orchestrator.get_project_infos() is cached
    await locator.stop_all()
