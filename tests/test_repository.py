import json

import pytest
from pydantic import ValidationError

from models import ProjectStatus, SystemConfiguration
from repository import ProjectNotFoundError, ProjectRepository
from storage import MemoryStore, StorageError


class FailingStore(MemoryStore):
    def set(self, key, value):
        raise StorageError("disk full")


def test_add_then_get(repo, details, config):
    project_id = repo.add_project(details, config)
    project = repo.get_project(project_id)

    assert project_id
    assert project.personal_details.model_dump() == details
    assert project.system_configuration == SystemConfiguration(**config)
    assert project.calculations.total_payable_amount == 609520
    assert project.status == ProjectStatus.DRAFT
    assert project.images == ()
    assert project.created_at == project.updated_at == "2026-10-19T09:30:00.000Z"


def test_add_persists_full_collection(repo, store, details, config):
    repo.add_project(details, config)
    repo.add_project(details, config)
    stored = json.loads(store.get("projects"))
    assert len(stored) == 2
    assert stored[0]["personalDetails"]["name"] == "Priya Sharma"
    assert stored[0]["calculations"]["systemSize"] == 10.8


def test_ids_are_unique(repo, details, config):
    ids = {repo.add_project(details, config) for _ in range(20)}
    assert len(ids) == 20


def test_reload_from_store(repo, store, details, config):
    project_id = repo.add_project(details, config)
    repo.update_settings(default_gst_percentage=18)

    reloaded = ProjectRepository(store)
    assert reloaded.get_project(project_id) == repo.get_project(project_id)
    assert reloaded.settings.default_gst_percentage == 18


def test_invalid_input_never_reaches_store(repo, store, details, config):
    config["number_of_panels"] = 0
    with pytest.raises(ValidationError):
        repo.add_project(details, config)
    assert store.get("projects") is None


def test_update_status_refreshes_timestamp(repo, details, config):
    project_id = repo.add_project(details, config)
    updated = repo.set_status(project_id, "completed")
    assert updated.status == ProjectStatus.COMPLETED
    assert updated.updated_at > updated.created_at
    assert repo.get_project(project_id).status == ProjectStatus.COMPLETED


def test_update_configuration_recomputes_calculations(repo, details, config):
    project_id = repo.add_project(details, config)
    config["number_of_panels"] = 10
    updated = repo.update_project(project_id, system_configuration=config)
    assert updated.calculations.system_size == 5.4
    assert updated.calculations.total_base_price == 270000


def test_update_rejects_managed_fields(repo, details, config):
    project_id = repo.add_project(details, config)
    with pytest.raises(TypeError):
        repo.update_project(project_id, id="other")
    with pytest.raises(TypeError):
        repo.update_project(project_id, calculations={})


def test_update_unknown_project(repo):
    with pytest.raises(ProjectNotFoundError):
        repo.update_project("missing", status="completed")


def test_append_images_keeps_order(repo, details, config):
    project_id = repo.add_project(details, config, images=["a.png"])
    repo.append_images(project_id, ["b.png", "c.png"])
    assert repo.get_project(project_id).images == ("a.png", "b.png", "c.png")


def test_delete(repo, details, config):
    project_id = repo.add_project(details, config)
    repo.delete_project(project_id)
    assert repo.get_project(project_id) is None
    repo.delete_project(project_id)
    repo.delete_project("never-existed")
    assert repo.projects == ()


def test_failed_write_leaves_state_unchanged(details, config):
    store = FailingStore()
    repo = ProjectRepository(store)
    with pytest.raises(StorageError):
        repo.add_project(details, config)
    assert repo.projects == ()
    with pytest.raises(StorageError):
        repo.update_settings(default_gst_percentage=5)
    assert repo.settings.default_gst_percentage == 13.8


def test_failed_update_and_delete_leave_state_unchanged(repo, store, details, config):
    project_id = repo.add_project(details, config)
    stored = store.get("projects")
    original = repo.get_project(project_id)

    failing = ProjectRepository(FailingStore({"projects": stored}))
    config["number_of_panels"] = 10
    with pytest.raises(StorageError):
        failing.update_project(project_id, system_configuration=config)
    with pytest.raises(StorageError):
        failing.set_status(project_id, "completed")
    with pytest.raises(StorageError):
        failing.delete_project(project_id)
    assert failing.projects == (original,)


def test_delete_is_written_through(repo, store, details, config):
    keep = repo.add_project(details, config)
    gone = repo.add_project(details, config)
    repo.delete_project(gone)

    reloaded = ProjectRepository(store)
    assert reloaded.get_project(gone) is None
    assert reloaded.projects == (repo.get_project(keep),)


def test_update_is_written_through(repo, store, details, config):
    project_id = repo.add_project(details, config)
    repo.set_status(project_id, "completed")
    config["number_of_panels"] = 10
    repo.update_project(project_id, system_configuration=config)

    reloaded = ProjectRepository(store).get_project(project_id)
    assert reloaded == repo.get_project(project_id)
    assert reloaded.status == ProjectStatus.COMPLETED
    assert reloaded.system_configuration.number_of_panels == 10
    assert reloaded.calculations.system_size == 5.4


def test_unreadable_store_raises():
    with pytest.raises(StorageError):
        ProjectRepository(MemoryStore({"projects": "{not json"}))


def test_update_settings_merges(repo, store):
    settings = repo.update_settings(default_base_price_per_kw=45000)
    assert settings.default_base_price_per_kw == 45000
    assert settings.default_gst_percentage == 13.8
    assert json.loads(store.get("settings")) == {
        "defaultGstPercentage": 13.8,
        "defaultBasePricePerKw": 45000,
    }


def test_export_round_trip(repo, details, config):
    first = repo.add_project(details, config)
    repo.add_project(details, config, status="completed")
    repo.append_images(first, ["roof.jpg"])

    exported = repo.export_all()
    assert exported.startswith(b"[\n  {")
    assert ProjectRepository.load_export(exported) == list(repo.projects)


def test_export_filename():
    from datetime import date
    assert ProjectRepository.export_filename(date(2026, 10, 19)) == "solar_projects_2026-10-19.json"


def test_clear_all(repo, store, details, config):
    repo.add_project(details, config)
    repo.update_settings(default_gst_percentage=5)
    repo.clear_all()
    assert repo.projects == ()
    assert repo.settings.default_gst_percentage == 13.8
    assert store.get("projects") is None
    assert store.get("settings") is None


def test_projects_view_is_read_only(repo, details, config):
    repo.add_project(details, config)
    view = repo.projects
    assert isinstance(view, tuple)
    assert len(repo.projects) == 1


def test_project_images_cannot_be_mutated_in_place(repo, store, details, config):
    project_id = repo.add_project(details, config, images=["a.png"])
    project = repo.get_project(project_id)
    with pytest.raises(AttributeError):
        project.images.append("sneaky.png")
    with pytest.raises(ValidationError):
        project.images = ("sneaky.png",)
    assert repo.get_project(project_id).images == ("a.png",)
    assert json.loads(store.get("projects"))[0]["images"] == ["a.png"]


def test_single_string_is_not_split_into_images(repo, store, details, config):
    with pytest.raises(TypeError):
        repo.add_project(details, config, images="roof.png")
    assert store.get("projects") is None

    project_id = repo.add_project(details, config)
    with pytest.raises(TypeError):
        repo.append_images(project_id, "roof.png")
    with pytest.raises(TypeError):
        repo.update_project(project_id, images="roof.png")
    assert repo.get_project(project_id).images == ()
