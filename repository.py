"""Project repository: the single owner of project records and settings.

Every mutation builds the complete new snapshot, writes it through the
durable store and only then replaces the in-memory state, so a failed write
leaves the previous state in place.
"""

import json
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Callable, Iterable, List, Optional, Tuple, Union

from pydantic import ValidationError

from constants import EXPORT_FILENAME_TEMPLATE, PROJECTS_KEY, SETTINGS_KEY
from models import (
    AppSettings,
    PersonalDetails,
    Project,
    ProjectStatus,
    SystemConfiguration,
)
from storage import KeyValueStore, StorageError
from utils import calculate_system_metrics

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("personal_details", "system_configuration", "images", "status")


class ProjectNotFoundError(KeyError):
    """Raised when an operation addresses a project id that does not exist."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a trailing Z."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def image_refs(refs: Iterable[str]) -> Tuple[str, ...]:
    """Normalise image references; a bare string is a caller error, not a sequence."""
    if isinstance(refs, (str, bytes)):
        raise TypeError("Image references must be a sequence of strings, not a single string")
    return tuple(str(ref) for ref in refs)


def parse_projects(data: Union[str, bytes]) -> List[Project]:
    """Parse a JSON-encoded project collection (stored value or export)."""
    records = json.loads(data)
    if not isinstance(records, list):
        raise ValueError("Project collection must be a JSON array")
    return [Project.model_validate(record) for record in records]


def dump_projects(projects: Iterable[Project], indent: Optional[int] = None) -> str:
    return json.dumps([p.to_json_dict() for p in projects], indent=indent, ensure_ascii=False)


class ProjectRepository:
    """Owns the project collection and application settings.

    Args:
        store: durable key-value store holding the ``projects`` and
            ``settings`` keys
        clock: returns the current time; injectable for tests
    """

    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = utc_now):
        self._store = store
        self._clock = clock
        self._projects: List[Project] = []
        self._settings = AppSettings()
        self._load()

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        raw_projects = self._store.get(PROJECTS_KEY)
        raw_settings = self._store.get(SETTINGS_KEY)
        try:
            if raw_projects:
                self._projects = parse_projects(raw_projects)
            if raw_settings:
                self._settings = AppSettings.model_validate_json(raw_settings)
        except (ValueError, ValidationError) as exc:
            raise StorageError(f"Stored data is unreadable: {exc}") from exc
        logger.debug("Loaded %d projects", len(self._projects))

    def _commit_projects(self, projects: List[Project]) -> None:
        self._store.set(PROJECTS_KEY, dump_projects(projects))
        self._projects = projects

    def _commit_settings(self, settings: AppSettings) -> None:
        self._store.set(SETTINGS_KEY, settings.model_dump_json(by_alias=True))
        self._settings = settings

    def _now(self) -> str:
        return to_timestamp(self._clock())

    def _new_id(self) -> str:
        taken = {p.id for p in self._projects}
        while True:
            project_id = uuid.uuid4().hex
            if project_id not in taken:
                return project_id

    def _index_of(self, project_id: str) -> int:
        for index, project in enumerate(self._projects):
            if project.id == project_id:
                return index
        raise ProjectNotFoundError(project_id)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def projects(self) -> Tuple[Project, ...]:
        return tuple(self._projects)

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def get_project(self, project_id: str) -> Optional[Project]:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_project(
        self,
        personal_details: Union[PersonalDetails, dict],
        system_configuration: Union[SystemConfiguration, dict],
        images: Iterable[str] = (),
        status: Union[ProjectStatus, str] = ProjectStatus.DRAFT,
    ) -> str:
        """Create a project, compute its calculations and persist it.

        Returns the new project id.
        """
        details = PersonalDetails.model_validate(personal_details)
        config = SystemConfiguration.model_validate(system_configuration)
        now = self._now()
        project = Project(
            id=self._new_id(),
            personal_details=details,
            system_configuration=config,
            calculations=calculate_system_metrics(config),
            images=image_refs(images),
            status=ProjectStatus(status),
            created_at=now,
            updated_at=now,
        )
        self._commit_projects(self._projects + [project])
        logger.info("Added project %s for %s", project.id, details.name)
        return project.id

    def update_project(self, project_id: str, **fields) -> Project:
        """Merge fields into a project and refresh its updated timestamp.

        Accepted fields: personal_details, system_configuration, images,
        status. A new configuration always recomputes the calculations.
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise TypeError(f"Cannot update project fields: {', '.join(sorted(unknown))}")

        index = self._index_of(project_id)
        changes = {}
        if "personal_details" in fields:
            changes["personal_details"] = PersonalDetails.model_validate(fields["personal_details"])
        if "system_configuration" in fields:
            config = SystemConfiguration.model_validate(fields["system_configuration"])
            changes["system_configuration"] = config
            changes["calculations"] = calculate_system_metrics(config)
        if "images" in fields:
            changes["images"] = image_refs(fields["images"])
        if "status" in fields:
            changes["status"] = ProjectStatus(fields["status"])
        changes["updated_at"] = self._now()

        updated = self._projects[index].model_copy(update=changes)
        projects = list(self._projects)
        projects[index] = updated
        self._commit_projects(projects)
        logger.info("Updated project %s (%s)", project_id, ", ".join(sorted(fields)) or "touch")
        return updated

    def set_status(self, project_id: str, status: Union[ProjectStatus, str]) -> Project:
        return self.update_project(project_id, status=status)

    def append_images(self, project_id: str, refs: Iterable[str]) -> Project:
        project = self.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return self.update_project(project_id, images=project.images + image_refs(refs))

    def delete_project(self, project_id: str) -> None:
        remaining = [p for p in self._projects if p.id != project_id]
        if len(remaining) == len(self._projects):
            return
        self._commit_projects(remaining)
        logger.info("Deleted project %s", project_id)

    def update_settings(self, **fields) -> AppSettings:
        merged = {**self._settings.model_dump(), **fields}
        settings = AppSettings.model_validate(merged)
        self._commit_settings(settings)
        logger.info("Updated settings: %s", ", ".join(sorted(fields)))
        return settings

    def clear_all(self) -> None:
        """Wipe every stored key and reset to an empty collection."""
        self._store.clear()
        self._projects = []
        self._settings = AppSettings()
        logger.info("Cleared all projects and settings")

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_all(self) -> bytes:
        """Pretty-printed JSON of the whole project collection."""
        return dump_projects(self._projects, indent=2).encode("utf-8")

    @staticmethod
    def export_filename(today: Optional[date] = None) -> str:
        today = today or date.today()
        return EXPORT_FILENAME_TEMPLATE.format(date=today.isoformat())

    @staticmethod
    def load_export(data: Union[str, bytes]) -> List[Project]:
        return parse_projects(data)
