"""Three-step quotation workflow.

Personal details -> system configuration -> review, then commit through the
project repository. Moving back keeps everything already entered.
"""

import logging
from enum import Enum
from typing import Optional

from constants import DEFAULT_CLEANING_CHARGES, DEFAULT_SUBSIDY
from models import (
    AppSettings,
    Calculations,
    PersonalDetails,
    Project,
    ProjectStatus,
    SystemConfiguration,
    ValidationResult,
    validate_personal_details,
    validate_system_configuration,
)
from utils import calculate_system_metrics

logger = logging.getLogger(__name__)


class WorkflowError(Exception):
    """Raised on a transition the current step does not allow."""


class WorkflowStep(str, Enum):
    PERSONAL_DETAILS = "personal_details"
    SYSTEM_CONFIG = "system_config"
    REVIEW = "review"


class QuotationWorkflow:
    """Collects a quotation step by step and commits it as a project.

    Args:
        settings: application defaults seeded into the configuration draft
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        settings = settings or AppSettings()
        self.step = WorkflowStep.PERSONAL_DETAILS
        self.personal_details: Optional[PersonalDetails] = None
        self.system_configuration: Optional[SystemConfiguration] = None
        self.editing_id: Optional[str] = None
        self.closed = False
        self.draft = {
            "make": "",
            "watt_peak": None,
            "number_of_panels": None,
            "base_price_per_kw": settings.default_base_price_per_kw,
            "gst_percentage": settings.default_gst_percentage,
            "cleaning_charges": DEFAULT_CLEANING_CHARGES,
            "subsidy": DEFAULT_SUBSIDY,
        }
        self.details_draft = {"name": "", "phone": "", "email": "", "address": ""}

    @classmethod
    def edit(cls, project: Project, settings: Optional[AppSettings] = None) -> "QuotationWorkflow":
        """Re-open a saved project with its details and configuration filled in."""
        workflow = cls(settings)
        workflow.editing_id = project.id
        workflow.personal_details = project.personal_details
        workflow.system_configuration = project.system_configuration
        workflow.details_draft = project.personal_details.model_dump()
        workflow.draft = project.system_configuration.model_dump()
        return workflow

    def _require(self, step: WorkflowStep) -> None:
        if self.closed:
            raise WorkflowError("Quotation has already been committed")
        if self.step != step:
            raise WorkflowError(f"Not allowed at step {self.step.value}")

    # ------------------------------------------------------------------
    # Forward transitions
    # ------------------------------------------------------------------

    def submit_personal_details(self, data: dict) -> ValidationResult:
        self._require(WorkflowStep.PERSONAL_DETAILS)
        self.details_draft.update(data)
        result = validate_personal_details(self.details_draft)
        if result.ok:
            self.personal_details = result.value
            self.step = WorkflowStep.SYSTEM_CONFIG
        return result

    def submit_system_configuration(self, data: dict) -> ValidationResult:
        self._require(WorkflowStep.SYSTEM_CONFIG)
        self.draft.update(data)
        result = validate_system_configuration(self.draft)
        if result.ok:
            self.system_configuration = result.value
            self.step = WorkflowStep.REVIEW
        return result

    def commit(self, repository) -> str:
        """Persist the quotation and close the workflow.

        New quotations are added as drafts; an edit updates the original
        project, which recomputes its calculations.
        """
        self._require(WorkflowStep.REVIEW)
        if self.editing_id is None:
            project_id = repository.add_project(
                self.personal_details,
                self.system_configuration,
                images=[],
                status=ProjectStatus.DRAFT,
            )
        else:
            project_id = repository.update_project(
                self.editing_id,
                personal_details=self.personal_details,
                system_configuration=self.system_configuration,
            ).id
        self.closed = True
        logger.info("Quotation committed as project %s", project_id)
        return project_id

    # ------------------------------------------------------------------
    # Backward transition
    # ------------------------------------------------------------------

    def back(self) -> WorkflowStep:
        if self.closed:
            raise WorkflowError("Quotation has already been committed")
        if self.step == WorkflowStep.SYSTEM_CONFIG:
            self.step = WorkflowStep.PERSONAL_DETAILS
        elif self.step == WorkflowStep.REVIEW:
            self.step = WorkflowStep.SYSTEM_CONFIG
        else:
            raise WorkflowError("Already at the first step")
        return self.step

    # ------------------------------------------------------------------
    # Live preview
    # ------------------------------------------------------------------

    def update_draft(self, **values) -> None:
        """Record in-progress configuration values without submitting them."""
        if self.closed:
            raise WorkflowError("Quotation has already been committed")
        self.draft.update(values)

    def preview(self) -> Optional[Calculations]:
        """Calculations for the current draft, or None while it is incomplete.

        Once the configuration step has been submitted the submitted values
        are shown; the preview is never persisted.
        """
        if self.step == WorkflowStep.REVIEW and self.system_configuration is not None:
            return calculate_system_metrics(self.system_configuration)
        # make does not affect pricing
        draft = {**self.draft, "make": self.draft.get("make") or "preview"}
        result = validate_system_configuration(draft)
        if not result.ok:
            return None
        return calculate_system_metrics(result.value)
