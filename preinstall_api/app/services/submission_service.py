"""
Service layer for accepting registration form submissions.

``SubmissionService.submit`` checks that every required field is
present, resolves the ``"Other"`` dropdown options to their free-text
overrides, folds uploaded-file references into the phasing and timing
plan text, and persists the result through ``SubmissionStore``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from preinstall_api.app.core.db import SubmissionStore
from preinstall_api.app.core.exceptions import ValidationError
from preinstall_api.app.schemas.submission import SubmissionForm

logger = logging.getLogger(__name__)

OTHER_OPTION = "Other"
SUCCESS_MESSAGE = "Form submitted successfully!"
MISSING_FIELDS_MESSAGE = "Missing required fields"

# Form field name -> attribute on ``SubmissionForm``.
REQUIRED_FIELDS: Dict[str, str] = {
    "intersectionName": "intersection_name",
    "city": "city",
    "state": "state",
    "endUser": "end_user",
    "distributor": "distributor",
    "cabinetType": "cabinet_type",
    "tlsConnection": "tls_connection",
}

# Dropdown attribute -> attribute holding its "Other" free-text value.
OTHER_OVERRIDES: Dict[str, str] = {
    "distributor": "other_distributor",
    "cabinet_type": "other_cabinet_type",
    "tls_connection": "other_tls_connection",
    "detection_io": "other_detection_io",
}


@dataclass
class SubmitResult:
    id: int
    message: str = SUCCESS_MESSAGE


def file_reference(filename: str) -> str:
    return f"File: {filename}"


def merge_phasing(text: Optional[str], filename: Optional[str]) -> str:
    """Combine phasing free text with an uploaded file reference.

    ``"<text> | File: <name>"`` when both are present, ``"File: <name>"``
    when only the file is, and the bare text (possibly empty) otherwise.
    """
    text = text or ""
    if not filename:
        return text
    if text:
        return f"{text} | {file_reference(filename)}"
    return file_reference(filename)


class SubmissionService:
    """Validate and store pre-install registration forms."""

    def __init__(self, store: SubmissionStore) -> None:
        self.store = store

    @staticmethod
    def missing_fields(form: SubmissionForm) -> List[str]:
        """Return the form names of required fields that are empty or absent."""
        return [name for name, attr in REQUIRED_FIELDS.items() if not getattr(form, attr)]

    @staticmethod
    def resolve_other(form: SubmissionForm, attr: str) -> Optional[str]:
        """Return the effective value of a dropdown field.

        When the option ``"Other"`` was chosen the free-text override is
        used instead.  An empty override is not an error: the value
        stays ``"Other"`` so required columns never end up blank.
        """
        value = getattr(form, attr)
        if value == OTHER_OPTION:
            override = getattr(form, OTHER_OVERRIDES[attr])
            return override or value
        return value or None

    async def submit(
        self,
        form: SubmissionForm,
        phasing_file: Optional[str] = None,
        timing_plans_file: Optional[str] = None,
    ) -> SubmitResult:
        """Validate ``form`` and insert it as a new submission.

        ``phasing_file`` and ``timing_plans_file`` are filenames already
        stored by ``FileIntake``.  Raises ``ValidationError`` if any
        required field is missing and ``StorageError`` if the insert
        fails.
        """
        missing = self.missing_fields(form)
        if missing:
            logger.info("Rejected submission, missing fields: %s", ", ".join(missing))
            raise ValidationError(MISSING_FIELDS_MESSAGE, fields=missing)

        fields = {
            "intersection_name": form.intersection_name,
            "city": form.city,
            "state": form.state,
            "end_user": form.end_user,
            "distributor": self.resolve_other(form, "distributor"),
            "cabinet_type": self.resolve_other(form, "cabinet_type"),
            "tls_connection": self.resolve_other(form, "tls_connection"),
            "detection_io": self.resolve_other(form, "detection_io"),
            "phasing": merge_phasing(form.phasing_text, phasing_file),
            "timing_plans": file_reference(timing_plans_file) if timing_plans_file else "",
        }
        submission_id = self.store.insert(fields)
        logger.info(
            "Created submission %s for %s, %s",
            submission_id,
            fields["intersection_name"],
            fields["city"],
        )
        return SubmitResult(id=submission_id)
