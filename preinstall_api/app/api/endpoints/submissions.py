"""
Submission endpoints.

``POST /submit`` accepts the registration form as urlencoded or
multipart (with optional ``phasingFile`` and ``timingPlans``
attachments), or as a JSON object with the same camelCase keys.  The remaining
routes back the admin dashboard: a filtered, paginated listing,
single-record lookup and deletion.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from pydantic import ValidationError as PayloadValidationError

from preinstall_api.app.api.deps import get_file_intake, get_query_service, get_submission_service
from preinstall_api.app.core.exceptions import (
    NotFoundError,
    PreInstallError,
    StorageError,
    UploadTooLargeError,
    ValidationError,
)
from preinstall_api.app.core.uploads import FileIntake
from preinstall_api.app.schemas.submission import (
    DeleteResponse,
    SubmissionForm,
    SubmissionPage,
    SubmissionRead,
    SubmitResponse,
)
from preinstall_api.app.services.query_service import QueryService
from preinstall_api.app.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter()


async def _form_from_json(request: Request) -> SubmissionForm:
    """Build a ``SubmissionForm`` from a JSON request body."""
    try:
        payload = await request.json()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed JSON body") from e
    if not isinstance(payload, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="JSON body must be an object")
    try:
        return SubmissionForm.model_validate(payload)
    except PayloadValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Form fields must be strings"
        ) from e


@router.post("/submit", response_model=SubmitResponse, status_code=status.HTTP_201_CREATED)
async def submit_form(
    request: Request,
    intersection_name: Optional[str] = Form(None, alias="intersectionName"),
    city: Optional[str] = Form(None),
    state: Optional[str] = Form(None),
    end_user: Optional[str] = Form(None, alias="endUser"),
    distributor: Optional[str] = Form(None),
    other_distributor: Optional[str] = Form(None, alias="otherDistributor"),
    cabinet_type: Optional[str] = Form(None, alias="cabinetType"),
    other_cabinet_type: Optional[str] = Form(None, alias="otherCabinetType"),
    tls_connection: Optional[str] = Form(None, alias="tlsConnection"),
    other_tls_connection: Optional[str] = Form(None, alias="otherTlsConnection"),
    detection_io: Optional[str] = Form(None, alias="detectionIO"),
    other_detection_io: Optional[str] = Form(None, alias="otherDetectionIO"),
    phasing_text: Optional[str] = Form(None, alias="phasingText"),
    phasing_file: Optional[UploadFile] = File(None, alias="phasingFile"),
    timing_plans_file: Optional[UploadFile] = File(None, alias="timingPlans"),
    service: SubmissionService = Depends(get_submission_service),
    intake: FileIntake = Depends(get_file_intake),
) -> SubmitResponse:
    """Store a new pre-install registration.

    Returns HTTP 400 if a required field is missing, 413 if an
    attachment exceeds the upload limit and 500 if the database write
    fails.  Attachments saved before a failure are removed again.
    """
    if request.headers.get("content-type", "").startswith("application/json"):
        form = await _form_from_json(request)
    else:
        form = SubmissionForm(
            intersection_name=intersection_name,
            city=city,
            state=state,
            end_user=end_user,
            distributor=distributor,
            other_distributor=other_distributor,
            cabinet_type=cabinet_type,
            other_cabinet_type=other_cabinet_type,
            tls_connection=tls_connection,
            other_tls_connection=other_tls_connection,
            detection_io=detection_io,
            other_detection_io=other_detection_io,
            phasing_text=phasing_text,
        )
    stored_files = []
    try:
        phasing_name = await intake.save(phasing_file, "phasingFile")
        if phasing_name:
            stored_files.append(phasing_name)
        timing_plans_name = await intake.save(timing_plans_file, "timingPlans")
        if timing_plans_name:
            stored_files.append(timing_plans_name)
        result = await service.submit(form, phasing_file=phasing_name, timing_plans_file=timing_plans_name)
    except PreInstallError as e:
        for filename in stored_files:
            intake.delete(filename)
        if isinstance(e, UploadTooLargeError):
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=e.message) from e
        if isinstance(e, ValidationError):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
        logger.error("Database error while saving submission: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save submission"
        ) from e
    return SubmitResponse(success=True, message=result.message, id=result.id)


@router.get("/submissions", response_model=SubmissionPage)
async def list_submissions(
    search: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    cabinet_type: Optional[str] = Query(None, alias="cabinetType"),
    page: Optional[int] = Query(1),
    limit: Optional[int] = Query(None),
    service: QueryService = Depends(get_query_service),
) -> SubmissionPage:
    """List submissions, newest first.

    - **search**: substring of intersection name, city, end user or distributor.
    - **city**, **state**, **cabinetType**: exact-match filters.
    - **page**, **limit**: pagination; out-of-range values are clamped.
    """
    try:
        return await service.list_submissions(
            search=search,
            city=city,
            state=state,
            cabinet_type=cabinet_type,
            page=page,
            limit=limit,
        )
    except StorageError as e:
        logger.error("Database error while listing submissions: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch submissions"
        ) from e


@router.get("/submissions/{submission_id}", response_model=SubmissionRead)
async def get_submission(
    submission_id: int,
    service: QueryService = Depends(get_query_service),
) -> SubmissionRead:
    """Retrieve a single submission.  Returns HTTP 404 if it does not exist."""
    try:
        return await service.get_submission(submission_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except StorageError as e:
        logger.error("Database error while fetching submission %s: %s", submission_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch submission"
        ) from e


@router.delete("/submissions/{submission_id}", response_model=DeleteResponse)
async def delete_submission(
    submission_id: int,
    service: QueryService = Depends(get_query_service),
) -> DeleteResponse:
    """Delete a submission.  Returns HTTP 404 if it does not exist."""
    try:
        message = await service.delete_submission(submission_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except StorageError as e:
        logger.error("Database error while deleting submission %s: %s", submission_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete submission"
        ) from e
    return DeleteResponse(success=True, message=message)
