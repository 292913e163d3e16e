"""
Pydantic schemas for pre-install registration submissions.

A submission describes one traffic-signal cabinet installation: the
intersection and its location, the end user and distributor, cabinet
and TLS connection types, detection I/O, phasing notes and timing
plans.  The JSON API uses camelCase keys (``intersectionName``,
``cabinetType``...) while Python code and the database use snake_case;
every model therefore declares aliases and accepts both spellings.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class SubmissionForm(BaseModel):
    """Raw form payload posted to ``/api/submit``.

    Every field is optional at this level so that the service can
    report all missing required fields in one ``ValidationError``
    rather than failing on the first one.
    """

    intersection_name: Optional[str] = Field(None, alias="intersectionName")
    city: Optional[str] = None
    state: Optional[str] = None
    end_user: Optional[str] = Field(None, alias="endUser")
    distributor: Optional[str] = None
    other_distributor: Optional[str] = Field(None, alias="otherDistributor")
    cabinet_type: Optional[str] = Field(None, alias="cabinetType")
    other_cabinet_type: Optional[str] = Field(None, alias="otherCabinetType")
    tls_connection: Optional[str] = Field(None, alias="tlsConnection")
    other_tls_connection: Optional[str] = Field(None, alias="otherTlsConnection")
    detection_io: Optional[str] = Field(None, alias="detectionIO")
    other_detection_io: Optional[str] = Field(None, alias="otherDetectionIO")
    phasing_text: Optional[str] = Field(None, alias="phasingText")

    class Config:
        populate_by_name = True


class SubmissionRead(BaseModel):
    """Schema for reading a stored submission."""

    id: int
    intersection_name: str = Field(..., alias="intersectionName")
    city: str
    state: str
    end_user: str = Field(..., alias="endUser")
    distributor: str
    cabinet_type: str = Field(..., alias="cabinetType")
    tls_connection: str = Field(..., alias="tlsConnection")
    detection_io: Optional[str] = Field(None, alias="detectionIO")
    phasing: Optional[str] = None
    timing_plans: Optional[str] = Field(None, alias="timingPlans")
    submitted_at: str = Field(..., alias="submittedAt")

    class Config:
        populate_by_name = True


class SubmissionFilter(BaseModel):
    """Optional predicates narrowing a submission listing.

    ``search`` is matched as a case-sensitive substring of the
    intersection name, city, end user and distributor; the remaining
    fields must match exactly.  ``None`` means "no constraint".
    """

    search: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    cabinet_type: Optional[str] = None


class SubmissionPage(BaseModel):
    """One page of submissions plus pagination metadata."""

    submissions: List[SubmissionRead]
    total: int
    page: int
    limit: int
    total_pages: int = Field(..., alias="totalPages")

    class Config:
        populate_by_name = True


class SubmitResponse(BaseModel):
    success: bool = True
    message: str
    id: int


class DeleteResponse(BaseModel):
    success: bool = True
    message: str


class FilterValues(BaseModel):
    """Distinct values used to populate the dashboard filter dropdowns."""

    cities: List[str] = Field(default_factory=list)
    states: List[str] = Field(default_factory=list)
    cabinet_types: List[str] = Field(default_factory=list, alias="cabinetTypes")

    class Config:
        populate_by_name = True
