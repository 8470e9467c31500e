"""Pydantic schemas for application endpoints"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class ApplicationCreate(BaseModel):
    """Applicant-supplied fields for a new application.

    The document itself is uploaded to object storage beforehand; the request
    carries its storage key, filename and size.
    """
    full_name: str = Field(..., min_length=1, max_length=200)
    guardian_name: str = Field(..., min_length=1, max_length=200)
    age: int = Field(..., ge=1, le=150)
    phone: str = Field(..., min_length=5, max_length=32)
    email: EmailStr
    address: str = Field(..., min_length=1, max_length=1000)
    national_id: str = Field(..., min_length=1, max_length=32)
    typed_signature: str = Field(..., min_length=1, max_length=200)
    document_type: str = Field(..., min_length=1, max_length=100)
    required_by_date: date
    department: Optional[str] = Field(None, max_length=200)
    document_key: str = Field(..., min_length=1, max_length=1024)
    document_filename: str = Field(..., min_length=1, max_length=255)
    document_size_bytes: int = Field(..., gt=0)

    @field_validator("full_name", "guardian_name", "typed_signature", "document_type")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ReviewResponseItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reviewer_role: str
    reviewer_id: str
    reviewer_name: str
    action: str
    comment: Optional[str] = None
    created_at: datetime


class ApplicationResponse(BaseModel):
    """Application as returned by the API.

    Storage keys are never exposed; downloads go through presigned URLs.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    full_name: str
    guardian_name: str
    age: int
    phone: str
    email: str
    address: str
    national_id: str
    typed_signature: str
    document_type: str
    required_by_date: date
    department: Optional[str] = None
    document_filename: str
    document_size_bytes: int
    verification_code: Optional[str] = None
    status: str
    current_step: int
    reviews: List[ReviewResponseItem] = []
    created_at: datetime
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    items: List[ApplicationResponse]
    count: int


class ApplicationDetailResponse(BaseModel):
    application: ApplicationResponse
    download_url: Optional[str] = Field(None, description="Presigned URL, None if not downloadable")
    is_sealed_document: bool = Field(False, description="True if download_url points at the sealed copy")
    can_review: bool


class ReviewRequest(BaseModel):
    action: str = Field(..., description="\"approved\" or \"rejected\" (\"approve\" and \"reject\" are also accepted)")
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewResponse(BaseModel):
    """Response for the review endpoint.

    ``verification_code`` is set only when a final approval was sealed.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "application_id": "123e4567-e89b-12d3-a456-426614174000",
                "new_status": "approved",
                "current_step": 3,
                "verification_code": "DRV-123E-MB3K2J1A-7Q2ZXK",
                "message": "Application approved",
            }
        }
    )

    application_id: str
    new_status: str
    current_step: int
    verification_code: Optional[str] = None
    message: str
