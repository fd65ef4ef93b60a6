"""
Blob store API schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from models.base import BaseSchema


class CloudFile(BaseSchema):
    """One object listed under a namespace."""

    key: str
    size: Optional[int] = None
    uploaded_at: Optional[datetime] = Field(None, alias="uploadedAt")

    @property
    def name(self) -> str:
        return self.key.rsplit("/", 1)[-1]


class FileListResponse(BaseSchema):
    """Namespace listing, newest first."""

    ok: bool = True
    namespace: str
    files: list[CloudFile] = Field(default_factory=list)


class UploadResponse(BaseSchema):
    """Key assigned to an uploaded file."""

    ok: bool = True
    key: str
    size: int = Field(..., ge=0)


class PutJsonResponse(BaseSchema):
    ok: bool = True
    key: str
