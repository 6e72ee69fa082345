from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

FileType = Literal["zip", "html", "markdown"]


class VersionPayload(BaseModel):
    file_type: FileType
    html_content: str | None = None
    markdown_content: str | None = None
    entry_point: str | None = Field(default=None, max_length=1024)
    file_size: int = Field(ge=0)

    @model_validator(mode="after")
    def _payload_matches_type(self):
        if self.file_type == "html" and self.html_content is None:
            raise ValueError("html_content is required for html artifacts")
        if self.file_type == "markdown" and self.markdown_content is None:
            raise ValueError("markdown_content is required for markdown artifacts")
        return self


class CreateArtifactRequest(VersionPayload):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)


class AddVersionRequest(VersionPayload):
    pass


class CreateArtifactResponse(BaseModel):
    artifact_id: str
    version_id: str
    version_number: int
    share_token: str


class AddVersionResponse(BaseModel):
    version_id: str
    version_number: int


class ArtifactOut(BaseModel):
    artifact_id: str
    title: str
    description: str | None = None
    creator_id: str
    share_token: str
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class VersionSummaryOut(BaseModel):
    version_id: str
    artifact_id: str
    version_number: int
    file_type: FileType
    file_size: int
    created_at: datetime


class VersionOut(VersionSummaryOut):
    html_content: str | None = None
    markdown_content: str | None = None
    entry_point: str | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None


class ArtifactFileOut(BaseModel):
    file_id: str
    version_id: str
    file_path: str
    mime_type: str
    file_size: int
    is_deleted: bool = False
    deleted_at: datetime | None = None


class HtmlFileOut(BaseModel):
    file_path: str
    mime_type: str


class ArtifactDeleteResponse(BaseModel):
    ok: bool
    artifact_id: str
    deleted_at: datetime | None = None


class VersionDeleteResponse(BaseModel):
    ok: bool
    version_id: str
    deleted_at: datetime | None = None
