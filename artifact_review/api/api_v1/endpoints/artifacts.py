from fastapi import APIRouter, Depends, File, Form, Path, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.api.api_v1.deps import get_identity
from artifact_review.core.config import settings
from artifact_review.core.errors import api_error
from artifact_review.core.security import Identity
from artifact_review.db.session import get_session
from artifact_review.models import MAX_VERSION_NUMBER
from artifact_review.schemas.artifact import (
    AddVersionRequest,
    AddVersionResponse,
    ArtifactDeleteResponse,
    ArtifactOut,
    CreateArtifactRequest,
    CreateArtifactResponse,
    VersionOut,
    VersionSummaryOut,
)
from artifact_review.services.artifact_service import ArtifactService, require_user
from artifact_review.services.serializers import artifact_out, version_out, version_summary_out
from artifact_review.services.zip_ingest import ZipBundle, read_zip_bundle

router = APIRouter()


async def _read_zip_upload(file: UploadFile, entry_point: str | None) -> ZipBundle:
    payload = await file.read(settings.upload_max_bytes + 1)
    if len(payload) > settings.upload_max_bytes:
        raise api_error(413, "upload_too_large", "Upload exceeds the size limit", {"max_bytes": settings.upload_max_bytes})
    return read_zip_bundle(payload, entry_point)


@router.post("/artifacts", response_model=CreateArtifactResponse)
async def create_artifact(
    request: CreateArtifactRequest,
    identity: Identity | None = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    svc = ArtifactService(session)
    return await svc.create(identity, request)


@router.post("/artifacts/upload", response_model=CreateArtifactResponse)
async def upload_artifact(
    file: UploadFile = File(...),
    title: str = Form(..., min_length=1, max_length=200),
    description: str | None = Form(default=None, max_length=2000),
    entry_point: str | None = Form(default=None),
    identity: Identity | None = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    require_user(identity)
    svc = ArtifactService(session)
    bundle = await _read_zip_upload(file, entry_point)
    request = CreateArtifactRequest(
        title=title,
        description=description,
        file_type="zip",
        entry_point=bundle.entry_point,
        file_size=bundle.archive_size,
    )
    return await svc.create(identity, request, files=bundle.entries)


@router.get("/artifacts", response_model=list[ArtifactOut])
async def list_artifacts(
    identity: Identity | None = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    svc = ArtifactService(session)
    rows = await svc.list(identity)
    return [artifact_out(r) for r in rows]


@router.get("/artifacts/{artifact_id}", response_model=ArtifactOut | None)
async def get_artifact(artifact_id: str, session: AsyncSession = Depends(get_session)):
    svc = ArtifactService(session)
    row = await svc.get(artifact_id)
    return artifact_out(row) if row else None


@router.delete("/artifacts/{artifact_id}", response_model=ArtifactDeleteResponse)
async def soft_delete_artifact(
    artifact_id: str,
    identity: Identity | None = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    svc = ArtifactService(session)
    payload = await svc.soft_delete(identity, artifact_id)
    return ArtifactDeleteResponse(ok=True, **payload)


@router.post("/artifacts/{artifact_id}/versions", response_model=AddVersionResponse)
async def add_version(
    artifact_id: str,
    request: AddVersionRequest,
    identity: Identity | None = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    svc = ArtifactService(session)
    return await svc.add_version(identity, artifact_id, request)


@router.post("/artifacts/{artifact_id}/versions/upload", response_model=AddVersionResponse)
async def upload_version(
    artifact_id: str,
    file: UploadFile = File(...),
    entry_point: str | None = Form(default=None),
    identity: Identity | None = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    require_user(identity)
    svc = ArtifactService(session)
    bundle = await _read_zip_upload(file, entry_point)
    request = AddVersionRequest(file_type="zip", entry_point=bundle.entry_point, file_size=bundle.archive_size)
    return await svc.add_version(identity, artifact_id, request, files=bundle.entries)


@router.get("/artifacts/{artifact_id}/versions", response_model=list[VersionSummaryOut])
async def list_versions(artifact_id: str, session: AsyncSession = Depends(get_session)):
    svc = ArtifactService(session)
    rows = await svc.get_versions(artifact_id)
    return [version_summary_out(r) for r in rows]


@router.get("/artifacts/{artifact_id}/versions/latest", response_model=VersionOut | None)
async def get_latest_version(artifact_id: str, session: AsyncSession = Depends(get_session)):
    svc = ArtifactService(session)
    row = await svc.get_latest_version(artifact_id)
    return version_out(row) if row else None


@router.get("/artifacts/{artifact_id}/versions/{version_number}", response_model=VersionOut | None)
async def get_version_by_number(
    artifact_id: str,
    version_number: int = Path(ge=1, le=MAX_VERSION_NUMBER),
    session: AsyncSession = Depends(get_session),
):
    svc = ArtifactService(session)
    row = await svc.get_version_by_number(artifact_id, version_number)
    return version_out(row) if row else None


@router.get("/shared/{share_token}", response_model=ArtifactOut | None)
async def get_by_share_token(share_token: str, session: AsyncSession = Depends(get_session)):
    svc = ArtifactService(session)
    row = await svc.get_by_share_token(share_token)
    return artifact_out(row) if row else None
