from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.api.api_v1.deps import get_identity
from artifact_review.core.security import Identity
from artifact_review.db.session import get_session
from artifact_review.schemas.artifact import ArtifactFileOut, HtmlFileOut, VersionDeleteResponse, VersionOut
from artifact_review.services.artifact_service import ArtifactService
from artifact_review.services.serializers import artifact_file_out, html_file_out, version_out

router = APIRouter(prefix="/versions")


@router.get("/{version_id}", response_model=VersionOut | None)
async def get_version(version_id: str, session: AsyncSession = Depends(get_session)):
    svc = ArtifactService(session)
    row = await svc.get_version(version_id)
    return version_out(row) if row else None


@router.delete("/{version_id}", response_model=VersionDeleteResponse)
async def soft_delete_version(
    version_id: str,
    identity: Identity | None = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    svc = ArtifactService(session)
    payload = await svc.soft_delete_version(identity, version_id)
    return VersionDeleteResponse(ok=True, **payload)


@router.get("/{version_id}/files", response_model=list[ArtifactFileOut])
async def get_files_by_version(version_id: str, session: AsyncSession = Depends(get_session)):
    svc = ArtifactService(session)
    rows = await svc.get_files_by_version(version_id)
    return [artifact_file_out(r) for r in rows]


@router.get("/{version_id}/html-files", response_model=list[HtmlFileOut])
async def list_html_files(version_id: str, session: AsyncSession = Depends(get_session)):
    svc = ArtifactService(session)
    rows = await svc.list_html_files(version_id)
    return [html_file_out(r) for r in rows]
