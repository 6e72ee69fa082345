"""Public file route for shared artifacts.

``GET /artifact/{share_token}/v{n}/{file_path}`` is opened directly by
browsers (and by the sandboxed iframe of the viewer), so every outcome is a
plain-text or raw response rather than a JSON error payload.
"""

import logging
import re

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.db.session import get_session
from artifact_review.models import MAX_VERSION_NUMBER
from artifact_review.services.artifact_service import ArtifactService
from artifact_review.services.zip_ingest import DEFAULT_ENTRY_POINT
from artifact_review.storage.keys import uri_to_key
from artifact_review.storage.object_store import ObjectNotFound, object_store

logger = logging.getLogger(__name__)

router = APIRouter()

_VERSION_SEGMENT = re.compile(r"v(\d+)", re.ASCII)

# Version content never changes once written.
IMMUTABLE_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Cache-Control": "public, max-age=31536000",
}
ZIP_CORS_HEADERS = {
    "Access-Control-Allow-Methods": "GET",
    "Access-Control-Allow-Headers": "Content-Type",
}


async def serve_artifact_file(session: AsyncSession, share_token: str, version_segment: str, file_path: str) -> Response:
    match = _VERSION_SEGMENT.fullmatch(version_segment)
    if not match:
        return PlainTextResponse("Invalid version format. Expected v1, v2, etc.", status_code=400)
    digits = match.group(1).lstrip("0") or "0"

    svc = ArtifactService(session)
    artifact = await svc.get_by_share_token(share_token)
    if not artifact:
        return PlainTextResponse("Artifact not found", status_code=404)

    version = None
    if len(digits) <= len(str(MAX_VERSION_NUMBER)) and int(digits) <= MAX_VERSION_NUMBER:
        version = await svc.get_version_by_number(artifact.artifact_id, int(digits))
    if not version:
        return PlainTextResponse(f"Version {digits} not found for this artifact", status_code=404)

    if version.file_type == "html" and version.html_content:
        return Response(content=version.html_content, media_type="text/html; charset=utf-8", headers=IMMUTABLE_HEADERS)

    if version.file_type == "zip":
        path = file_path or DEFAULT_ENTRY_POINT
        file = await svc.get_file_by_path(version.version_id, path)
        if not file:
            return PlainTextResponse(f"File not found: {path}", status_code=404)
        try:
            content = object_store.get_bytes(uri_to_key(file.storage_uri))
        except ObjectNotFound:
            logger.error("Stored bytes missing for %s (version %s)", path, version.version_id)
            return PlainTextResponse("File not accessible in storage", status_code=500)
        return Response(content=content, media_type=file.mime_type, headers={**IMMUTABLE_HEADERS, **ZIP_CORS_HEADERS})

    return PlainTextResponse(
        f"Unsupported file type: {version.file_type}. Only HTML and ZIP are supported.",
        status_code=400,
    )


@router.get("/artifact/{share_token}/{version_segment}")
@router.get("/artifact/{share_token}/{version_segment}/{file_path:path}")
async def get_artifact_file(
    share_token: str,
    version_segment: str,
    file_path: str = "",
    session: AsyncSession = Depends(get_session),
) -> Response:
    try:
        return await serve_artifact_file(session, share_token, version_segment, file_path)
    except Exception:
        logger.exception("Error serving artifact file for share token %s", share_token)
        return PlainTextResponse("Internal server error", status_code=500)
