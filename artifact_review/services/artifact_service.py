from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.core.config import settings
from artifact_review.core.errors import api_error, not_authenticated, not_authorized
from artifact_review.core.mime_utils import TEXT_HTML
from artifact_review.core.security import Identity, UserId, new_share_token
from artifact_review.models import Artifact, ArtifactFile, ArtifactVersion, now_utc
from artifact_review.schemas.artifact import CreateArtifactRequest, VersionPayload
from artifact_review.services.cascade import SoftDeleteVisitor, walk_artifact_tree, walk_version_tree
from artifact_review.services.zip_ingest import ZipEntry
from artifact_review.storage.keys import version_file_key
from artifact_review.storage.object_store import ObjectStore, object_store

logger = logging.getLogger(__name__)


def require_user(identity: Identity | None) -> UserId:
    if identity is None:
        raise not_authenticated()
    return identity.user_id


class ArtifactService:
    def __init__(self, session: AsyncSession, store: ObjectStore | None = None):
        self.session = session
        self.store = store or object_store

    async def create(
        self,
        identity: Identity | None,
        request: CreateArtifactRequest,
        files: Sequence[ZipEntry] = (),
    ) -> dict:
        user_id = require_user(identity)

        for attempt in range(1, settings.share_token_attempts + 1):
            now = now_utc()
            artifact = Artifact(
                title=request.title,
                description=request.description,
                creator_id=user_id,
                share_token=await self._unused_share_token(),
                is_deleted=False,
                created_at=now,
                updated_at=now,
            )
            self.session.add(artifact)
            try:
                await self.session.flush()
            except IntegrityError:
                # Another writer claimed the same token between check and insert.
                await self.session.rollback()
                logger.warning("Share token collision on insert (attempt %s)", attempt)
                continue

            version = self._new_version(artifact.artifact_id, 1, request, now)
            self.session.add(version)
            await self.session.flush()
            stored = self._store_files(artifact.artifact_id, version.version_id, files)
            await self._commit_or_discard(stored)
            logger.info("Created artifact %s for user %s", artifact.artifact_id, user_id)
            return {
                "artifact_id": artifact.artifact_id,
                "version_id": version.version_id,
                "version_number": 1,
                "share_token": artifact.share_token,
            }

        raise api_error(409, "share_token_conflict", "Could not allocate a unique share token")

    async def add_version(
        self,
        identity: Identity | None,
        artifact_id: str,
        request: VersionPayload,
        files: Sequence[ZipEntry] = (),
    ) -> dict:
        user_id = require_user(identity)

        for attempt in range(1, settings.version_insert_attempts + 1):
            artifact = await self._owned_artifact(user_id, artifact_id)
            version_number = await self._next_version_number(artifact_id)
            now = now_utc()

            version = self._new_version(artifact_id, version_number, request, now)
            self.session.add(version)
            try:
                await self.session.flush()
            except IntegrityError:
                # A concurrent add_version took this number; recompute and retry.
                await self.session.rollback()
                logger.warning("Version %s of artifact %s already taken (attempt %s)", version_number, artifact_id, attempt)
                continue

            artifact.updated_at = now
            stored = self._store_files(artifact_id, version.version_id, files)
            await self._commit_or_discard(stored)
            logger.info("Added version %s to artifact %s", version_number, artifact_id)
            return {"version_id": version.version_id, "version_number": version_number}

        raise api_error(409, "version_conflict", "Could not allocate a version number", {"artifact_id": artifact_id})

    async def soft_delete(self, identity: Identity | None, artifact_id: str) -> dict:
        user_id = require_user(identity)
        artifact = await self._owned_artifact(user_id, artifact_id)

        visitor = SoftDeleteVisitor(deleted_at=now_utc())
        await walk_artifact_tree(self.session, artifact, visitor)
        await self.session.commit()

        logger.info(
            "Soft-deleted artifact %s (versions=%s, files=%s)",
            artifact_id,
            visitor.touched["version"],
            visitor.touched["file"],
        )
        return {"artifact_id": artifact_id, "deleted_at": artifact.deleted_at}

    async def soft_delete_version(self, identity: Identity | None, version_id: str) -> dict:
        user_id = require_user(identity)

        version = await self.session.get(ArtifactVersion, version_id)
        if not version:
            raise api_error(404, "version_not_found", "Version not found", {"version_id": version_id})
        await self._owned_artifact(user_id, version.artifact_id)

        stmt = select(ArtifactVersion.version_id).where(
            ArtifactVersion.artifact_id == version.artifact_id,
            ArtifactVersion.is_deleted.is_(False),
        )
        active_ids = list((await self.session.execute(stmt)).scalars().all())
        if active_ids == [version_id]:
            raise api_error(
                409,
                "last_active_version",
                "Cannot delete the last active version",
                {"version_id": version_id, "artifact_id": version.artifact_id},
            )

        visitor = SoftDeleteVisitor(deleted_at=now_utc())
        await walk_version_tree(self.session, version, visitor)
        await self.session.commit()

        logger.info("Soft-deleted version %s of artifact %s (files=%s)", version_id, version.artifact_id, visitor.touched["file"])
        return {"version_id": version_id, "deleted_at": version.deleted_at}

    async def get(self, artifact_id: str) -> Artifact | None:
        return await self.session.get(Artifact, artifact_id)

    async def get_version(self, version_id: str) -> ArtifactVersion | None:
        return await self.session.get(ArtifactVersion, version_id)

    async def get_files_by_version(self, version_id: str) -> list[ArtifactFile]:
        stmt = (
            select(ArtifactFile)
            .where(ArtifactFile.version_id == version_id, ArtifactFile.is_deleted.is_(False))
            .order_by(ArtifactFile.file_path)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_share_token(self, share_token: str) -> Artifact | None:
        stmt = select(Artifact).where(Artifact.share_token == share_token)
        artifact = (await self.session.execute(stmt)).scalars().first()
        if not artifact or artifact.is_deleted:
            return None
        return artifact

    async def list(self, identity: Identity | None) -> list[Artifact]:
        user_id = require_user(identity)
        stmt = (
            select(Artifact)
            .where(Artifact.creator_id == user_id, Artifact.is_deleted.is_(False))
            .order_by(Artifact.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_versions(self, artifact_id: str) -> list[ArtifactVersion]:
        stmt = (
            select(ArtifactVersion)
            .where(ArtifactVersion.artifact_id == artifact_id, ArtifactVersion.is_deleted.is_(False))
            .order_by(ArtifactVersion.version_number.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_version_by_number(self, artifact_id: str, version_number: int) -> ArtifactVersion | None:
        stmt = select(ArtifactVersion).where(
            ArtifactVersion.artifact_id == artifact_id,
            ArtifactVersion.version_number == version_number,
        )
        version = (await self.session.execute(stmt)).scalars().first()
        if not version or version.is_deleted:
            return None
        return version

    async def get_latest_version(self, artifact_id: str) -> ArtifactVersion | None:
        versions = await self.get_versions(artifact_id)
        return versions[0] if versions else None

    async def list_html_files(self, version_id: str) -> list[ArtifactFile]:
        return [f for f in await self.get_files_by_version(version_id) if f.mime_type == TEXT_HTML]

    async def get_file_by_path(self, version_id: str, file_path: str) -> ArtifactFile | None:
        stmt = select(ArtifactFile).where(ArtifactFile.version_id == version_id, ArtifactFile.file_path == file_path)
        file = (await self.session.execute(stmt)).scalars().first()
        if not file or file.is_deleted:
            return None
        return file

    async def _owned_artifact(self, user_id: UserId, artifact_id: str) -> Artifact:
        artifact = await self.session.get(Artifact, artifact_id)
        if not artifact:
            raise api_error(404, "artifact_not_found", "Artifact not found", {"artifact_id": artifact_id})
        if artifact.creator_id != user_id:
            raise not_authorized({"artifact_id": artifact_id})
        return artifact

    async def _next_version_number(self, artifact_id: str) -> int:
        # Deleted versions still count so their numbers are never reused.
        stmt = select(func.max(ArtifactVersion.version_number)).where(ArtifactVersion.artifact_id == artifact_id)
        current = (await self.session.execute(stmt)).scalar()
        return (current or 0) + 1

    async def _unused_share_token(self) -> str:
        for _ in range(settings.share_token_attempts):
            token = new_share_token(settings.share_token_length)
            taken = await self.session.execute(select(Artifact.artifact_id).where(Artifact.share_token == token))
            if taken.first() is None:
                return token
        raise api_error(409, "share_token_conflict", "Could not allocate a unique share token")

    @staticmethod
    def _new_version(artifact_id: str, version_number: int, payload: VersionPayload, now) -> ArtifactVersion:
        return ArtifactVersion(
            artifact_id=artifact_id,
            version_number=version_number,
            file_type=payload.file_type,
            html_content=payload.html_content,
            markdown_content=payload.markdown_content,
            entry_point=payload.entry_point,
            file_size=payload.file_size,
            is_deleted=False,
            created_at=now,
        )

    def _store_files(self, artifact_id: str, version_id: str, files: Sequence[ZipEntry]) -> list[str]:
        stored: list[str] = []
        for entry in files:
            key = version_file_key(artifact_id, version_id, entry.file_path)
            try:
                uri = self.store.put_bytes(key, entry.content, content_type=entry.mime_type)
            except Exception:
                self._discard_objects(stored)
                raise
            stored.append(key)
            self.session.add(
                ArtifactFile(
                    version_id=version_id,
                    file_path=entry.file_path,
                    storage_uri=uri,
                    mime_type=entry.mime_type,
                    file_size=entry.size,
                    is_deleted=False,
                )
            )
        return stored

    async def _commit_or_discard(self, stored: list[str]) -> None:
        # Row writes and blob writes must land together.
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            self._discard_objects(stored)
            raise

    def _discard_objects(self, keys: list[str]) -> None:
        for key in keys:
            try:
                self.store.delete(key)
            except Exception:
                logger.warning("Could not remove orphaned object %s", key, exc_info=True)
        if keys:
            logger.warning("Discarded %s stored objects after a failed write", len(keys))
