"""Tree walk over an artifact and everything it owns.

An artifact owns its versions and a version owns its files. The walkers load
each level with one query and hand every row to a visitor; the visitor decides
whether the walk descends below a row. Callers run a walk inside a single
session transaction and commit once afterwards, so a cascade either lands
completely or not at all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.models import Artifact, ArtifactFile, ArtifactVersion


class CascadeVisitor:
    def visit_artifact(self, artifact: Artifact) -> bool:
        return True

    def visit_version(self, version: ArtifactVersion) -> bool:
        return True

    def visit_file(self, file: ArtifactFile) -> None:
        return None


@dataclass
class SoftDeleteVisitor(CascadeVisitor):
    """Marks rows deleted with one shared timestamp.

    Rows that are already deleted keep their original ``deleted_at``. The walk
    does not descend below an already-deleted version.
    """

    deleted_at: datetime
    touched: dict[str, int] = field(default_factory=lambda: {"artifact": 0, "version": 0, "file": 0})

    def _mark(self, row, kind: str) -> bool:
        if row.is_deleted:
            return False
        row.is_deleted = True
        row.deleted_at = self.deleted_at
        self.touched[kind] += 1
        return True

    def visit_artifact(self, artifact: Artifact) -> bool:
        # Versions can still be added to a deleted artifact, so always descend.
        self._mark(artifact, "artifact")
        return True

    def visit_version(self, version: ArtifactVersion) -> bool:
        return self._mark(version, "version")

    def visit_file(self, file: ArtifactFile) -> None:
        self._mark(file, "file")


async def walk_version_tree(session: AsyncSession, version: ArtifactVersion, visitor: CascadeVisitor) -> None:
    if not visitor.visit_version(version):
        return
    result = await session.execute(select(ArtifactFile).where(ArtifactFile.version_id == version.version_id))
    for file in result.scalars().all():
        visitor.visit_file(file)


async def walk_artifact_tree(session: AsyncSession, artifact: Artifact, visitor: CascadeVisitor) -> None:
    if not visitor.visit_artifact(artifact):
        return
    result = await session.execute(
        select(ArtifactVersion)
        .where(ArtifactVersion.artifact_id == artifact.artifact_id)
        .order_by(ArtifactVersion.version_number)
    )
    for version in result.scalars().all():
        await walk_version_tree(session, version, visitor)
