from artifact_review.models.artifacts import FILE_TYPES, MAX_VERSION_NUMBER, Artifact, ArtifactFile, ArtifactVersion
from artifact_review.models.auth import AuthSession, MagicLinkToken, User
from artifact_review.models.base import Base, as_utc, new_id, now_utc

__all__ = [
    "FILE_TYPES",
    "MAX_VERSION_NUMBER",
    "Artifact",
    "ArtifactFile",
    "ArtifactVersion",
    "AuthSession",
    "Base",
    "MagicLinkToken",
    "User",
    "as_utc",
    "new_id",
    "now_utc",
]
