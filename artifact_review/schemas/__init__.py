from artifact_review.schemas.artifact import (
    AddVersionRequest,
    AddVersionResponse,
    ArtifactDeleteResponse,
    ArtifactFileOut,
    ArtifactOut,
    CreateArtifactRequest,
    CreateArtifactResponse,
    HtmlFileOut,
    VersionDeleteResponse,
    VersionOut,
    VersionPayload,
    VersionSummaryOut,
)
from artifact_review.schemas.auth import MagicLinkRequest, MagicLinkVerifyRequest, SessionOut, SignInRequest, SignUpRequest
from artifact_review.schemas.common import ErrorPayload, OkResponse, ResultResponse
from artifact_review.schemas.settings import ChangePasswordRequest, GracePeriodOut, ReauthMagicLinkRequest
from artifact_review.schemas.user import UserOut

__all__ = [
    "AddVersionRequest",
    "AddVersionResponse",
    "ArtifactDeleteResponse",
    "ArtifactFileOut",
    "ArtifactOut",
    "ChangePasswordRequest",
    "CreateArtifactRequest",
    "CreateArtifactResponse",
    "ErrorPayload",
    "GracePeriodOut",
    "HtmlFileOut",
    "MagicLinkRequest",
    "MagicLinkVerifyRequest",
    "OkResponse",
    "ReauthMagicLinkRequest",
    "ResultResponse",
    "SessionOut",
    "SignInRequest",
    "SignUpRequest",
    "UserOut",
    "VersionDeleteResponse",
    "VersionOut",
    "VersionPayload",
    "VersionSummaryOut",
]
