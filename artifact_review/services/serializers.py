from artifact_review.models import Artifact, ArtifactFile, ArtifactVersion, User
from artifact_review.schemas.artifact import ArtifactFileOut, ArtifactOut, HtmlFileOut, VersionOut, VersionSummaryOut
from artifact_review.schemas.user import UserOut


def artifact_out(m: Artifact) -> ArtifactOut:
    return ArtifactOut(
        artifact_id=m.artifact_id,
        title=m.title,
        description=m.description,
        creator_id=m.creator_id,
        share_token=m.share_token,
        is_deleted=m.is_deleted,
        deleted_at=m.deleted_at,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def version_summary_out(m: ArtifactVersion) -> VersionSummaryOut:
    return VersionSummaryOut(
        version_id=m.version_id,
        artifact_id=m.artifact_id,
        version_number=m.version_number,
        file_type=m.file_type,
        file_size=m.file_size,
        created_at=m.created_at,
    )


def version_out(m: ArtifactVersion) -> VersionOut:
    return VersionOut(
        version_id=m.version_id,
        artifact_id=m.artifact_id,
        version_number=m.version_number,
        file_type=m.file_type,
        file_size=m.file_size,
        created_at=m.created_at,
        html_content=m.html_content,
        markdown_content=m.markdown_content,
        entry_point=m.entry_point,
        is_deleted=m.is_deleted,
        deleted_at=m.deleted_at,
    )


def artifact_file_out(m: ArtifactFile) -> ArtifactFileOut:
    return ArtifactFileOut(
        file_id=m.file_id,
        version_id=m.version_id,
        file_path=m.file_path,
        mime_type=m.mime_type,
        file_size=m.file_size,
        is_deleted=m.is_deleted,
        deleted_at=m.deleted_at,
    )


def html_file_out(m: ArtifactFile) -> HtmlFileOut:
    return HtmlFileOut(file_path=m.file_path, mime_type=m.mime_type)


def user_out(m: User) -> UserOut:
    return UserOut(
        user_id=m.user_id,
        name=m.name,
        email=m.email,
        username=m.username,
        is_anonymous=bool(m.is_anonymous),
    )
