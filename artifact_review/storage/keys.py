from urllib.parse import urlparse

FS_SCHEME = "fs"
S3_SCHEME = "s3"


def version_file_key(artifact_id: str, version_id: str, file_path: str) -> str:
    return f"artifacts/{artifact_id}/versions/{version_id}/files/{file_path}"


def key_to_uri(scheme: str, bucket: str, key: str) -> str:
    return f"{scheme}://{bucket}/{key}"


def uri_to_key(uri: str) -> str:
    parsed = urlparse(uri)
    if parsed.scheme in {FS_SCHEME, S3_SCHEME}:
        return parsed.path.lstrip("/")
    return uri
