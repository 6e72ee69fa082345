from artifact_review.api.api_v1.endpoints import artifacts, auth, settings, users, versions

__all__ = [
    "artifacts",
    "auth",
    "settings",
    "users",
    "versions",
]
