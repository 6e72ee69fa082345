from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from pathlib import PurePosixPath

from artifact_review.core.errors import api_error
from artifact_review.core.mime_utils import is_html_path, mime_for_path

DEFAULT_ENTRY_POINT = "index.html"

_IGNORED_PREFIXES = ("__MACOSX/",)
_IGNORED_NAMES = {".DS_Store", "Thumbs.db"}


@dataclass(frozen=True)
class ZipEntry:
    file_path: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ZipBundle:
    entries: list[ZipEntry]
    entry_point: str
    archive_size: int


def _safe_path(name: str) -> str:
    path = PurePosixPath(name.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts:
        raise api_error(400, "invalid_zip_entry", "ZIP entry escapes the archive root", {"entry": name})
    return str(path)


def _pick_entry_point(entries: list[ZipEntry], requested: str | None) -> str:
    paths = {e.file_path for e in entries}
    if requested:
        if requested not in paths:
            raise api_error(400, "entry_point_not_found", "Entry point is not in the archive", {"entry_point": requested})
        return requested
    if DEFAULT_ENTRY_POINT in paths:
        return DEFAULT_ENTRY_POINT

    html = sorted(
        (e.file_path for e in entries if is_html_path(e.file_path)),
        key=lambda p: (p.count("/"), PurePosixPath(p).name != DEFAULT_ENTRY_POINT, p),
    )
    if not html:
        raise api_error(400, "zip_missing_html", "ZIP archive contains no HTML file")
    return html[0]


def read_zip_bundle(payload: bytes, entry_point: str | None = None) -> ZipBundle:
    """Unpack an uploaded archive into storable entries.

    Directory records and OS metadata files are dropped. The entry point is the
    requested path, else the shallowest HTML file, with ``index.html`` winning
    ties at the same depth.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(payload))
    except zipfile.BadZipFile:
        raise api_error(400, "invalid_zip", "Upload is not a valid ZIP archive") from None

    by_path: dict[str, ZipEntry] = {}
    with archive:
        for info in archive.infolist():
            if info.is_dir() or info.filename.startswith(_IGNORED_PREFIXES):
                continue
            file_path = _safe_path(info.filename)
            if PurePosixPath(file_path).name in _IGNORED_NAMES:
                continue
            # Later records win when an archive repeats a path.
            by_path[file_path] = ZipEntry(file_path=file_path, content=archive.read(info), mime_type=mime_for_path(file_path))

    entries = list(by_path.values())
    if not entries:
        raise api_error(400, "invalid_zip", "ZIP archive is empty")

    return ZipBundle(entries=entries, entry_point=_pick_entry_point(entries, entry_point), archive_size=len(payload))
