import mimetypes
import re


OCTET_STREAM = "application/octet-stream"
TEXT_HTML = "text/html"

_MIME_PATTERN = re.compile(r"^[a-z0-9!#$&^_.+-]+/[a-z0-9!#$&^_.+-]+$")

# Web assets that show up in generated sites but are missing from some
# platform mimetypes tables.
_EXTRA_TYPES = {
    ".mjs": "text/javascript",
    ".webmanifest": "application/manifest+json",
    ".wasm": "application/wasm",
    ".md": "text/markdown",
}


def normalize_mime(raw_mime: str | None) -> str:
    if not raw_mime:
        return OCTET_STREAM

    base = raw_mime.split(";", 1)[0].strip().lower()
    if not base or not _MIME_PATTERN.match(base):
        return OCTET_STREAM
    return base


def mime_for_path(file_path: str) -> str:
    lowered = file_path.lower()
    for suffix, mime in _EXTRA_TYPES.items():
        if lowered.endswith(suffix):
            return mime

    guessed, _encoding = mimetypes.guess_type(file_path)
    return normalize_mime(guessed)


def is_html_path(file_path: str) -> bool:
    return mime_for_path(file_path) == TEXT_HTML
