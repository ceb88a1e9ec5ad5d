import logging
from pathlib import Path
from typing import IO

from django_ai_knowledge import conf
from django_ai_knowledge.exceptions import MalformedInputError, UploadNotFound

logger = logging.getLogger(__name__)


def _check_path_component(value: str, label: str) -> str:
    if (
        not value
        or value in (".", "..")
        or any(char in value for char in ("/", "\\", "\x00"))
    ):
        raise MalformedInputError(f"Invalid {label}: {value!r}")
    return value


def get_upload_dir(owner: str) -> Path:
    """Directory holding the files uploaded by ``owner``."""
    return Path(conf.get_setting("UPLOADS_DIR")) / _check_path_component(
        owner, "owner"
    )


def resolve_knowledge_base(owner: str) -> str:
    """Name of the knowledge base built from the owner's upload.

    Each owner is expected to have a single uploaded file; the first file in
    name order is used.
    """
    upload_dir = get_upload_dir(owner)
    try:
        entries = sorted(upload_dir.iterdir(), key=lambda path: path.name)
    except OSError:
        entries = []

    if not entries:
        raise UploadNotFound(f"no uploaded file found for user {owner}")

    for entry in entries:
        if not entry.is_dir():
            return entry.name

    raise UploadNotFound(f"no valid file found for user {owner}")


def write_upload(owner: str, filename: str, content: bytes | IO[bytes]) -> Path:
    """Write an upload next to the owner's existing files."""
    upload_dir = get_upload_dir(owner)
    _check_path_component(filename, "filename")
    upload_dir.mkdir(parents=True, exist_ok=True)

    if not isinstance(content, bytes):
        content = content.read()

    path = upload_dir / filename
    path.write_bytes(content)
    logger.info(f"Saved upload {path} ({len(content)} bytes)")
    return path


def remove_uploads(owner: str, *, keep: str | None = None) -> None:
    """Delete the owner's uploaded files, except ``keep``."""
    upload_dir = get_upload_dir(owner)
    if not upload_dir.is_dir():
        return

    for existing in upload_dir.iterdir():
        if existing.is_file() and existing.name != keep:
            logger.info(f"Removing upload {existing}")
            existing.unlink()


def save_upload(owner: str, filename: str, content: bytes | IO[bytes]) -> Path:
    """Store an upload as the owner's only file, replacing earlier uploads."""
    path = write_upload(owner, filename, content)
    remove_uploads(owner, keep=filename)
    return path
