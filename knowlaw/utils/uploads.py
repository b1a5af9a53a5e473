from __future__ import annotations

import re
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Sequence

from fastapi import UploadFile

from knowlaw.schemas.models import FileInfo
from knowlaw.utils.errors import FileTooLarge, TooManyFiles, UnsupportedType
from knowlaw.utils.logging import get_logger

ALLOWED_EXTENSIONS = {"pdf", "doc", "docx", "txt", "jpg", "jpeg", "png"}
_MIMETYPE_MARKERS = (
    "pdf",
    "msword",
    "wordprocessingml",
    "text/plain",
    "image/jpeg",
    "image/jpg",
    "image/png",
)
_READ_CHUNK_BYTES = 1024 * 1024

log = get_logger(__name__)


@dataclass(frozen=True)
class IncomingFile:
    filename: str
    mimetype: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def info(self) -> FileInfo:
        return FileInfo(name=self.filename, size=self.size, mimetype=self.mimetype)


def _extension(filename: str) -> str:
    return Path(filename).suffix.lower().lstrip(".")


def is_allowed_type(filename: str, mimetype: str) -> bool:
    # Either signal is enough: browsers report odd mimetypes for office files.
    if _extension(filename) in ALLOWED_EXTENSIONS:
        return True
    lowered = (mimetype or "").lower()
    return any(marker in lowered for marker in _MIMETYPE_MARKERS)


@dataclass(frozen=True)
class UploadPolicy:
    max_bytes: int = 10 * 1024 * 1024
    max_files: int = 10

    @property
    def max_megabytes(self) -> int:
        return max(self.max_bytes // (1024 * 1024), 1)

    def check_count(self, count: int) -> None:
        if count > self.max_files:
            raise TooManyFiles(message=f"Too many files. Maximum {self.max_files} files allowed.")

    def check_file(self, filename: str, mimetype: str, size: int) -> None:
        if size > self.max_bytes:
            raise FileTooLarge(
                filename,
                f"File size too large. Maximum size is {self.max_megabytes}MB per file. Received: {filename}",
            )
        if not is_allowed_type(filename, mimetype):
            raise UnsupportedType(
                filename,
                f"{UnsupportedType.default_message} Received: {filename} ({mimetype or 'unknown'})",
            )

    async def read(self, uploads: Sequence[UploadFile]) -> List[IncomingFile]:
        """Validate and buffer uploads. Never reads more than ``max_bytes + 1`` per file."""

        self.check_count(len(uploads))
        accepted: List[IncomingFile] = []
        for upload in uploads:
            filename = upload.filename or "upload"
            mimetype = upload.content_type or "application/octet-stream"
            buffer = bytearray()
            while len(buffer) <= self.max_bytes:
                chunk = await upload.read(min(_READ_CHUNK_BYTES, self.max_bytes + 1 - len(buffer)))
                if not chunk:
                    break
                buffer.extend(chunk)
            try:
                self.check_file(filename, mimetype, len(buffer))
            except (FileTooLarge, UnsupportedType) as exc:
                log.info("upload_rejected", filename=filename, reason=type(exc).__name__)
                raise
            accepted.append(IncomingFile(filename=filename, mimetype=mimetype, data=bytes(buffer)))
        return accepted


def _safe_name(filename: str) -> str:
    base = Path(filename).name or "upload"
    return re.sub(r"[^A-Za-z0-9._-]", "_", base)[:80]


@contextmanager
def stage_uploads(files: Sequence[IncomingFile], uploads_dir: Path) -> Iterator[List[FileInfo]]:
    """Write files to transient storage for the duration of one chat turn.

    Yields the metadata that goes on the message record. The bytes are removed
    when the block exits, whether or not the turn succeeded.
    """

    written: List[Path] = []
    try:
        if files:
            uploads_dir.mkdir(parents=True, exist_ok=True)
        for item in files:
            target = uploads_dir / f"{uuid.uuid4().hex}-{_safe_name(item.filename)}"
            target.write_bytes(item.data)
            written.append(target)
        yield [item.info() for item in files]
    finally:
        for path in written:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                log.warning("upload_cleanup_failed", path=str(path), error=str(exc))
