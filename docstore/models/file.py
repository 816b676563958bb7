# docstore/models/file.py
import shutil
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any, BinaryIO

from starlette.concurrency import run_in_threadpool

from docstore.core.errors import NotFoundError, StorageFailure, ValidationFailure
from docstore.core.logging import get_logger
from docstore.models.database import CollectionStore, Record

logger = get_logger(__name__)

UPLOADS_DIR = "uploads"


def extension_of(filename: str) -> str:
    # "photo.png" -> "png", "README" -> ""
    return PurePosixPath(filename).suffix[1:]


def upload_filename(raw: str | None) -> str:
    """Reduce a client-supplied name to its last path component."""
    name = PurePosixPath((raw or "").replace("\\", "/")).name
    if not name or name in (".", ".."):
        raise ValidationFailure("Invalid filename", detail=raw)
    return name


def check_filename(filename: str) -> str:
    if upload_filename(filename) != filename:
        raise ValidationFailure("Invalid filename", detail=filename)
    return filename


def _utc_timestamp() -> str:
    # ISO-8601 UTC, millisecond precision, trailing Z
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class UploadStore:
    """Binary uploads under ``<root>/uploads/<ext>/`` plus their metadata array."""

    def __init__(self, collections: CollectionStore) -> None:
        self.collections = collections
        self.root = collections.root
        self.uploads_dir = self.root / UPLOADS_DIR
        self.metadata = collections.collection_file(UPLOADS_DIR)

    def file_path(self, filename: str) -> Path:
        return self.uploads_dir / extension_of(filename) / filename

    def _write_file(self, target: Path, source: BinaryIO) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as out:
                shutil.copyfileobj(source, out)
        except OSError as e:
            raise StorageFailure.from_exception("Failed to store uploaded file", e) from e

    def _remove_file(self, target: Path) -> None:
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise StorageFailure.from_exception("Failed to remove uploaded file", e) from e

    async def create(
        self,
        metadata: dict[str, Any],
        filename: str | None,
        source: BinaryIO,
        started_at: float,
    ) -> Record:
        name = upload_filename(filename)
        target = self.file_path(name)

        async with self.collections.locks.for_path(self.metadata.path):
            # the file lands before its metadata; a crash in between orphans the file
            await run_in_threadpool(self._write_file, target, source)

            records = await run_in_threadpool(self.metadata.load) or []
            record = {
                **metadata,
                "filename": name,
                "path": target.relative_to(self.root).as_posix(),
                "uploadDate": _utc_timestamp(),
                "type": extension_of(name),
                "id": self.collections.id_clock.next_id(at=started_at),
            }
            records = [item for item in records if item.get("filename") != name]
            records.append(record)
            await run_in_threadpool(self.metadata.save, records)

        logger.info("upload stored", filename=name, path=record["path"], upload_id=record["id"])
        return record

    async def delete(self, filename: str) -> int:
        """Remove a file and its metadata entry; returns how many entries went away."""
        check_filename(filename)
        target = self.file_path(filename)

        async with self.collections.locks.for_path(self.metadata.path):
            records = await run_in_threadpool(self.metadata.load)
            if records is None:
                raise NotFoundError("Metadata file not found")

            remaining = [item for item in records if item.get("filename") != filename]
            await run_in_threadpool(self._remove_file, target)
            # persisted even when nothing matched
            await run_in_threadpool(self.metadata.save, remaining)

        removed = len(records) - len(remaining)
        if removed:
            logger.info("upload deleted", filename=filename)
        else:
            logger.warning("upload delete matched no metadata", filename=filename)
        return removed

    async def list_all(self) -> list[Record]:
        return await run_in_threadpool(self.metadata.load) or []
