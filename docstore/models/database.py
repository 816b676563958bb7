# docstore/models/database.py
import asyncio
import json
import os
import re
import tempfile
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from starlette.concurrency import run_in_threadpool

from docstore.core.errors import NotFoundError, StorageFailure, ValidationFailure
from docstore.core.filters import Predicate, apply_filters, strict_equals
from docstore.core.logging import get_logger

logger = get_logger(__name__)

COLLECTION_FILE = "data.json"

_NAME_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?[0-9]+)")

Record = dict[str, Any]


def validate_collection_name(name: str) -> str:
    # a collection is one directory directly under the storage root
    if not _NAME_RE.match(name or ""):
        raise ValidationFailure("Invalid collection name", detail=name)
    return name


def parse_record_id(raw: str | int) -> int | None:
    """Read the integer prefix of a path segment ("12abc" -> 12)."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    match = _LEADING_INT_RE.match(str(raw))
    return int(match.group(1)) if match else None


class IdClock:
    """Millisecond timestamps that never repeat within one process."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0

    def next_id(self, at: float | None = None) -> int:
        now_ms = int((self._clock() if at is None else at) * 1000)
        self._last = max(now_ms, self._last + 1)
        return self._last


class LockRegistry:
    # one lock per backing file, never evicted; grows with the number of collection names seen
    def __init__(self) -> None:
        self._locks: dict[Path, asyncio.Lock] = {}

    def for_path(self, path: Path) -> asyncio.Lock:
        return self._locks.setdefault(path, asyncio.Lock())


class JsonArrayFile:
    """One JSON array on disk, always read and written whole."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> list[Record] | None:
        # None means the file does not exist yet
        if not self.path.is_file():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = f.read()
            data = json.loads(raw) if raw.strip() else []
        except (OSError, ValueError) as e:
            raise StorageFailure.from_exception("Failed to read data file", e) from e
        if not isinstance(data, list):
            raise StorageFailure("Failed to read data file", detail="data file is not a JSON array")
        return data

    def save(self, records: Sequence[Record]) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=".data-",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(list(records), f, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageFailure.from_exception("Failed to write data file", e) from e


class CollectionStore:
    def __init__(
        self,
        root: Path,
        strict_filters: bool = True,
        id_clock: IdClock | None = None,
        locks: LockRegistry | None = None,
    ) -> None:
        self.root = Path(root)
        self.strict_filters = strict_filters
        self.id_clock = id_clock or IdClock()
        self.locks = locks or LockRegistry()

    def collection_file(self, name: str) -> JsonArrayFile:
        return JsonArrayFile(self.root / validate_collection_name(name) / COLLECTION_FILE)

    async def _load_existing(self, file: JsonArrayFile) -> list[Record]:
        records = await run_in_threadpool(file.load)
        if records is None:
            raise NotFoundError("Data file not found")
        return records

    async def append(self, file: JsonArrayFile, record: Record) -> Record:
        """Append one record to ``file``, creating the array when absent."""
        async with self.locks.for_path(file.path):
            records = await run_in_threadpool(file.load)
            if records is None:
                records = []
            records.append(record)
            await run_in_threadpool(file.save, records)
        return record

    async def create(self, name: str, body: Record) -> Record:
        file = self.collection_file(name)
        record = {**body, "id": self.id_clock.next_id()}
        await self.append(file, record)
        logger.info("record created", collection=name, record_id=record["id"])
        return record

    async def update(self, name: str, record_id: str | int, partial: Record) -> Record:
        file = self.collection_file(name)
        async with self.locks.for_path(file.path):
            records = await self._load_existing(file)
            wanted = parse_record_id(record_id)
            index = None
            if wanted is not None:
                index = next(
                    (i for i, item in enumerate(records) if strict_equals(item.get("id"), wanted)),
                    None,
                )
            if index is None:
                raise NotFoundError("Record not found")

            # new keys win, including a new id
            records[index] = {**records[index], **partial}
            await run_in_threadpool(file.save, records)

        logger.info("record updated", collection=name, record_id=wanted, fields=sorted(partial))
        return records[index]

    async def delete(self, name: str, record_id: str | int) -> None:
        file = self.collection_file(name)
        async with self.locks.for_path(file.path):
            records = await self._load_existing(file)
            wanted = parse_record_id(record_id)
            remaining = [
                item for item in records if wanted is None or not strict_equals(item.get("id"), wanted)
            ]
            if len(remaining) == len(records):
                raise NotFoundError("Record not found")
            await run_in_threadpool(file.save, remaining)

        logger.info("record deleted", collection=name, record_id=wanted, removed=len(records) - len(remaining))

    async def read(self, name: str) -> list[Record]:
        return await self._load_existing(self.collection_file(name))

    async def filter(self, name: str, predicates: Sequence[Predicate]) -> list[Record]:
        records = await self.read(name)
        found = apply_filters(records, predicates, strict=self.strict_filters)
        logger.debug(
            "collection filtered",
            collection=name,
            clauses=len(predicates),
            scanned=len(records),
            matched=len(found),
        )
        return found
