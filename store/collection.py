"""
A typed collection persisted as one JSON array under one storage key.

Reads decode the whole array; writes encode the whole array and overwrite the
key. Every mutation is therefore load → change in memory → save, and nothing
is written until uniqueness has been checked against the in-memory rows.

A document that is not valid JSON (or not an array) reads as an empty
collection and is logged, so one damaged key cannot take the store down.
Individual rows that fail validation are skipped the same way.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Generic, Iterable, Optional, Sequence, Type, TypeVar

from pydantic import ValidationError

from errors import DuplicateIdentityError
from schemas.models.base import IdentifiedRecord
from shared.logging import get_logger
from storage.protocol import StorageAdapter

log = get_logger(__name__)

RowT = TypeVar("RowT", bound=IdentifiedRecord)


class JsonCollection(Generic[RowT]):
    def __init__(
        self,
        storage: StorageAdapter,
        key: str,
        model: Type[RowT],
        unique_fields: Sequence[str] = (),
    ) -> None:
        self.storage = storage
        self.key = key
        self.model = model
        self.unique_fields = tuple(unique_fields)

    # ── encode / decode ──────────────────────────────────────────────────

    def decode(self, raw: Optional[str]) -> list[RowT]:
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            log.warning("collection_corrupt", key=self.key, error=str(e))
            return []
        if not isinstance(data, list):
            log.warning(
                "collection_corrupt",
                key=self.key,
                error=f"expected array, got {type(data).__name__}",
            )
            return []

        rows: list[RowT] = []
        for index, item in enumerate(data):
            try:
                row = self.model.from_record(item)
            except ValidationError as e:
                log.warning(
                    "collection_row_invalid",
                    key=self.key,
                    index=index,
                    error_count=e.error_count(),
                )
                continue
            if row is None:
                log.warning("collection_row_invalid", key=self.key, index=index)
                continue
            rows.append(row)
        return rows

    def encode(self, rows: Iterable[RowT]) -> str:
        return json.dumps([row.to_record() for row in rows])

    # ── reads ────────────────────────────────────────────────────────────

    def all(self) -> list[RowT]:
        return self.decode(self.storage.get(self.key))

    def count(self) -> int:
        return len(self.all())

    def get(self, row_id: str) -> Optional[RowT]:
        return next((row for row in self.all() if row.id == row_id), None)

    def find_one(self, **criteria: Any) -> Optional[RowT]:
        """First row whose attributes equal every keyword given."""
        for row in self.all():
            if all(getattr(row, name) == value for name, value in criteria.items()):
                return row
        return None

    def filter(self, predicate: Callable[[RowT], bool]) -> list[RowT]:
        return [row for row in self.all() if predicate(row)]

    # ── writes ───────────────────────────────────────────────────────────

    def save(self, rows: Sequence[RowT]) -> None:
        self.storage.set(self.key, self.encode(rows))

    def _check_unique(self, candidate: RowT, others: Iterable[RowT]) -> None:
        for other in others:
            if other.id == candidate.id:
                raise DuplicateIdentityError(
                    f"Duplicate id in {self.key}", field="id"
                )
            for name in self.unique_fields:
                value = getattr(candidate, name)
                if value is not None and getattr(other, name) == value:
                    raise DuplicateIdentityError(
                        f"An account with this {name.replace('_', ' ')} already exists",
                        field=name,
                    )

    def insert(self, row: RowT) -> RowT:
        rows = self.all()
        self._check_unique(row, rows)
        rows.append(row)
        self.save(rows)
        return row

    def update(self, row_id: str, **changes: Any) -> Optional[RowT]:
        """Apply *changes* to one row and persist; None if the id is unknown.

        The updated row is re-validated, and unique fields are re-checked
        against every other row before anything is written.
        """
        rows = self.all()
        for index, row in enumerate(rows):
            if row.id != row_id:
                continue
            updated = self.model.model_validate({**row.model_dump(), **changes})
            self._check_unique(updated, rows[:index] + rows[index + 1 :])
            rows[index] = updated
            self.save(rows)
            return updated
        return None

    def update_where(self, predicate: Callable[[RowT], bool], **changes: Any) -> int:
        rows = self.all()
        touched = 0
        for index, row in enumerate(rows):
            if predicate(row):
                rows[index] = self.model.model_validate({**row.model_dump(), **changes})
                touched += 1
        if touched:
            self.save(rows)
        return touched

    def remove_where(self, predicate: Callable[[RowT], bool]) -> int:
        rows = self.all()
        kept = [row for row in rows if not predicate(row)]
        removed = len(rows) - len(kept)
        if removed:
            self.save(kept)
        return removed

    def replace_all(self, rows: Sequence[RowT]) -> None:
        """Overwrite the whole collection; *rows* must be mutually unique."""
        self.check_rows(rows)
        self.save(rows)

    def check_rows(self, rows: Sequence[RowT]) -> None:
        for index, row in enumerate(rows):
            self._check_unique(row, rows[:index])

    def clear(self) -> None:
        self.storage.remove(self.key)
