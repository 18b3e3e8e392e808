"""
Base model for all persisted record models.

Records are stored as JSON documents with camelCase keys (``createdAt``,
``isActive``), while Python code uses snake_case attributes. StoreBaseModel
provides to_record() / from_record() for round-tripping between model
instances and the raw dicts kept in a collection document.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Optional, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

RecordT = TypeVar("RecordT", bound="StoreBaseModel")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Naive timestamps (hand-edited or foreign backups) are read as UTC
UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class StoreBaseModel(BaseModel):
    """
    Base for all record and document models.

    to_record()   — model → JSON-safe dict with camelCase keys
    from_record() — raw dict → model instance (returns None gracefully when
                    passed None)
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    def to_record(self) -> dict:
        """Return a JSON-safe dict ready to be written into a collection.

        Datetimes become ISO 8601 strings; optional fields that are unset
        are kept as ``null`` so every row of a collection has the same shape.
        """
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls: type[RecordT], data: Optional[dict]) -> Optional[RecordT]:
        """Build a model instance from a raw record dict.

        Returns None when data is None. Missing optional fields are filled
        with their defaults.
        """
        if data is None:
            return None
        return cls.model_validate(data)


class IdentifiedRecord(StoreBaseModel):
    """Any row that lives in a collection and is addressed by ``id``."""

    id: str
