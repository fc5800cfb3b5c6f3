# src/ordinal_stage/schemas/record.py
"""Record listing and reorder Pydantic schemas."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StrictInt

# Strict so that "2", 2.0 and true are rejected rather than coerced
RecordId = Annotated[StrictInt, Field(gt=0)]


class RecordListItem(BaseModel):
    """A published record as shown in the reorder list."""

    id: int
    title: str
    primary_ordinal: int = Field(..., alias="primaryOrdinal")
    thumbnail_url: str = Field("", alias="thumbnailUrl")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_record(cls, record: object) -> "RecordListItem":
        """Build a list item from a ``Record`` row."""
        return cls(
            id=record.id,
            title=record.title,
            primary_ordinal=record.menu_order,
            thumbnail_url=record.thumbnail_url or "",
        )


class SaveOrderRequest(BaseModel):
    """Full ordered list of record ids submitted by the client."""

    ordered_ids: list[RecordId] = Field(
        ...,
        alias="orderedIds",
        min_length=1,
        description="Record ids in their new display order",
    )

    model_config = ConfigDict(populate_by_name=True)


class SaveOrderResponse(BaseModel):
    """Result of a successful save."""

    updated_count: int = Field(..., alias="updatedCount")
    warning: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Body of every failed request."""

    error: str
