"""
Source data models for contentsync.

This module defines the typed representation of records coming from the
content source. Every per-locale field value is tagged once, at the boundary
where the source response is parsed, as one of three variants:

- ``ScalarValue``: strings, numbers, booleans and plain JSON objects
- ``LinkedRecord``: a reference to another record, resolved inline when the
  source included it
- ``ListValue``: an ordered list of further values
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class ScalarValue(BaseModel):
    """A leaf value (string, number, boolean or opaque JSON object)."""

    kind: Literal["scalar"] = "scalar"

    value: Any = Field(
        None,
        description="The raw value as delivered by the source"
    )


class LinkedRecord(BaseModel):
    """
    A reference to another source record.

    ``record`` is None when the source did not include the target (beyond the
    link-expansion depth) or when resolving it would revisit a record already
    on the current path.
    """

    kind: Literal["link"] = "link"

    record_id: str = Field(
        ...,
        description="Identifier of the linked record"
    )

    link_type: str = Field(
        default="Entry",
        description="Kind of record the link points to (Entry or Asset)"
    )

    record: Optional["SourceRecord"] = Field(
        default=None,
        description="The resolved record, if it was included in the response"
    )


class ListValue(BaseModel):
    """An ordered list of values, typically references to other records."""

    kind: Literal["list"] = "list"

    items: List["FieldValue"] = Field(default_factory=list)


FieldValue = Annotated[Union[ScalarValue, LinkedRecord, ListValue], Field(discriminator="kind")]


class SourceRecord(BaseModel):
    """
    A hierarchical, multi-locale record from the content source.

    ``fields`` maps each field name to a mapping of locale code to value.
    """

    id: str = Field(
        ...,
        description="Stable identifier, unique per record within the source"
    )

    type: str = Field(
        default="Entry",
        description="Record kind as reported by the source (Entry, Asset)"
    )

    content_type: Optional[str] = Field(
        default=None,
        description="Content-type id the record belongs to"
    )

    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    revision: Optional[int] = None
    space: Optional[str] = None

    fields: Dict[str, Dict[str, FieldValue]] = Field(default_factory=dict)


class SourceQuery(BaseModel):
    """Filter sent to the content source for one page of records."""

    content_type: str
    entry_id: Optional[str] = None
    locale: str = "*"
    include: int = 2
    skip: int = 0
    limit: int = 1000


class SourcePage(BaseModel):
    """One page of records returned by the content source."""

    items: List[SourceRecord] = Field(default_factory=list)
    total: int = 0
    skip: int = 0
    limit: int = 0


# Resolve the forward references between the variants
LinkedRecord.model_rebuild()
ListValue.model_rebuild()
SourceRecord.model_rebuild()
SourcePage.model_rebuild()
