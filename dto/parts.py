"""
Typed records for the package parts the resolver reads.

The XML mapper produces untyped nested dicts; each extractor narrows the
part it consumes into one of these records once, at the boundary, and works
with the record from then on.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from openpyxl.xml.constants import IMAGE_NS
from pydantic import BaseModel, ConfigDict, Field

from dto.coordinate import Anchor, CellCoordinate


# -------------------------------------------------------------------
# Relationships (*.rels parts)
# -------------------------------------------------------------------

class Relationship(BaseModel):
    id: str
    type: str = ""
    target: str
    target_mode: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return (self.target_mode or "").lower() == "external"

    @property
    def is_image(self) -> bool:
        # Strict and transitional OOXML use different prefixes for the type.
        return self.type == IMAGE_NS or self.type.endswith("/image")

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Relationship":
        return cls(
            id=record["Id"],
            type=record.get("Type", ""),
            target=record["Target"],
            target_mode=record.get("TargetMode"),
        )


class RelationshipTable(BaseModel):
    """Relationships declared by one part, in declaration order."""

    source: str  # path of the .rels part
    relationships: List[Relationship] = []

    def get(self, rel_id: str) -> Optional[Relationship]:
        """Return the relationship whose Id equals *rel_id* exactly."""
        for rel in self.relationships:
            if rel.id == rel_id:
                return rel
        return None

    def images(self) -> List[Relationship]:
        return [r for r in self.relationships if r.is_image]

    @classmethod
    def from_mapped(cls, source: str, mapped: Dict[str, Any]) -> "RelationshipTable":
        root = mapped.get("Relationships") or {}
        records = root.get("Relationship", []) if isinstance(root, dict) else []
        return cls(
            source=source,
            relationships=[Relationship.from_record(r) for r in records],
        )


# -------------------------------------------------------------------
# Worksheet
# -------------------------------------------------------------------

class WorksheetDescriptor(BaseModel):
    drawing_rel_id: Optional[str] = None

    @classmethod
    def from_mapped(cls, mapped: Dict[str, Any]) -> "WorksheetDescriptor":
        worksheet = mapped.get("worksheet") or {}
        drawing = worksheet.get("drawing") if isinstance(worksheet, dict) else None
        if not isinstance(drawing, dict):
            return cls()
        return cls(drawing_rel_id=drawing.get("r:id"))


# -------------------------------------------------------------------
# Drawing anchors (tagged variant)
# -------------------------------------------------------------------

class OneCellAnchorRecord(BaseModel):
    """``xdr:oneCellAnchor`` — a top-left marker plus an extent."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["oneCell"] = "oneCell"
    embed_id: str
    from_: CellCoordinate = Field(alias="from")

    def normalize(self) -> Anchor:
        return Anchor(from_=self.from_, to=self.from_)


class TwoCellAnchorRecord(BaseModel):
    """``xdr:twoCellAnchor`` — explicit top-left and bottom-right markers."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["twoCell"] = "twoCell"
    embed_id: str
    from_: CellCoordinate = Field(alias="from")
    to: CellCoordinate

    def normalize(self) -> Anchor:
        return Anchor(from_=self.from_, to=self.to)


AnchorRecord = Union[OneCellAnchorRecord, TwoCellAnchorRecord]
