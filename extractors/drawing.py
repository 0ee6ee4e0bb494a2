"""
DrawingLocator — finds the drawing part behind a worksheet.

    worksheet  --<drawing r:id>-->  worksheet rels  --Target-->  drawing
    drawing    --_rels/<name>.rels-->  drawing relationships (media)

A sheet without a ``<drawing>`` element simply has no images.  Once the
worksheet declares one, every linked part must exist.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from openpyxl.packaging.relationship import get_rels_path
from pydantic import BaseModel

from dto.parts import RelationshipTable, WorksheetDescriptor
from dto.sheet import Sheet
from errors import DrawingResolutionError
from extractors.parts import PackagePartAccessor
from utils.opc import resolve_target

logger = logging.getLogger(__name__)

RELS_ALWAYS_LIST = ("Relationship",)
DRAWING_ALWAYS_LIST = ("xdr:twoCellAnchor", "xdr:oneCellAnchor")


class DrawingParts(BaseModel):
    """A located drawing: its path, mapped XML and relationship table."""

    path: str
    drawing_xml: Dict[str, Any]
    relationships: RelationshipTable


class DrawingLocator:
    """
    Usage::

        locator = DrawingLocator(parts)
        drawing = locator.locate(sheet)   # None when the sheet has no drawing
    """

    def __init__(self, parts: PackagePartAccessor):
        self._parts = parts

    def locate(self, sheet: Sheet) -> Optional[DrawingParts]:
        worksheet_xml = self._parts.read_xml(sheet.part)
        if worksheet_xml is None:
            logger.debug("Worksheet part %s missing for sheet %r", sheet.part, sheet.name)
            return None

        descriptor = WorksheetDescriptor.from_mapped(worksheet_xml)
        if not descriptor.drawing_rel_id:
            logger.debug("Sheet %r declares no drawing", sheet.name)
            return None

        # From here on the sheet promised a drawing; missing parts are fatal.
        sheet_rels = self._read_relationships(sheet.part)
        if sheet_rels is None:
            raise DrawingResolutionError(
                "Worksheet relationships not found", get_rels_path(sheet.part)
            )

        drawing_rel = sheet_rels.get(descriptor.drawing_rel_id)
        if drawing_rel is None:
            raise DrawingResolutionError(
                f"No relationship {descriptor.drawing_rel_id!r} for drawing",
                sheet_rels.source,
            )

        drawing_path = resolve_target(sheet.part, drawing_rel.target)
        drawing_xml = self._parts.read_xml(drawing_path, DRAWING_ALWAYS_LIST)
        if drawing_xml is None:
            raise DrawingResolutionError("Drawing part not found", drawing_path)

        drawing_rels = self._read_relationships(drawing_path)
        if drawing_rels is None:
            raise DrawingResolutionError(
                "Drawing relationships not found", get_rels_path(drawing_path)
            )

        logger.debug(
            "Sheet %r -> %s (%d relationship(s))",
            sheet.name,
            drawing_path,
            len(drawing_rels.relationships),
        )
        return DrawingParts(
            path=drawing_path,
            drawing_xml=drawing_xml,
            relationships=drawing_rels,
        )

    def _read_relationships(self, part: str) -> Optional[RelationshipTable]:
        rels_path = get_rels_path(part)
        mapped = self._parts.read_xml(rels_path, RELS_ALWAYS_LIST)
        if mapped is None:
            return None
        return RelationshipTable.from_mapped(rels_path, mapped)
