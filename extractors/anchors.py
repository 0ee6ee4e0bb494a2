"""
AnchorExtractor — picture anchors of a drawing part.

Both anchor shapes are read into tagged records and normalised straight
away into ``Anchor(from_, to)``:

  - ``xdr:twoCellAnchor``: ``to`` comes from the anchor's own ``xdr:to``;
  - ``xdr:oneCellAnchor``: there is no ``xdr:to``, so ``to == from_``.

One picture relationship may be anchored in several places, so the result
maps each relationship id to a list of anchors.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from dto.coordinate import Anchor, CellCoordinate
from dto.parts import AnchorRecord, OneCellAnchorRecord, TwoCellAnchorRecord

logger = logging.getLogger(__name__)

DRAWING_ROOT = "xdr:wsDr"
ONE_CELL_ANCHOR = "xdr:oneCellAnchor"
TWO_CELL_ANCHOR = "xdr:twoCellAnchor"


def _marker(record: Any) -> Optional[CellCoordinate]:
    """Read an ``xdr:from`` / ``xdr:to`` marker (0-based col/row)."""
    if not isinstance(record, dict):
        return None
    try:
        return CellCoordinate(
            row=int(record["xdr:row"]),
            col=int(record["xdr:col"]),
        )
    except (KeyError, TypeError, ValueError, ValidationError):
        return None


def _embed_id(anchor: Dict[str, Any]) -> Optional[str]:
    """``xdr:pic/xdr:blipFill/a:blip/@r:embed``, if the anchor holds a picture."""
    pic = anchor.get("xdr:pic")
    if not isinstance(pic, dict):
        return None
    blip_fill = pic.get("xdr:blipFill")
    if not isinstance(blip_fill, dict):
        return None
    blip = blip_fill.get("a:blip")
    if not isinstance(blip, dict):
        return None
    return blip.get("r:embed")


class AnchorExtractor:
    """
    Usage::

        anchors = AnchorExtractor().extract(drawing_xml)
        anchors["rId1"]   # -> [Anchor(from_=..., to=...), ...]
    """

    def parse_records(self, drawing_xml: Dict[str, Any]) -> List[AnchorRecord]:
        """
        Parse every picture anchor into a tagged record.

        One-cell anchors come first, then two-cell anchors, each in
        declaration order.  Anchors that hold no embedded picture (charts,
        shapes, linked pictures) are skipped.
        """
        root = drawing_xml.get(DRAWING_ROOT)
        if not isinstance(root, dict):
            return []

        records: List[AnchorRecord] = []
        for raw in root.get(ONE_CELL_ANCHOR, []):
            record = self._one_cell(raw)
            if record is not None:
                records.append(record)
        for raw in root.get(TWO_CELL_ANCHOR, []):
            record = self._two_cell(raw)
            if record is not None:
                records.append(record)
        return records

    def extract(self, drawing_xml: Dict[str, Any]) -> Dict[str, List[Anchor]]:
        """Return ``relationship id -> [Anchor, ...]`` in record order."""
        anchors: Dict[str, List[Anchor]] = {}
        for record in self.parse_records(drawing_xml):
            anchors.setdefault(record.embed_id, []).append(record.normalize())
        logger.debug("Image anchors: %s", anchors)
        return anchors

    # ---- per-shape parsing ------------------------------------------------

    @staticmethod
    def _one_cell(raw: Any) -> Optional[OneCellAnchorRecord]:
        if not isinstance(raw, dict):
            return None
        embed_id = _embed_id(raw)
        start = _marker(raw.get("xdr:from"))
        if embed_id is None or start is None:
            logger.debug("Skipping one-cell anchor without picture: %s", raw)
            return None
        return OneCellAnchorRecord(embed_id=embed_id, from_=start)

    @staticmethod
    def _two_cell(raw: Any) -> Optional[TwoCellAnchorRecord]:
        if not isinstance(raw, dict):
            return None
        embed_id = _embed_id(raw)
        start = _marker(raw.get("xdr:from"))
        end = _marker(raw.get("xdr:to"))
        if embed_id is None or start is None or end is None:
            logger.debug("Skipping two-cell anchor without picture: %s", raw)
            return None
        return TwoCellAnchorRecord(embed_id=embed_id, from_=start, to=end)
