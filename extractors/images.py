"""
ImageLocationResolver — sheet name → [ImageLocation].

Per sheet:
  1. Look the sheet up in a freshly built ``SheetRegistry``.
  2. Locate its drawing (``DrawingLocator``); no drawing → no images.
  3. Collect ``relationship id -> [Anchor]`` (``AnchorExtractor``).
  4. Collect ``relationship id -> ImageFile`` from the drawing's image
     relationships.
  5. Join the two mappings, one ``ImageLocation`` per anchor.

Nothing is cached between calls; resolving twice reads the package twice.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from dto.coordinate import Anchor
from dto.image_location import ImageFile, ImageLocation, ImageLocationMap
from dto.parts import RelationshipTable
from errors import DrawingResolutionError, ImageAnchorNotFoundError
from extractors.anchors import AnchorExtractor
from extractors.drawing import DrawingLocator
from extractors.parts import PackagePartAccessor
from extractors.sheets import SheetRegistry
from utils.opc import resolve_target

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Join helpers
# -------------------------------------------------------------------

def collect_media(
    parts: PackagePartAccessor,
    drawing_path: str,
    relationships: RelationshipTable,
) -> Dict[str, ImageFile]:
    """
    Return ``relationship id -> ImageFile`` for every image relationship of
    the drawing, in declaration order.  External (linked) images have no
    bytes in the package and are skipped.
    """
    media: Dict[str, ImageFile] = {}
    for rel in relationships.images():
        if rel.is_external:
            logger.warning(
                "Skipping linked image %s (%s) in %s", rel.id, rel.target, drawing_path
            )
            continue
        media_path = resolve_target(drawing_path, rel.target)
        data = parts.get_part(media_path)
        if data is None:
            raise DrawingResolutionError("Media part not found", media_path)
        media[rel.id] = ImageFile.from_part(media_path, data)
    return media


def join_locations(
    media: Dict[str, ImageFile],
    anchors: Dict[str, List[Anchor]],
    drawing_path: str = "",
) -> List[ImageLocation]:
    """
    Fan each media relationship out over its anchors.

    Raises ``ImageAnchorNotFoundError`` when a media relationship has no
    anchor.  Anchors whose relationship has no media are not emitted.
    """
    locations: List[ImageLocation] = []
    for rel_id, image in media.items():
        rel_anchors = anchors.get(rel_id)
        if not rel_anchors:
            raise ImageAnchorNotFoundError(rel_id, drawing_path)
        for anchor in rel_anchors:
            locations.append(ImageLocation(file=image, from_=anchor.from_, to=anchor.to))
    return locations


# =====================================================================
# ImageLocationResolver
# =====================================================================


class ImageLocationResolver:
    """
    Usage::

        resolver = ImageLocationResolver(parts)
        locations = resolver.resolve(["Data", "Summary"])
    """

    def __init__(self, parts: PackagePartAccessor):
        self._parts = parts
        self._drawings = DrawingLocator(parts)
        self._anchors = AnchorExtractor()

    def build_registry(self) -> SheetRegistry:
        return SheetRegistry.from_package(self._parts)

    def resolve(self, sheet_names: Optional[Iterable[str]] = None) -> ImageLocationMap:
        """
        Resolve every sheet in *sheet_names* (default: the workbook's
        declared order) into its image locations.
        """
        registry = self.build_registry()
        names = list(sheet_names) if sheet_names is not None else list(registry)

        locations_map: ImageLocationMap = {}
        for name in names:
            locations_map[name] = self.resolve_sheet(name, registry)

        logger.debug("Image location map: %s", locations_map)
        return locations_map

    def resolve_sheet(
        self, sheet_name: str, registry: Optional[SheetRegistry] = None
    ) -> List[ImageLocation]:
        if registry is None:
            registry = self.build_registry()
        sheet = registry.require(sheet_name)

        drawing = self._drawings.locate(sheet)
        if drawing is None:
            return []

        anchors = self._anchors.extract(drawing.drawing_xml)
        media = collect_media(self._parts, drawing.path, drawing.relationships)
        locations = join_locations(media, anchors, drawing.path)

        logger.info(
            "Sheet %r: %d image(s) at %d location(s)",
            sheet_name,
            len(media),
            len(locations),
        )
        return locations
