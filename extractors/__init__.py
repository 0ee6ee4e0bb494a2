"""
Image-to-cell resolution.

Resolution walks, per sheet:

  SheetRegistry    — workbook part: sheet name → worksheet part
  DrawingLocator   — worksheet → worksheet rels → drawing + drawing rels
  AnchorExtractor  — drawing anchors: relationship id → [Anchor]
  ImageLocationResolver — joins anchors with media parts
"""
from extractors.anchors import AnchorExtractor
from extractors.drawing import DrawingLocator, DrawingParts
from extractors.images import ImageLocationResolver
from extractors.parts import PackagePartAccessor
from extractors.sheets import SheetRegistry

__all__ = [
    "AnchorExtractor",
    "DrawingLocator",
    "DrawingParts",
    "ImageLocationResolver",
    "PackagePartAccessor",
    "SheetRegistry",
]
