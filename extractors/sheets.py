"""
SheetRegistry — sheet name → ``Sheet`` mapping read from the workbook part.

Drawing and media parts are reached through the worksheet part, which is
addressed by the workbook's internal identifiers rather than by the
user-visible sheet name, so every resolution pass starts here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from openpyxl.packaging.relationship import get_rels_path

from dto.parts import RelationshipTable
from dto.sheet import Sheet
from errors import SheetNotFoundError, SheetRegistryError, XmlParseError
from extractors.parts import PackagePartAccessor
from utils.opc import resolve_target
from utils.xml_mapper import parse_xml

logger = logging.getLogger(__name__)

DEFAULT_WORKBOOK_PART = "xl/workbook.xml"

WORKBOOK_ALWAYS_LIST = ("sheet",)
RELS_ALWAYS_LIST = ("Relationship",)


def _conventional_sheet_part(sheet_id: str) -> str:
    return f"xl/worksheets/sheet{sheet_id}.xml"


class SheetRegistry(Mapping[str, Sheet]):
    """
    Immutable, ordered ``name -> Sheet`` mapping.

    Built once per resolution pass and passed along explicitly; it holds no
    reference to the package it was read from.
    """

    def __init__(self, sheets: List[Sheet]):
        self._sheets: Dict[str, Sheet] = {s.name: s for s in sheets}

    def __getitem__(self, name: str) -> Sheet:
        return self._sheets[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sheets)

    def __len__(self) -> int:
        return len(self._sheets)

    def __repr__(self) -> str:
        return f"SheetRegistry({list(self._sheets.values())!r})"

    def require(self, name: str) -> Sheet:
        """Return the sheet called *name* or raise ``SheetNotFoundError``."""
        sheet = self._sheets.get(name)
        if sheet is None:
            raise SheetNotFoundError(name)
        return sheet

    # ---- construction -----------------------------------------------------

    @classmethod
    def build(
        cls,
        workbook_xml: Optional[Union[str, bytes]],
        workbook_rels_xml: Optional[Union[str, bytes]] = None,
        workbook_path: str = DEFAULT_WORKBOOK_PART,
    ) -> "SheetRegistry":
        """
        Build the registry from the workbook part (and optionally its
        relationships, used to locate each worksheet part exactly).

        Raises ``SheetRegistryError`` when the workbook part is missing or
        malformed.
        """
        if workbook_xml is None:
            raise SheetRegistryError(f"Workbook part not found: {workbook_path}")

        try:
            mapped = parse_xml(workbook_xml, WORKBOOK_ALWAYS_LIST, path=workbook_path)
        except XmlParseError as exc:
            raise SheetRegistryError(
                f"Workbook part is not valid XML: {workbook_path}"
            ) from exc

        entries = _sheet_entries(mapped)
        if entries is None:
            raise SheetRegistryError(
                f"Workbook part declares no <sheets> list: {workbook_path}"
            )

        rels: Optional[RelationshipTable] = None
        if workbook_rels_xml is not None:
            rels_path = get_rels_path(workbook_path)
            try:
                mapped_rels = parse_xml(workbook_rels_xml, RELS_ALWAYS_LIST, path=rels_path)
            except XmlParseError as exc:
                raise SheetRegistryError(
                    f"Workbook relationships are not valid XML: {rels_path}"
                ) from exc
            rels = RelationshipTable.from_mapped(rels_path, mapped_rels)

        sheets: List[Sheet] = []
        for entry in entries:
            try:
                name = entry["name"]
                sheet_id = entry["sheetId"]
            except (KeyError, TypeError) as exc:
                raise SheetRegistryError(
                    f"Malformed <sheet> entry in {workbook_path}: {entry!r}"
                ) from exc

            rel_id = entry.get("r:id")
            part = _conventional_sheet_part(sheet_id)
            if rels is not None and rel_id:
                rel = rels.get(rel_id)
                if rel is not None:
                    part = resolve_target(workbook_path, rel.target)

            sheets.append(Sheet(id=sheet_id, name=name, rel_id=rel_id, part=part))

        registry = cls(sheets)
        logger.debug("Sheet registry: %r", registry)
        return registry

    @classmethod
    def from_package(cls, parts: PackagePartAccessor) -> "SheetRegistry":
        """Locate the workbook part inside *parts* and build the registry."""
        workbook_path = find_workbook_part(parts)
        return cls.build(
            parts.get_part(workbook_path),
            parts.get_part(get_rels_path(workbook_path)),
            workbook_path=workbook_path,
        )


def _sheet_entries(mapped: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
    workbook = mapped.get("workbook")
    if not isinstance(workbook, dict):
        return None
    sheets = workbook.get("sheets")
    if sheets == {}:
        return []
    if not isinstance(sheets, dict):
        return None
    return sheets.get("sheet", [])


def find_workbook_part(parts: PackagePartAccessor) -> str:
    """
    Return the workbook part named by the package root relationships,
    falling back to ``xl/workbook.xml``.
    """
    root_rels = parts.read_xml(get_rels_path(""), RELS_ALWAYS_LIST)
    if root_rels is not None:
        table = RelationshipTable.from_mapped(get_rels_path(""), root_rels)
        for rel in table.relationships:
            if rel.type.endswith("/officeDocument"):
                return resolve_target("", rel.target)
    return DEFAULT_WORKBOOK_PART
