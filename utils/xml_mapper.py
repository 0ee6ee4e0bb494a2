"""
Generic XML → nested dict mapping for OOXML parts.

Each element is flattened into one record:

  - attributes are copied onto the record as plain keys;
  - child elements become nested keys holding a record, or a list of
    records when the element repeats or its name is in ``always_list``;
  - an element with only text becomes that text under its parent key;
    text next to attributes or children is kept under ``"_text"``;
  - an empty element becomes ``{}``.

Names are emitted as ``prefix:local`` using a fixed prefix per namespace
(``xdr:twoCellAnchor``, ``r:embed``) so that lookups do not depend on the
prefixes a particular producer chose.  SpreadsheetML and package
relationship elements have no prefix (``workbook``, ``Relationship``).

Example::

    >>> parse_xml('<sheets><sheet name="A" sheetId="1"/></sheets>', {"sheet"})
    {'sheets': {'sheet': [{'name': 'A', 'sheetId': '1'}]}}
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Union

from lxml import etree
from openpyxl.xml.constants import (
    CHART_NS,
    DRAWING_NS,
    PKG_REL_NS,
    REL_NS,
    SHEET_DRAWING_NS,
    SHEET_MAIN_NS,
    XML_NS,
)

from errors import XmlParseError

logger = logging.getLogger(__name__)

TEXT_KEY = "_text"

MC_NS = "http://schemas.openxmlformats.org/markup-compatibility/2006"
PIC_NS = "http://schemas.openxmlformats.org/drawingml/2006/picture"

# Strict OOXML namespaces map onto the same prefixes as transitional ones.
_STRICT_SHEET_MAIN_NS = "http://purl.oclc.org/ooxml/spreadsheetml/main"
_STRICT_REL_NS = "http://purl.oclc.org/ooxml/officeDocument/relationships"
_STRICT_DRAWING_NS = "http://purl.oclc.org/ooxml/drawingml/main"
_STRICT_SHEET_DRAWING_NS = "http://purl.oclc.org/ooxml/drawingml/spreadsheetDrawing"

NAMESPACE_PREFIXES: Dict[str, str] = {
    SHEET_MAIN_NS: "",
    _STRICT_SHEET_MAIN_NS: "",
    PKG_REL_NS: "",
    REL_NS: "r",
    _STRICT_REL_NS: "r",
    SHEET_DRAWING_NS: "xdr",
    _STRICT_SHEET_DRAWING_NS: "xdr",
    DRAWING_NS: "a",
    _STRICT_DRAWING_NS: "a",
    CHART_NS: "c",
    PIC_NS: "pic",
    MC_NS: "mc",
    XML_NS: "xml",
}

Record = Dict[str, Any]

_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    remove_comments=True,
    remove_pis=True,
)


# -------------------------------------------------------------------
# Name handling
# -------------------------------------------------------------------

def _qualify(tag: str, nsmap: Dict[Optional[str], str]) -> str:
    """Turn a Clark-notation name (``{uri}local``) into ``prefix:local``."""
    qname = etree.QName(tag)
    uri = qname.namespace
    if uri is None:
        return qname.localname

    prefix = NAMESPACE_PREFIXES.get(uri)
    if prefix is None:
        # Unknown namespace: fall back to whatever the document used.
        prefix = next((p for p, u in nsmap.items() if u == uri and p), "")
    return f"{prefix}:{qname.localname}" if prefix else qname.localname


# -------------------------------------------------------------------
# Flattening
# -------------------------------------------------------------------

class _RepeatedList(list):
    """List created because an element occurred more than once."""


def _element_to_value(
    element: etree._Element, always_list: frozenset
) -> Union[Record, str]:
    record: Record = {}

    for key, value in element.attrib.items():
        record[_qualify(key, element.nsmap)] = value

    for child in element:
        if not isinstance(child.tag, str):
            # Entities and other non-element nodes carry no structure.
            continue
        name = _qualify(child.tag, child.nsmap)
        value = _element_to_value(child, always_list)

        if name in always_list:
            bucket = record.get(name)
            if not isinstance(bucket, list):
                bucket = record[name] = []
            bucket.append(value)
        elif name in record:
            existing = record[name]
            if isinstance(existing, _RepeatedList):
                existing.append(value)
            else:
                record[name] = _RepeatedList([existing, value])
        else:
            record[name] = value

    text = (element.text or "").strip()
    if not record:
        return text if text else {}
    if text:
        record[TEXT_KEY] = text
    return record


def _plain(value: Any) -> Any:
    """Replace internal list markers with plain lists."""
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


# -------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------

def parse_xml(
    xml: Union[str, bytes],
    always_list: Iterable[str] = (),
    path: str = "<string>",
) -> Record:
    """
    Parse *xml* and return ``{root_name: record}``.

    Element names in *always_list* (qualified, e.g. ``"xdr:twoCellAnchor"``)
    are represented as lists even when they occur once.

    Raises ``XmlParseError`` carrying *path* and the raw text when the
    document is not well-formed.
    """
    raw = xml.encode("utf-8") if isinstance(xml, str) else xml
    try:
        root = etree.fromstring(raw, parser=_PARSER)
    except (etree.XMLSyntaxError, ValueError) as exc:
        content = xml if isinstance(xml, str) else xml.decode("utf-8", "replace")
        logger.debug("XML parse failure in %s: %s", path, exc)
        raise XmlParseError(path, content, reason=str(exc)) from exc

    forced = frozenset(always_list)
    name = _qualify(root.tag, root.nsmap)
    return {name: _plain(_element_to_value(root, forced))}
