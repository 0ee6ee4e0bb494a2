"""
PackagePartAccessor — raw access to the parts of an .xlsx package.

A part is stored either as bytes or behind a zero-argument reader (the
zip-backed accessor reads entries lazily).  ``get_part`` normalises both
into bytes and returns ``None`` when the part does not exist, which is a
normal outcome (most sheets have no drawing).
"""

from __future__ import annotations

import functools
import io
import logging
import zipfile
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from utils.opc import normalize_part_name
from utils.xml_mapper import parse_xml

logger = logging.getLogger(__name__)

PartSource = Union[bytes, bytearray, memoryview, Callable[[], bytes]]


class PackagePartAccessor:
    """
    Read-only view over the named parts of a package.

    Usage::

        parts = PackagePartAccessor.from_bytes(xlsx_bytes)
        workbook_xml = parts.get_part("xl/workbook.xml")
    """

    def __init__(self, parts: Mapping[str, PartSource]):
        # Zip entries may be written with a leading slash; lookups ignore it.
        self._parts: Dict[str, PartSource] = {
            normalize_part_name(name): source for name, source in parts.items()
        }

    # ---- construction -----------------------------------------------------

    @classmethod
    def from_zip(cls, archive: zipfile.ZipFile) -> "PackagePartAccessor":
        """Expose every file entry of *archive*, read on first access."""
        return cls(
            {
                info.filename: functools.partial(archive.read, info.filename)
                for info in archive.infolist()
                if not info.is_dir()
            }
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "PackagePartAccessor":
        return cls.from_zip(zipfile.ZipFile(io.BytesIO(data)))

    # ---- access -----------------------------------------------------------

    def names(self) -> List[str]:
        return list(self._parts)

    def __contains__(self, path: str) -> bool:
        return normalize_part_name(path) in self._parts

    def get_part(self, path: str) -> Optional[bytes]:
        """Return the raw bytes of *path*, or ``None`` if it is absent."""
        source = self._parts.get(normalize_part_name(path))
        if source is None:
            return None
        if callable(source):
            return source()
        return bytes(source)

    def read_xml(
        self, path: str, always_list: Iterable[str] = ()
    ) -> Optional[Dict[str, Any]]:
        """
        Read *path* and map it with ``parse_xml``.

        Returns ``None`` for an absent part; malformed XML raises
        ``XmlParseError``.
        """
        data = self.get_part(path)
        if data is None:
            logger.debug("Part not present: %s", path)
            return None
        return parse_xml(data, always_list, path=normalize_part_name(path))
