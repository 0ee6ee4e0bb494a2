"""
Part-name helpers for OPC packages (the zip layout behind .xlsx files).

Part names are handled without a leading slash ("xl/workbook.xml"), the
way ``zipfile`` lists them.  Relationships parts are located with
openpyxl's ``get_rels_path``.
"""

from __future__ import annotations

import posixpath


def normalize_part_name(name: str) -> str:
    """Strip a leading slash and collapse ``.``/``..`` segments."""
    name = name.replace("\\", "/").lstrip("/")
    return posixpath.normpath(name) if name else name


def resolve_target(source_part: str, target: str) -> str:
    """
    Resolve a relationship *target* declared by *source_part*.

    Relative targets are relative to the source part's folder; targets
    starting with "/" are rooted at the package.
    """
    target = target.replace("\\", "/")
    if target.startswith("/"):
        return normalize_part_name(target)
    folder = posixpath.dirname(normalize_part_name(source_part))
    return normalize_part_name(posixpath.join(folder, target))
