"""
Exceptions raised while resolving and rewriting embedded images.

Every error here is fatal for the call that raised it: nothing is retried
and nothing is swallowed.  The CLI catches ``ExcelImageError`` at the top
level; library callers may catch the specific subclasses.
"""

from __future__ import annotations

from typing import Any

from config import XML_PREVIEW_CHARS


class ExcelImageError(Exception):
    """Base class for all errors raised by this package."""


class NotLoadedError(ExcelImageError):
    """An operation was invoked before a workbook was loaded."""

    def __init__(self) -> None:
        super().__init__("No excel file has been loaded yet")


class SheetNotFoundError(ExcelImageError):
    """A sheet name has no entry in the sheet registry."""

    def __init__(self, sheet_name: str) -> None:
        self.sheet_name = sheet_name
        super().__init__(f"Sheet {sheet_name!r} not found in workbook registry")


class SheetNotExistError(ExcelImageError):
    """A grid read or write targets a sheet absent from the workbook."""

    def __init__(self, sheet_name: str) -> None:
        self.sheet_name = sheet_name
        super().__init__(f"There is no worksheet named {sheet_name!r}")


class SheetRegistryError(ExcelImageError):
    """The workbook part is missing or malformed."""


class DrawingResolutionError(ExcelImageError):
    """A worksheet declares a drawing but a linked part is missing."""

    def __init__(self, message: str, part: str) -> None:
        self.part = part
        super().__init__(f"{message}: {part}")


class ImageAnchorNotFoundError(ExcelImageError):
    """A media relationship of a drawing has no anchor referencing it."""

    def __init__(self, rel_id: str, drawing_part: str) -> None:
        self.rel_id = rel_id
        self.drawing_part = drawing_part
        super().__init__(
            f"Image anchor not found for relationship {rel_id!r} in {drawing_part}"
        )


class XmlParseError(ExcelImageError):
    """
    Malformed XML in a package part.

    ``content`` holds the full raw text for diagnostics; the message only
    carries a preview.
    """

    def __init__(self, path: str, content: str, reason: str = "") -> None:
        self.path = path
        self.content = content
        self.reason = reason
        preview = content[:XML_PREVIEW_CHARS]
        if len(content) > XML_PREVIEW_CHARS:
            preview += "..."
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"Failed to parse xml, file: {path}{detail}, content: {preview}"
        )


class InvalidCallbackResultError(ExcelImageError, TypeError):
    """The transform callback produced something other than a string."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(
            f"Transform callback must return str, got {type(value).__name__}"
        )
