from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, Optional

from .error_handling import UnsupportedFormatError


class FileKind(Enum):
    """Reader selected for an input file."""

    CSV = "csv"
    XLSX = "xlsx"
    XLS = "xls"

    @property
    def is_spreadsheet(self) -> bool:
        return self in (FileKind.XLSX, FileKind.XLS)

    @property
    def excel_engine(self) -> Optional[str]:
        """pandas engine able to read this workbook format."""
        return {FileKind.XLSX: "openpyxl", FileKind.XLS: "xlrd"}.get(self)


EXTENSION_KINDS = {
    ".csv": FileKind.CSV,
    ".xlsx": FileKind.XLSX,
    ".xls": FileKind.XLS,
}


@dataclass
class FileMetadata:
    file_name: str
    kind: FileKind
    content_type: Optional[str] = None
    size: int = 0
    additional_metadata: Dict[str, Any] = field(default_factory=dict)


def detect_file_kind(file_name: str, content_type: Optional[str] = None) -> FileKind:
    """
    Select a reader from the file extension, falling back to the content type.

    Args:
        file_name: Name of the file, extension included
        content_type: Optional MIME type reported by the uploader

    Returns:
        The FileKind to read the file with

    Raises:
        UnsupportedFormatError: If neither extension nor content type is known
    """
    kind = EXTENSION_KINDS.get(PurePath(file_name).suffix.lower())
    if kind is not None:
        return kind

    content_type = (content_type or "").lower()
    if "csv" in content_type:
        return FileKind.CSV
    if "spreadsheetml" in content_type:
        return FileKind.XLSX

    raise UnsupportedFormatError(
        filepath=file_name,
        reason="Unsupported file format. Select a CSV or XLSX file.",
        context={"content_type": content_type or None},
    )


def extract_metadata(
    file_name: str, content: bytes, content_type: Optional[str] = None
) -> FileMetadata:
    """Build the FileMetadata for one input file."""
    return FileMetadata(
        file_name=file_name,
        kind=detect_file_kind(file_name, content_type),
        content_type=content_type,
        size=len(content),
    )
