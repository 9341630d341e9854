"""CSV reader adapter.

This adapter implements IDeviceRowSource to read the device inventory CSV.

Expected CSV format:
| Name  | Fully qualified domain name | SysCode    |
|-------|-----------------------------|------------|
| srv1  | srv1.example.com            | APP1,APP2  |
| srv2  | srv2.example.com            |            |

- First row is the header; column order does not matter
- A completely empty file is empty input, not an error
- All three columns are required, extra columns are ignored
- Cell values are passed through untouched; blank names or FQDNs are
  dropped later by the normalizer
"""

import csv
import io
import logging
from pathlib import Path
from typing import Optional, Union

from ...api.exceptions import CsvSourceError
from ..domain.entities import DeviceRow
from ..domain.ports import IDeviceRowSource

logger = logging.getLogger(__name__)

NAME_COLUMN = "Name"
FQDN_COLUMN = "Fully qualified domain name"
SYSCODE_COLUMN = "SysCode"
REQUIRED_COLUMNS = (NAME_COLUMN, FQDN_COLUMN, SYSCODE_COLUMN)


class CsvDeviceReader(IDeviceRowSource):
    """Read DeviceRow records from a CSV file on disk."""

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8-sig"):
        """Initialize the reader.

        Args:
            path: Path to the CSV file
            encoding: File encoding; the default strips a UTF-8 BOM
        """
        self.path = Path(path)
        self.encoding = encoding

    def read(self) -> list[DeviceRow]:
        """Read and return every data row.

        Raises:
            CsvSourceError: If the file is missing, cannot be decoded or
                parsed, or lacks a required column
        """
        if not self.path.is_file():
            raise CsvSourceError(
                f"CSV file not found: {self.path}",
                path=str(self.path),
            )

        try:
            text = self.path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise CsvSourceError(
                f"Failed to read CSV file: {e}",
                path=str(self.path),
                cause=e,
            )

        rows = parse_device_csv(text, source=str(self.path))
        logger.info(f"Parsed {len(rows)} rows from {self.path}")
        return rows


def parse_device_csv(text: str, source: Optional[str] = None) -> list[DeviceRow]:
    """Parse CSV text into DeviceRow records.

    A file with no content at all (not even a header row) is treated as
    empty input and yields no rows.

    Args:
        text: Decoded CSV content
        source: Name used in logs and error messages

    Raises:
        CsvSourceError: If the CSV cannot be parsed or lacks required columns
    """
    if not text.strip():
        logger.warning(f"CSV {source or 'input'} is empty (no header row); nothing to do")
        return []

    try:
        reader = csv.reader(io.StringIO(text, newline=""), strict=True)
        header_row = next(reader)

        columns = _find_columns(header_row)
        missing = [name for name in REQUIRED_COLUMNS if name not in columns]
        if missing:
            raise CsvSourceError(
                f"CSV is missing required column(s): {', '.join(missing)}",
                path=source,
                missing_columns=missing,
            )

        rows = []
        for row_num, row in enumerate(reader, start=2):
            if not row or all(not cell.strip() for cell in row):
                continue
            rows.append(
                DeviceRow(
                    name=_cell(row, columns[NAME_COLUMN]),
                    fqdn=_cell(row, columns[FQDN_COLUMN]),
                    raw_syscode=_cell(row, columns[SYSCODE_COLUMN]),
                    row_number=row_num,
                )
            )
        return rows

    except csv.Error as e:
        raise CsvSourceError(f"Failed to parse CSV file: {e}", path=source, cause=e)


def _find_columns(header_row: list[str]) -> dict[str, int]:
    """Map required column names to their indices (first occurrence wins)."""
    columns: dict[str, int] = {}
    for idx, cell in enumerate(header_row):
        header = cell.strip().lstrip("\ufeff")
        if header in REQUIRED_COLUMNS and header not in columns:
            columns[header] = idx
    return columns


def _cell(row: list[str], index: int) -> str:
    return row[index] if index < len(row) else ""
