# =============================================================================
# lib/csv_parser.py - CSV Text Parsing
# =============================================================================
# Turns raw CSV exports (Arketa client list / attendance) into row dicts.
#
#   - Header row becomes the dict keys
#   - Every value is a stripped string ("" when the cell is absent)
#   - A trailing comma on every row (one extra empty cell) is ignored
#   - Quoted fields, embedded commas and multi-line cells are handled by pandas
#
# Usage:
#   from lib.csv_parser import parse_csv, decode_upload
#   rows = parse_csv(decode_upload(await upload.read()))
# =============================================================================

from __future__ import annotations

import io
import logging

import pandas as pd

logger = logging.getLogger(__name__)

# utf-8-sig first so Excel's BOM never leaks into the first header
ENCODINGS_TO_TRY = ["utf-8-sig", "utf-8", "cp1252", "latin-1"]


class CsvFormatError(ValueError):
    """Raised when CSV text is structurally invalid."""


def decode_upload(content: bytes) -> str:
    """
    Decode uploaded file bytes by trying common encodings.

    latin-1 accepts any byte sequence, so this never fails.
    """
    for encoding in ENCODINGS_TO_TRY:
        try:
            return content.decode(encoding)
        except (UnicodeDecodeError, UnicodeError):
            continue
    return content.decode("latin-1", errors="replace")


def parse_csv(content: str) -> list[dict[str, str]]:
    """
    Parse CSV text with a header row into a list of row dicts.

    Returns an empty list when there is no data row (empty text or a
    header on its own).

    Raises:
        CsvFormatError: If the text cannot be parsed (e.g., ragged rows
            with more cells than headers)
    """
    if not content or not content.strip():
        return []

    logger.debug(f"Parsing CSV content ({len(content)} chars)")

    try:
        df = pd.read_csv(
            io.StringIO(content.lstrip("\ufeff")),
            dtype=str,
            index_col=False,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, ValueError) as e:
        raise CsvFormatError(str(e)) from e

    if df.empty:
        return []

    df.columns = [str(col).strip() for col in df.columns]
    df = df.fillna("")
    df = df.apply(lambda col: col.str.strip())

    rows = df.to_dict(orient="records")
    logger.debug(f"Parsed {len(rows)} data rows with headers {list(df.columns)}")
    return rows
