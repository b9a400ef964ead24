"""
CSV import: parse an operator-supplied file, let the operator rename its
columns to locale codes, and rebuild the CSV that is sent to the bulk-upload
endpoint.

The first column conventionally holds the key name and the rest hold one
locale each, but source files rarely use locale codes as headers ("English",
"Indonesian", "Notes"...). Columns are therefore mapped positionally from their
original header to an operator-chosen name, and only columns whose new name is
``key`` or a known locale code survive into the upload.
"""
import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from mio_dashboard.errors import CsvParseError

logger = logging.getLogger(__name__)

KEY_COLUMN = "key"


@dataclass
class CsvDocument:
    """Parsed CSV: the ordered original headers and one mapping per data row."""
    headers: List[str]
    rows: List[Dict[str, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


@dataclass
class HeaderMapping:
    position: int
    original: str
    renamed: str


@dataclass
class CsvPreview:
    headers: List[str]
    rows: List[List[str]]
    total_rows: int

    @property
    def shown_rows(self) -> int:
        return len(self.rows)

    @property
    def summary(self) -> str:
        return (f"Showing first {self.shown_rows} of {self.total_rows} rows. "
                "Edit headers to map columns correctly.")


def _decode(content: Union[str, bytes]) -> str:
    if isinstance(content, bytes):
        try:
            return content.decode('utf-8-sig')
        except UnicodeDecodeError as exc:
            raise CsvParseError(f"CSV file is not valid UTF-8: {exc}") from exc
    return content.lstrip('\ufeff')


def parse_csv(content: Union[str, bytes]) -> CsvDocument:
    """
    Parse CSV text with a header row, skipping blank lines.

    Args:
        content: The raw file content, as bytes (decoded as UTF-8) or text.

    Returns:
        CsvDocument: The original headers and the rows keyed by them. Short rows
        are padded with empty strings; cells beyond the header are ignored.
        Columns whose header is blank (spreadsheets often export trailing
        empty columns) are left out entirely.

    Raises:
        CsvParseError: if the file cannot be decoded or tokenized, has no header
        row, or repeats a header name.
    """
    text = _decode(content)
    reader = csv.reader(io.StringIO(text, newline=''), strict=True)

    try:
        records = [row for row in reader if any(cell.strip() for cell in row)]
    except csv.Error as exc:
        logger.error("CSV parse failed at line %s: %s", reader.line_num, exc)
        raise CsvParseError(f"Malformed CSV near line {reader.line_num}: {exc}") from exc

    if not records:
        logger.error("CSV parse failed: no header row found")
        raise CsvParseError("CSV file is empty: a header row is required.")

    named = [(index, header.strip()) for index, header in enumerate(records[0]) if header.strip()]
    if len(named) < len(records[0]):
        logger.info("Ignoring %d column(s) without a header name.", len(records[0]) - len(named))
    headers = [header for _, header in named]
    seen: Set[str] = set()
    for header in headers:
        if header in seen:
            logger.error("CSV parse failed: duplicate header '%s'", header)
            raise CsvParseError(f"Duplicate column header '{header}' in CSV file.")
        seen.add(header)

    rows = []
    for record in records[1:]:
        rows.append({header: record[index] if index < len(record) else '' for index, header in named})

    logger.info("Parsed CSV with %d column(s) and %d row(s).", len(headers), len(rows))
    return CsvDocument(headers=headers, rows=rows)


def normalize_column(name: str) -> str:
    """Trim a header; the key column is recognised regardless of case."""
    stripped = name.strip()
    if stripped.lower() == KEY_COLUMN:
        return KEY_COLUMN
    return stripped


def map_headers(original: List[str], renamed: Optional[List[str]] = None) -> List[HeaderMapping]:
    """
    Pair every original header with its new name by position.

    Raises:
        ValueError: if ``renamed`` does not have one entry per original header.
    """
    if renamed is None:
        renamed = list(original)
    if len(renamed) != len(original):
        raise ValueError(
            f"Expected {len(original)} header name(s), got {len(renamed)}; renaming cannot add or drop columns."
        )
    return [
        HeaderMapping(position=i, original=old, renamed=normalize_column(new))
        for i, (old, new) in enumerate(zip(original, renamed))
    ]


def valid_columns(locales: Iterable[str]) -> Set[str]:
    """The column names an upload may carry: ``key`` plus the project's locale codes."""
    return {KEY_COLUMN} | {locale for locale in locales if locale}


def select_columns(mappings: List[HeaderMapping], valid: Set[str]) -> List[HeaderMapping]:
    """
    Keep the mappings whose new name is a valid column, in their original order.

    Columns renamed to anything unrecognised are dropped silently.

    Raises:
        CsvParseError: if no key column survives, or two columns map to the same name.
    """
    kept = [mapping for mapping in mappings if mapping.renamed in valid]
    dropped = [mapping.renamed or mapping.original for mapping in mappings if mapping.renamed not in valid]
    if dropped:
        logger.info("Dropping unrecognised column(s) from upload: %s", ", ".join(dropped))

    names = [mapping.renamed for mapping in kept]
    for name in names:
        if names.count(name) > 1:
            raise CsvParseError(f"More than one column is mapped to '{name}'.")
    if KEY_COLUMN not in names:
        raise CsvParseError("No key column: rename the column holding key names to 'key'.")
    return kept


def build_upload_csv(document: CsvDocument, renamed_headers: Optional[List[str]], locales: Iterable[str]) -> str:
    """
    Rebuild the CSV text that goes to the bulk-upload endpoint.

    Args:
        document: The parsed source file.
        renamed_headers: The operator's header names, one per original column
            (``None`` keeps the original names).
        locales: Locale codes of the languages in the active project.

    Returns:
        str: CSV text containing only the ``key`` column and known locale columns.
    """
    kept = select_columns(map_headers(document.headers, renamed_headers), valid_columns(locales))

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow([mapping.renamed for mapping in kept])
    for row in document.rows:
        writer.writerow([row.get(mapping.original, '') for mapping in kept])
    return buffer.getvalue()


def read_translations(
    document: CsvDocument, renamed_headers: Optional[List[str]], locales: Iterable[str]
) -> List[Tuple[str, str, str]]:
    """
    The (key, locale, value) triples an upload of ``document`` would carry.

    Rows without a key name are left out.
    """
    kept = select_columns(map_headers(document.headers, renamed_headers), valid_columns(locales))
    key_mapping = next(mapping for mapping in kept if mapping.renamed == KEY_COLUMN)
    locale_mappings = [mapping for mapping in kept if mapping.renamed != KEY_COLUMN]

    triples = []
    for row in document.rows:
        key_name = row.get(key_mapping.original, '').strip()
        if not key_name:
            continue
        for mapping in locale_mappings:
            triples.append((key_name, mapping.renamed, row.get(mapping.original, '')))
    return triples


def preview(document: CsvDocument, limit: int = 50) -> CsvPreview:
    """First ``limit`` rows, in original column order, for the header-mapping preview."""
    rows = [[row.get(header, '') for header in document.headers] for row in document.rows[:limit]]
    return CsvPreview(headers=list(document.headers), rows=rows, total_rows=len(document.rows))
