"""CSV parsing and normalization for downloaded share-of-voice reports.

Report files use RFC 4180 quoting. Header spellings vary between
camelCase and Title Case depending on how the report was produced, so
each normalized field is looked up through an ordered list of aliases
and the first non-blank value wins.
"""

import csv
import io
import math
from typing import Dict, List, Mapping, Sequence

from ..models import SOVRow

SOV_HEADER_ALIASES: Dict[str, Sequence[str]] = {
    "week": ("week", "Week", "date", "Date"),
    "app_name": ("appName", "App Name"),
    "app_id": ("adamId", "App ID", "appId"),
    "country_or_region": ("countryOrRegion", "Country or Region", "country"),
    "keyword": ("searchTerm", "Search Term", "search_term"),
    "popularity": ("searchPopularity", "Search Popularity", "popularity"),
    "impression_share": ("impressionShare", "Impression Share"),
    "rank": ("rank", "Rank"),
    "impressions": ("impressions", "Impressions"),
    "taps": ("taps", "Taps"),
    "installs": ("installs", "Installs", "tapThroughInstalls"),
    "spend": ("spend", "Spend"),
}

TEXT_FIELDS = ("week", "app_name", "app_id", "country_or_region", "keyword")
FLOAT_FIELDS = ("popularity", "impression_share", "rank", "spend")
INT_FIELDS = ("impressions", "taps", "installs")


def parse_csv_line(line: str) -> List[str]:
    """Split one CSV line into fields.

    Quoted fields may contain commas, and a doubled quote inside a
    quoted field stands for one literal quote::

        >>> parse_csv_line('a,"b,c","d""e"')
        ['a', 'b,c', 'd"e']

    :param line: A single line without its terminator
    :type line: str
    :return: Field values; an empty line yields one empty field
    :rtype: List[str]
    """
    for row in csv.reader([line]):
        return row
    return [""]


def read_csv(text: str) -> List[List[str]]:
    """Parse a whole CSV document, skipping blank lines.

    A leading byte order mark is dropped. Quoted fields may span lines.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    rows = []
    for row in csv.reader(io.StringIO(text)):
        if any(cell.strip() for cell in row):
            rows.append(row)
    return rows


def pick(row: Mapping[str, str], aliases: Sequence[str]) -> str:
    """First non-blank value among ``aliases``, trimmed; empty when none."""
    for key in aliases:
        value = (row.get(key) or "").strip()
        if value:
            return value
    return ""


def parse_float(raw: str) -> float:
    """Parse a report number, ignoring ``%`` signs and thousands separators.

    Blank or unparseable values are 0.
    """
    cleaned = (raw or "").strip().replace("%", "").replace(",", "")
    if not cleaned:
        return 0.0
    try:
        value = float(cleaned)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def parse_int(raw: str) -> int:
    """Parse a report count; fractional values are truncated."""
    return int(parse_float(raw))


def normalize_row(row: Mapping[str, str]) -> SOVRow:
    """Map one header-keyed CSV row onto a :class:`SOVRow`.

    :param row: Cell values keyed by header name
    :type row: Mapping[str, str]
    :return: Normalized row
    :rtype: SOVRow
    """
    values = {}
    for field in TEXT_FIELDS:
        values[field] = pick(row, SOV_HEADER_ALIASES[field])
    for field in FLOAT_FIELDS:
        values[field] = parse_float(pick(row, SOV_HEADER_ALIASES[field]))
    for field in INT_FIELDS:
        values[field] = parse_int(pick(row, SOV_HEADER_ALIASES[field]))
    return SOVRow(**values)


def parse_report_csv(text: str) -> List[SOVRow]:
    """Parse a downloaded share-of-voice CSV into normalized rows.

    The first non-blank line is the header. Cells beyond the header
    width are ignored and missing trailing cells read as blank.

    :param text: Decoded CSV document
    :type text: str
    :return: One normalized row per data line, in file order
    :rtype: List[SOVRow]
    """
    rows = read_csv(text)
    if not rows:
        return []
    headers = [header.strip() for header in rows[0]]
    results = []
    for values in rows[1:]:
        keyed = {header: value for header, value in zip(headers, values)}
        results.append(normalize_row(keyed))
    return results
