"""
MDPI tab-delimited export -> (title, author, email) rows.

Expected header columns (case-insensitive): Author, Email, Title. Other
columns are ignored. Cells may contain raw line breaks, so one logical row
can span several physical lines.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from author_matching import format_author_name
from contact_filter import clean_emails, dedupe, extract_emails
from models import FormatMismatchError, ParserResult, RecordCollector
from text_normalization import normalize_extracted_text, split_lines, trim_trailing_full_stop

logger = logging.getLogger(__name__)

SOURCE = "MDPI"
DELIMITER = "\t"
REQUIRED_COLUMNS = ("author", "email", "title")


def normalize_header(value: str) -> str:
    return normalize_extracted_text(value).lower()


def split_tab_rows(content: str) -> Tuple[List[str], List[List[str]]]:
    """
    Return (headers, rows). A row is only closed once it has as many columns as the header;
    extra columns are glued back onto the last one.
    """
    lines = split_lines(content)

    header_index = next((i for i, line in enumerate(lines) if line.strip()), None)
    if header_index is None:
        raise FormatMismatchError("The MDPI TXT file is empty.")

    headers = lines[header_index].split(DELIMITER)
    expected = len(headers)

    rows: List[List[str]] = []
    current = ""
    for raw_line in lines[header_index + 1:]:
        if not raw_line.strip() and not current:
            continue

        current = f"{current}\n{raw_line}" if current else raw_line
        columns = current.split(DELIMITER)
        if len(columns) < expected:
            continue

        if len(columns) > expected:
            columns = columns[:expected - 1] + [DELIMITER.join(columns[expected - 1:])]
        rows.append(columns)
        current = ""

    if current:
        logger.debug("MDPI: dropping unterminated trailing row (%d chars)", len(current))

    return headers, rows


def locate_columns(headers: List[str]) -> Dict[str, int]:
    header_map: Dict[str, int] = {}
    for index, header in enumerate(headers):
        header_map.setdefault(normalize_header(header), index)

    missing = [name for name in REQUIRED_COLUMNS if name not in header_map]
    if missing:
        raise FormatMismatchError(
            "Missing required MDPI columns. Expected tab-delimited headers for Author, Email, and Title "
            f"(missing: {', '.join(missing)})."
        )
    return {name: header_map[name] for name in REQUIRED_COLUMNS}


def split_authors(value: str) -> List[str]:
    return dedupe(name for name in (format_author_name(part) for part in value.split(";")) if name)


def split_emails(value: str) -> List[str]:
    return clean_emails(extract_emails(value))


def pair_authors_and_emails(authors: List[str], emails: List[str]) -> List[Tuple[str, str]]:
    """
    Positional pairing, (author, email). Mismatched counts pair up to the shorter list.
    """
    if not authors or not emails:
        return []
    if len(authors) == len(emails):
        return list(zip(authors, emails))
    if len(authors) == 1:
        return [(authors[0], email) for email in emails]
    if len(emails) == 1:
        return [(authors[0], emails[0])]
    return list(zip(authors, emails))


def parse_mdpi_txt(content: str) -> ParserResult:
    headers, rows = split_tab_rows(content or "")
    columns = locate_columns(headers)

    collector = RecordCollector(SOURCE)
    for row in rows:
        title = trim_trailing_full_stop(row[columns["title"]])
        authors = split_authors(row[columns["author"]])
        emails = split_emails(row[columns["email"]])
        for author, email in pair_authors_and_emails(authors, emails):
            collector.add(title, author, email)

    logger.debug("MDPI: %d rows -> %d records", len(rows), len(collector))
    return ParserResult(records=collector.records, total_processed=len(rows))
