"""
PubMed exports -> (title, author, email) rows.

Two dialects come out of PubMed's "Save" menu:

  * MEDLINE format: one field per line as "TAG - value", long values wrapped
    onto indented continuation lines, records separated by "PMID- ".
  * Abstract (text) format: free text with headings such as "Title:",
    "Authors:", "Author information:" and a trailing "PMID: 123" line.

parse_pubmed_txt() picks the dialect automatically.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from author_matching import AuthorCandidate, assign_emails, format_author_name, owners_by_email
from contact_filter import clean_emails, dedupe, extract_electronic_emails, extract_emails
from models import ParserResult, RecordCollector
from text_normalization import normalize_extracted_text, split_lines, trim_trailing_full_stop

logger = logging.getLogger(__name__)

SOURCE = "PubMed"

MEDLINE_SIGNATURE_RE = re.compile(r"^(?:PMID- |[A-Z]{2,4}\s{2}- )", re.MULTILINE)
TAG_LINE_RE = re.compile(r"^([A-Z]{2,4})\s*-\s*(.*)$")
CONTINUATION_RE = re.compile(r"^\s+\S")
RECORD_START = "PMID-"


def is_medline(content: str) -> bool:
    return bool(MEDLINE_SIGNATURE_RE.search(content or ""))


# -------------------- MEDLINE working state -------------------- #

class TagState(Enum):
    TI = "TI"    # title
    FAU = "FAU"  # full author name
    AU = "AU"    # short author name
    AD = "AD"    # affiliation


# Every other tag (PMID, AB, JT, LA, ...) maps to None and is skipped.
TAG_TRANSITIONS: Dict[str, TagState] = {state.value: state for state in TagState}


@dataclass
class AuthorEntry:
    name: str
    short_names: List[str] = field(default_factory=list)
    affiliations: List[str] = field(default_factory=list)


@dataclass
class MedlineRecord:
    title_parts: List[str] = field(default_factory=list)
    authors: List[AuthorEntry] = field(default_factory=list)
    current_author: Optional[AuthorEntry] = None
    current_tag: Optional[TagState] = None

    def has_content(self) -> bool:
        return bool(self.title_parts or self.authors)

    def open_field(self, state: TagState, value: str) -> None:
        self.current_tag = state

        if state is TagState.TI:
            self.title_parts.append(value)

        elif state is TagState.FAU:
            self.current_author = AuthorEntry(name=value)
            self.authors.append(self.current_author)

        elif state is TagState.AU:
            # AU right after its FAU is the short form of the same author;
            # otherwise (AU-only listings) it is an author of its own.
            if self.current_author is not None and not self.current_author.short_names:
                self.current_author.short_names.append(value)
            else:
                self.current_author = AuthorEntry(name=value, short_names=[value])
                self.authors.append(self.current_author)

        elif state is TagState.AD:
            if self.current_author is not None:
                self.current_author.affiliations.append(value)

    def continue_field(self, text: str) -> None:
        state = self.current_tag
        author = self.current_author

        if state is TagState.TI and self.title_parts:
            self.title_parts[-1] = _join(self.title_parts[-1], text)
        elif state is TagState.FAU and author is not None:
            author.name = _join(author.name, text)
        elif state is TagState.AU and author is not None:
            if author.short_names:
                author.short_names[-1] = _join(author.short_names[-1], text)
            else:
                author.short_names.append(text)
        elif state is TagState.AD and author is not None:
            if author.affiliations:
                author.affiliations[-1] = _join(author.affiliations[-1], text)
            else:
                author.affiliations.append(text)


def _join(head: str, tail: str) -> str:
    return f"{head} {tail}".strip()


# -------------------- MEDLINE flush -------------------- #

def _flush_medline_record(record: MedlineRecord, collector: RecordCollector) -> None:
    title = trim_trailing_full_stop(" ".join(record.title_parts))
    if not title:
        return

    candidates: List[AuthorCandidate] = []
    emails_by_author: Dict[int, List[str]] = {}
    strict_emails: Set[str] = set()

    for entry in record.authors:
        name = format_author_name(entry.name)
        if not name:
            continue

        short_names = dedupe(s for s in (normalize_extracted_text(v) for v in entry.short_names) if s)
        electronic = extract_electronic_emails(entry.affiliations)
        if electronic:
            emails = clean_emails(electronic, lowercase=True)
            strict_emails.update(emails)
        else:
            emails = clean_emails(extract_emails(" ".join(entry.affiliations)), lowercase=True)

        emails_by_author[len(candidates)] = emails
        candidates.append(AuthorCandidate(name=name, short_names=short_names))

    if not candidates:
        return

    owners = owners_by_email(emails_by_author)
    pairs = assign_emails(list(owners), candidates, strict_emails=strict_emails, owners=owners)
    for email, author in pairs:
        collector.add(title, author, email)


def parse_medline(content: str) -> ParserResult:
    collector = RecordCollector(SOURCE)
    total_processed = 0
    record = MedlineRecord()

    def flush() -> None:
        nonlocal record, total_processed
        if record.has_content():
            total_processed += 1
            _flush_medline_record(record, collector)
        record = MedlineRecord()

    for line in split_lines(content):
        if line.startswith(RECORD_START) and record.has_content():
            flush()

        m = TAG_LINE_RE.match(line)
        if m:
            tag, value = m.group(1), m.group(2).strip()
            state = TAG_TRANSITIONS.get(tag)
            if state is TagState.TI and record.has_content():
                flush()
            if state is None:
                record.current_tag = None
            else:
                record.open_field(state, value)
            continue

        if record.current_tag is not None and CONTINUATION_RE.match(line):
            record.continue_field(line.strip())
            continue

        # affiliation blocks sometimes wrap without indentation
        untagged = line.strip()
        if record.current_tag is TagState.AD and record.current_author is not None and untagged:
            record.continue_field(untagged)

    flush()

    logger.debug("MEDLINE: %d records -> %d rows", total_processed, len(collector))
    return ParserResult(records=collector.records, total_processed=total_processed)


# -------------------- Abstract (free text) format -------------------- #

HEADING_SECTIONS = {
    "title": "title",
    "author": "authors",
    "authors": "authors",
    "author information": "affiliations",
    "affiliation": "affiliations",
    "affiliations": "affiliations",
    "correspondence": "affiliations",
}

INLINE_HEADING_RE = re.compile(
    r"^(title|authors?|author information|affiliations?|correspondence):\s*(.*)$",
    re.IGNORECASE,
)
PMID_LINE_RE = re.compile(r"^PMID:\s*\d+", re.IGNORECASE)
ET_AL_RE = re.compile(r"\bet al\.?", re.IGNORECASE)
AUTHOR_SPLIT_RE = re.compile(r"(?:;|,|\band\b)\s*", re.IGNORECASE)


def split_author_list(author_text: str) -> List[str]:
    if not author_text:
        return []
    cleaned = normalize_extracted_text(re.sub(r"\.$", "", ET_AL_RE.sub("", author_text)))
    return [item.strip() for item in AUTHOR_SPLIT_RE.split(cleaned) if len(item.strip()) > 1]


@dataclass
class AbstractRecord:
    title_parts: List[str] = field(default_factory=list)
    author_lines: List[str] = field(default_factory=list)
    affiliation_lines: List[str] = field(default_factory=list)
    record_lines: List[str] = field(default_factory=list)
    section: Optional[str] = None

    def has_content(self) -> bool:
        return bool(self.title_parts or self.author_lines or self.affiliation_lines)

    def add_to_section(self, value: str) -> None:
        if self.section == "title":
            self.title_parts.append(value)
        elif self.section == "authors":
            self.author_lines.append(value)
        elif self.section == "affiliations":
            self.affiliation_lines.append(value)


def _flush_abstract_record(record: AbstractRecord, collector: RecordCollector) -> None:
    title = normalize_extracted_text(" ".join(record.title_parts))
    authors = dedupe(
        name for name in (format_author_name(a) for a in split_author_list(" ".join(record.author_lines))) if name
    )
    if not title or not authors:
        return

    electronic = extract_electronic_emails(record.affiliation_lines)
    if electronic:
        emails = electronic
    else:
        emails = extract_emails(" ".join(record.affiliation_lines)) or extract_emails(" ".join(record.record_lines))

    pairs = assign_emails(
        emails,
        [AuthorCandidate(name=a) for a in authors],
        strict=bool(electronic),
    )
    for email, author in pairs:
        collector.add(title, author, email)


def parse_abstract_text(content: str) -> ParserResult:
    collector = RecordCollector(SOURCE)
    total_processed = 0
    record = AbstractRecord()

    def flush() -> None:
        nonlocal record, total_processed
        if record.has_content():
            total_processed += 1
            _flush_abstract_record(record, collector)
        record = AbstractRecord()

    for line in split_lines(content):
        trimmed = line.strip()
        if not trimmed:
            continue

        m = INLINE_HEADING_RE.match(trimmed)
        if m:
            section = HEADING_SECTIONS[m.group(1).lower()]
            if section == "title" and record.has_content():
                flush()
            record.section = section
            value = m.group(2).strip()
            if value:
                record.add_to_section(value)
            continue

        heading = HEADING_SECTIONS.get(trimmed.rstrip(":").strip().lower())
        if heading:
            if heading == "title" and record.has_content():
                flush()
            record.section = heading
            continue

        if PMID_LINE_RE.match(trimmed) and record.has_content():
            record.record_lines.append(trimmed)
            flush()
            continue

        record.record_lines.append(trimmed)
        record.add_to_section(trimmed)

    flush()

    logger.debug("Abstract text: %d records -> %d rows", total_processed, len(collector))
    return ParserResult(records=collector.records, total_processed=total_processed)


def parse_pubmed_txt(content: str) -> ParserResult:
    content = content or ""
    if is_medline(content):
        return parse_medline(content)
    return parse_abstract_text(content)
