from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Set, Tuple

import pandas as pd


EXPORT_COLUMNS = ["Title", "Author", "Author Email"]


# -------------------- Errors -------------------- #

class ExtractionError(Exception):
    """
    Base class for failures that end a whole parse invocation.
    """


class FormatMismatchError(ExtractionError):
    """
    The file is the wrong shape for the chosen source (missing columns, broken XML, ...).
    """


class UnexpectedParserError(ExtractionError):
    """
    Something broke while parsing. The original exception is chained as __cause__.
    """


# -------------------- Sources -------------------- #

class DataSourceType(Enum):
    EUROPE_PMC = "europepmc"
    PUBMED = "pubmed"
    MDPI = "mdpi"

    @property
    def label(self) -> str:
        return {
            DataSourceType.EUROPE_PMC: "Europe PMC",
            DataSourceType.PUBMED: "PubMed",
            DataSourceType.MDPI: "MDPI",
        }[self]

    @property
    def file_extension(self) -> str:
        return ".xml" if self is DataSourceType.EUROPE_PMC else ".txt"

    @property
    def description(self) -> str:
        return "XML Exports" if self is DataSourceType.EUROPE_PMC else "TXT Exports"

    @classmethod
    def from_name(cls, name: str) -> "DataSourceType":
        """
        Accept the enum value ("pubmed"), the member name ("PUBMED") or the label ("PubMed").
        """
        key = (name or "").strip().lower().replace(" ", "").replace("_", "")
        for member in cls:
            if key in {member.value, member.name.lower().replace("_", ""), member.label.lower().replace(" ", "")}:
                return member
        raise ValueError(f"Unknown data source: {name!r}")


# -------------------- Records -------------------- #

def _new_record_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ExtractedRecord:
    title: str
    author: str
    email: str
    source: str
    id: str = field(default_factory=_new_record_id)

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.title, self.author, self.email)


class RecordCollector:
    """
    Collects the output rows of ONE parse call and drops repeats of (title, author, email).
    """

    def __init__(self, source: str):
        self.source = source
        self.records: List[ExtractedRecord] = []
        self._seen: Set[Tuple[str, str, str]] = set()

    def add(self, title: str, author: str, email: str) -> bool:
        if not title or not author or not email:
            return False
        key = (title, author, email)
        if key in self._seen:
            return False
        self._seen.add(key)
        self.records.append(ExtractedRecord(title=title, author=author, email=email, source=self.source))
        return True

    def __len__(self) -> int:
        return len(self.records)


def records_to_dataframe(records: Iterable[ExtractedRecord]) -> pd.DataFrame:
    rows = [
        {"Title": r.title, "Author": r.author, "Author Email": r.email}
        for r in records
    ]
    return pd.DataFrame.from_records(rows, columns=EXPORT_COLUMNS)


@dataclass
class ParserResult:
    records: List[ExtractedRecord]
    total_processed: int

    def unique_emails(self) -> List[ExtractedRecord]:
        """
        First row for every email address, compared case-insensitively.
        """
        seen: Set[str] = set()
        out: List[ExtractedRecord] = []
        for record in self.records:
            key = record.email.lower()
            if key in seen:
                continue
            seen.add(key)
            out.append(record)
        return out

    def to_dataframe(self, unique: bool = False) -> pd.DataFrame:
        return records_to_dataframe(self.unique_emails() if unique else self.records)


def filter_records(records: Iterable[ExtractedRecord], term: str) -> List[ExtractedRecord]:
    """
    Case-insensitive substring search over title, author and email.
    """
    term = (term or "").strip().lower()
    if not term:
        return list(records)
    return [
        r for r in records
        if term in r.title.lower() or term in r.author.lower() or term in r.email.lower()
    ]
