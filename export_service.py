from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable

from models import ExtractedRecord, records_to_dataframe

logger = logging.getLogger(__name__)

RAW_EXPORT_NAME = "authors_with_title_email.csv"
UNIQUE_EXPORT_NAME = "unique_emails.csv"


def default_export_name(unique: bool = False) -> str:
    return UNIQUE_EXPORT_NAME if unique else RAW_EXPORT_NAME


def export_csv(records: Iterable[ExtractedRecord], output_csv: str | Path) -> Path:
    """
    Write Title / Author / Author Email as CSV.

    - UTF-8 with a leading BOM so Excel keeps non-ASCII names intact
    - every field quoted, embedded quotes doubled
    """
    output_csv = Path(output_csv)
    output_csv.parent.mkdir(exist_ok=True, parents=True)

    df = records_to_dataframe(records)
    df.to_csv(
        output_csv,
        index=False,
        encoding="utf-8-sig",
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
    )
    logger.info("Saved %d rows to %s", len(df), output_csv)
    return output_csv
