from __future__ import annotations

from pathlib import Path

import pandas as pd

from config_loader import load_settings, resolve_export_dir, setup_logging
from export_service import default_export_name, export_csv
from models import DataSourceType, ExtractionError
from parsing import parse_file


def extract_contacts(input_file: str | Path,
                     source: DataSourceType,
                     output_csv: str | Path | None = None,
                     unique: bool = False) -> pd.DataFrame:
    """
    Parse one export file and return Title / Author / Author Email rows as a DataFrame.
    Optionally writes a CSV if output_csv is not None.

    unique=True keeps only the first row per email address.
    """
    result = parse_file(input_file, source)
    df = result.to_dataframe(unique=unique)

    if output_csv is not None:
        records = result.unique_emails() if unique else result.records
        output_csv = export_csv(records, output_csv)
        print(f"Saved extracted contacts to {output_csv} (rows: {len(df)}, source records: {result.total_processed})")

    return df


if __name__ == "__main__":
    import argparse
    import sys

    settings = load_settings()

    parser = argparse.ArgumentParser(description="Extract article title / author / email rows from a bibliographic export.")
    parser.add_argument(
        "input_file",
        help="Path to the export (PubMed .txt, MDPI .txt or Europe PMC .xml).",
    )
    parser.add_argument(
        "-s", "--source",
        choices=[s.value for s in DataSourceType],
        default=settings.default_source.value,
        help=f"Export format (default: {settings.default_source.value})",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Output CSV path (default: <export dir>/authors_with_title_email.csv)",
    )
    parser.add_argument(
        "--unique",
        action="store_true",
        help="Keep only the first row for each email address.",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})",
    )
    args = parser.parse_args()

    setup_logging(args.log_level)
    output = args.output or resolve_export_dir(settings.export_dir) / default_export_name(args.unique)

    try:
        extract_contacts(args.input_file, DataSourceType(args.source), output, unique=args.unique)
    except (ExtractionError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
