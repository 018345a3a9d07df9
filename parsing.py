"""
Entry points for callers: one awaitable per source, plus sync wrappers for scripts.

The parsers themselves are plain synchronous functions. The async versions
only move the work off the event loop (asyncio.to_thread) and put a single
error boundary around it:

    FormatMismatchError   -> re-raised as is ("your file is the wrong shape")
    anything else         -> logged, re-raised as UnexpectedParserError
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Dict

from europepmc_parser import parse_europepmc_xml
from mdpi_parser import parse_mdpi_txt
from models import DataSourceType, FormatMismatchError, ParserResult, UnexpectedParserError
from pubmed_parser import parse_pubmed_txt

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred during parsing."

PARSERS: Dict[DataSourceType, Callable[[str], ParserResult]] = {
    DataSourceType.EUROPE_PMC: parse_europepmc_xml,
    DataSourceType.PUBMED: parse_pubmed_txt,
    DataSourceType.MDPI: parse_mdpi_txt,
}


async def _run_parser(parse: Callable[[str], ParserResult], content: str, label: str) -> ParserResult:
    try:
        return await asyncio.to_thread(parse, content)
    except FormatMismatchError:
        raise
    except Exception as e:
        logger.exception("Unexpected error while parsing %s export", label)
        raise UnexpectedParserError(UNEXPECTED_ERROR_MESSAGE) from e


async def parse_pubmed_txt_async(content: str) -> ParserResult:
    return await _run_parser(parse_pubmed_txt, content, DataSourceType.PUBMED.label)


async def parse_mdpi_txt_async(content: str) -> ParserResult:
    return await _run_parser(parse_mdpi_txt, content, DataSourceType.MDPI.label)


async def parse_europepmc_xml_async(content: str) -> ParserResult:
    return await _run_parser(parse_europepmc_xml, content, DataSourceType.EUROPE_PMC.label)


async def run_parser(source: DataSourceType, content: str) -> ParserResult:
    """
    Dispatch on the source the user picked.
    """
    return await _run_parser(PARSERS[source], content, source.label)


def read_export(path: str | Path) -> str:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    # utf-8-sig swallows a leading BOM; bad bytes become U+FFFD instead of failing
    return path.read_text(encoding="utf-8-sig", errors="replace")


def parse_file(path: str | Path, source: DataSourceType) -> ParserResult:
    """
    Synchronous wrapper for scripts and the GUI worker thread.
    """
    content = read_export(path)
    result = asyncio.run(run_parser(source, content))
    logger.info(
        "Parsed %s as %s: %d source records, %d rows",
        Path(path).name, source.label, result.total_processed, len(result.records),
    )
    return result
