import asyncio
import logging

import pytest

import parsing
from models import DataSourceType, FormatMismatchError, UnexpectedParserError
from parsing import (
    parse_europepmc_xml_async,
    parse_file,
    parse_mdpi_txt_async,
    parse_pubmed_txt_async,
    read_export,
    run_parser,
)

MDPI_CONTENT = "Title\tAuthor\tEmail\nPaper A\tJane Doe; John Roe\tjane@x.com; john@x.com\n"


def test_async_entry_points_return_results():
    pubmed = asyncio.run(parse_pubmed_txt_async("TI  - Gene X.\nFAU - Smith, John\nAD  - jsmith@uni.edu\n"))
    mdpi = asyncio.run(parse_mdpi_txt_async(MDPI_CONTENT))
    assert len(pubmed.records) == 1
    assert len(mdpi.records) == 2


def test_format_mismatch_passes_through_unchanged():
    with pytest.raises(FormatMismatchError):
        asyncio.run(parse_mdpi_txt_async("Title\tAuthor\nPaper A\tJane Doe\n"))
    with pytest.raises(FormatMismatchError):
        asyncio.run(parse_europepmc_xml_async("<broken"))


def test_unexpected_errors_are_wrapped_and_logged(monkeypatch, caplog):
    def boom(content):
        raise RuntimeError("parser bug")

    monkeypatch.setitem(parsing.PARSERS, DataSourceType.PUBMED, boom)

    with caplog.at_level(logging.ERROR, logger="parsing"):
        with pytest.raises(UnexpectedParserError) as excinfo:
            asyncio.run(run_parser(DataSourceType.PUBMED, "anything"))

    assert str(excinfo.value) == parsing.UNEXPECTED_ERROR_MESSAGE
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert "Unexpected error while parsing PubMed export" in caplog.text


def test_run_parser_dispatches_on_source():
    result = asyncio.run(run_parser(DataSourceType.MDPI, MDPI_CONTENT))
    assert {r.source for r in result.records} == {"MDPI"}


def test_parse_file_reads_bom_encoded_export(tmp_path):
    path = tmp_path / "mdpi.txt"
    path.write_bytes(MDPI_CONTENT.encode("utf-8-sig"))
    result = parse_file(path, DataSourceType.MDPI)
    assert [r.author for r in result.records] == ["Jane Doe", "John Roe"]
    assert result.total_processed == 1


def test_read_export_replaces_undecodable_bytes(tmp_path):
    path = tmp_path / "bad.txt"
    path.write_bytes(b"abc\xffdef")
    assert read_export(path) == "abc\ufffddef"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_file(tmp_path / "nope.txt", DataSourceType.PUBMED)
