import pytest

from mdpi_parser import (
    locate_columns,
    pair_authors_and_emails,
    parse_mdpi_txt,
    split_authors,
    split_tab_rows,
)
from models import FormatMismatchError


def rows(result):
    return [(r.title, r.author, r.email) for r in result.records]


def test_pairs_authors_and_emails_by_index():
    content = "Title\tAuthor\tEmail\nPaper A\tJane Doe; John Roe\tjane@x.com; john@x.com\n"
    result = parse_mdpi_txt(content)
    assert rows(result) == [
        ("Paper A", "Jane Doe", "jane@x.com"),
        ("Paper A", "John Roe", "john@x.com"),
    ]
    assert result.total_processed == 1
    assert {r.source for r in result.records} == {"MDPI"}


def test_title_with_embedded_line_break_stays_one_row():
    content = "Title\tAuthor\tEmail\nA long title\nthat wraps.\tJane Doe\tjane@x.com\n"
    result = parse_mdpi_txt(content)
    assert result.total_processed == 1
    assert rows(result) == [("A long title that wraps", "Jane Doe", "jane@x.com")]


def test_extra_delimiters_are_folded_into_last_column():
    headers, parsed = split_tab_rows("Author\tEmail\tTitle\nJane Doe\tjane@x.com\tPart one\tpart two\n")
    assert headers == ["Author", "Email", "Title"]
    assert parsed == [["Jane Doe", "jane@x.com", "Part one\tpart two"]]


def test_header_lookup_ignores_case_and_whitespace():
    assert locate_columns(["  Author  ", "EMAIL", "Title ", "Journal"]) == {"author": 0, "email": 1, "title": 2}


def test_missing_required_column_is_a_format_mismatch():
    with pytest.raises(FormatMismatchError, match="Missing required MDPI columns"):
        parse_mdpi_txt("Title\tAuthor\nPaper A\tJane Doe\n")


def test_empty_file_is_a_format_mismatch():
    with pytest.raises(FormatMismatchError):
        parse_mdpi_txt("\n  \n")


def test_rows_without_output_still_count():
    content = (
        "Title\tAuthor\tEmail\n"
        "\n"
        "Paper A\tJane Doe\t\n"
        "Paper B\tDoe, Jane; Roe, John\tjane@x.com\n"
        "\tJohn Roe\tjohn@x.com\n"
    )
    result = parse_mdpi_txt(content)
    assert result.total_processed == 3
    assert rows(result) == [("Paper B", "Jane Doe", "jane@x.com")]


def test_repeated_rows_are_deduplicated():
    line = "Paper A\tJane Doe\tjane@x.com\n"
    result = parse_mdpi_txt("Title\tAuthor\tEmail\n" + line + line)
    assert result.total_processed == 2
    assert len(result.records) == 1


def test_split_authors_formats_and_dedupes():
    assert split_authors("Doe, Jane; Roe, John; Doe, Jane;") == ["Jane Doe", "John Roe"]


@pytest.mark.parametrize(
    "authors, emails, expected",
    [
        (["A", "B"], ["a@x", "b@x"], [("A", "a@x"), ("B", "b@x")]),
        (["A"], ["a@x", "a2@x"], [("A", "a@x"), ("A", "a2@x")]),
        (["A", "B", "C"], ["a@x"], [("A", "a@x")]),
        (["A", "B", "C"], ["a@x", "b@x"], [("A", "a@x"), ("B", "b@x")]),
        (["A", "B"], ["a@x", "b@x", "c@x"], [("A", "a@x"), ("B", "b@x")]),
        ([], ["a@x"], []),
        (["A"], [], []),
    ],
)
def test_pair_authors_and_emails(authors, emails, expected):
    assert pair_authors_and_emails(authors, emails) == expected


def test_publisher_contact_addresses_are_dropped():
    content = "Title\tAuthor\tEmail\nPaper A\tJane Doe; John Roe\tpermissions@mdpi.com; john@x.com\n"
    result = parse_mdpi_txt(content)
    assert all("permissions" not in r.email for r in result.records)
    assert rows(result) == [("Paper A", "Jane Doe", "john@x.com")]
