import pytest

from models import (
    EXPORT_COLUMNS,
    DataSourceType,
    ExtractedRecord,
    ParserResult,
    RecordCollector,
    filter_records,
)


def record(title, author, email, source="PubMed"):
    return ExtractedRecord(title=title, author=author, email=email, source=source)


def test_collector_drops_repeats_and_empty_values():
    collector = RecordCollector("PubMed")
    assert collector.add("T", "Jane Doe", "jane@x.org")
    assert not collector.add("T", "Jane Doe", "jane@x.org")
    assert not collector.add("T", "", "jane@x.org")
    assert not collector.add("", "Jane Doe", "jane@x.org")
    assert collector.add("T", "John Roe", "jane@x.org")
    assert len(collector) == 2
    assert {r.source for r in collector.records} == {"PubMed"}


def test_record_ids_are_unique():
    collector = RecordCollector("MDPI")
    collector.add("T", "A", "a@x.org")
    collector.add("T", "B", "b@x.org")
    ids = [r.id for r in collector.records]
    assert len(set(ids)) == 2
    assert all(ids)


def test_unique_emails_keeps_first_row_case_insensitively():
    result = ParserResult(
        records=[
            record("T1", "Jane Doe", "Jane@X.org"),
            record("T2", "Jane Doe", "jane@x.org"),
            record("T1", "John Roe", "john@x.org"),
        ],
        total_processed=2,
    )
    assert [(r.title, r.email) for r in result.unique_emails()] == [("T1", "Jane@X.org"), ("T1", "john@x.org")]


def test_to_dataframe_columns():
    result = ParserResult(records=[record("T", "Jane Doe", "jane@x.org")], total_processed=1)
    df = result.to_dataframe()
    assert list(df.columns) == EXPORT_COLUMNS == ["Title", "Author", "Author Email"]
    assert df.iloc[0].tolist() == ["T", "Jane Doe", "jane@x.org"]
    assert list(ParserResult(records=[], total_processed=0).to_dataframe().columns) == EXPORT_COLUMNS


@pytest.mark.parametrize(
    "name, expected",
    [
        ("pubmed", DataSourceType.PUBMED),
        ("PubMed", DataSourceType.PUBMED),
        ("Europe PMC", DataSourceType.EUROPE_PMC),
        ("EUROPE_PMC", DataSourceType.EUROPE_PMC),
        (" mdpi ", DataSourceType.MDPI),
    ],
)
def test_source_from_name(name, expected):
    assert DataSourceType.from_name(name) is expected


def test_source_from_unknown_name():
    with pytest.raises(ValueError):
        DataSourceType.from_name("scopus")


def test_source_file_types():
    assert DataSourceType.EUROPE_PMC.file_extension == ".xml"
    assert DataSourceType.PUBMED.file_extension == ".txt"
    assert DataSourceType.MDPI.description == "TXT Exports"
    assert DataSourceType.EUROPE_PMC.label == "Europe PMC"


def test_filter_records_matches_any_field():
    records = [
        record("Zebrafish fins", "Jane Doe", "jane@x.org"),
        record("Gene X", "John Roe", "john@lab.org"),
    ]
    assert filter_records(records, "ZEBRA") == records[:1]
    assert filter_records(records, "roe") == records[1:]
    assert filter_records(records, "lab.org") == records[1:]
    assert filter_records(records, "  ") == records
    assert filter_records(records, "nothing") == []
