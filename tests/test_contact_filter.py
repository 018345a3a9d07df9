import pytest

from contact_filter import (
    clean_emails,
    dedupe,
    extract_electronic_emails,
    extract_emails,
    is_non_author_contact,
)


def test_extract_emails_in_document_order():
    text = "Contact: a.b@uni.edu. Or write to c_d+lab@lab.org;"
    assert extract_emails(text) == ["a.b@uni.edu", "c_d+lab@lab.org"]


def test_extract_emails_empty():
    assert extract_emails("") == []
    assert extract_emails("no address here") == []


def test_electronic_address_takes_last_email_after_marker():
    affiliations = [
        "Dept X, foo@bar.com. Electronic address: jsmith@uni.edu.",
        "No marker here, a@b.com",
    ]
    assert extract_electronic_emails(affiliations) == ["jsmith@uni.edu"]


def test_electronic_address_uses_last_marker():
    aff = "Electronic address: first@x.org. ELECTRONIC ADDRESS: second@y.org."
    assert extract_electronic_emails([aff]) == ["second@y.org"]


def test_electronic_marker_without_email_is_ignored():
    assert extract_electronic_emails(["Electronic address: withheld."]) == []


@pytest.mark.parametrize(
    "email, expected",
    [
        ("journals.permissions@oup.com", True),
        ("permissions@elsevier.com", True),
        ("reprints@journal.org", True),
        ("membership@society.org", True),
        ("epub@publisher.com", True),
        ("editor@benthamscience.net", True),
        ("jane.doe@uni.edu", False),
        ("j.smith@benthamscience.org", False),
    ],
)
def test_is_non_author_contact(email, expected):
    assert is_non_author_contact(email) is expected


def test_clean_emails_trims_filters_and_dedupes():
    emails = [" A@X.org ", "a@x.org", "reprints@x.org", ""]
    assert clean_emails(emails, lowercase=True) == ["a@x.org"]
    assert clean_emails(emails) == ["A@X.org", "a@x.org"]


def test_dedupe_keeps_first_seen_order():
    assert dedupe([3, 1, 3, 2, 1]) == [3, 1, 2]
