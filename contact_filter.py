from __future__ import annotations

import re
from typing import Iterable, List, TypeVar


T = TypeVar("T")

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Desk addresses that show up in affiliation blocks but never belong to an author
NON_AUTHOR_LOCAL_RE = re.compile(r"(?:permissions?|reprints?|membership|epub)", re.IGNORECASE)
NON_AUTHOR_DOMAIN_RE = re.compile(r"(?:benthamscience\.net)$", re.IGNORECASE)

ELECTRONIC_ADDRESS_MARKER = "electronic address"


def dedupe(items: Iterable[T]) -> List[T]:
    """
    Drop repeats, keep first-seen order.
    """
    return list(dict.fromkeys(items))


def extract_emails(text: str) -> List[str]:
    if not text:
        return []
    return EMAIL_RE.findall(text)


def extract_electronic_emails(affiliations: Iterable[str]) -> List[str]:
    """
    PubMed appends "Electronic address: x@y.z" to the affiliation of the author who owns x@y.z.
    For every affiliation with that marker, take the last email after the last marker.
    """
    emails: List[str] = []
    for aff in affiliations:
        idx = aff.lower().rfind(ELECTRONIC_ADDRESS_MARKER)
        if idx == -1:
            continue
        found = extract_emails(aff[idx:])
        if found:
            emails.append(found[-1])
    return emails


def is_non_author_contact(email: str) -> bool:
    local, _, domain = email.lower().partition("@")
    if NON_AUTHOR_DOMAIN_RE.search(domain):
        return True
    if "journals.permissions" in local:
        return True
    return bool(NON_AUTHOR_LOCAL_RE.search(local))


def clean_emails(emails: Iterable[str], lowercase: bool = False) -> List[str]:
    """
    Trim, optionally lowercase, drop empties and non-author desks, dedupe.
    """
    out = []
    for email in emails:
        email = (email or "").strip()
        if lowercase:
            email = email.lower()
        if email and not is_non_author_contact(email):
            out.append(email)
    return dedupe(out)
