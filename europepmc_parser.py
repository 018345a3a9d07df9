"""
Europe PMC XML result list -> (title, author, email) rows.

    <resultList>
      <result>
        <title>...</title>
        <authorList>
          <author>
            <firstName>..</firstName><lastName>..</lastName>
            <authorAffiliationDetailsList>
              <authorAffiliation><affiliation>... x@y.z</affiliation></authorAffiliation>
            ...

Affiliations are already scoped to one author here, so every email found in
an author's affiliations is that author's email.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from lxml import etree

from contact_filter import clean_emails, dedupe, extract_emails
from models import FormatMismatchError, ParserResult, RecordCollector
from text_normalization import normalize_extracted_text

logger = logging.getLogger(__name__)

SOURCE = "Europe PMC"
CONTAINER_TAGS = ("result", "article")
AUTHOR_TAG = "author"


def local_name(element) -> str:
    """
    Tag name without namespace; "" for comments and processing instructions.
    """
    if not isinstance(element.tag, str):
        return ""
    return etree.QName(element).localname


def text_content(element) -> str:
    return "".join(element.itertext()).strip()


def parse_xml(content: str):
    parser = etree.XMLParser(
        encoding="utf-8",
        resolve_entities=False,
        no_network=True,
        huge_tree=True,
        remove_comments=True,
    )
    data = (content or "").lstrip("\ufeff").encode("utf-8")
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as e:
        raise FormatMismatchError("Invalid XML format or file is corrupted.") from e
    if root is None:
        raise FormatMismatchError("Invalid XML format or file is corrupted.")
    return root


def find_containers(root) -> list:
    for tag in CONTAINER_TAGS:
        found = [el for el in root.iter() if local_name(el) == tag]
        if found:
            return found
    return []


def find_title(container) -> Optional[str]:
    for el in container.iterdescendants():
        if "title" in local_name(el).lower():
            text = normalize_extracted_text(text_content(el))
            if text:
                return text
    return None


def read_author(author):
    """
    Return (full name, [affiliations]) or None when a name part or affiliation is missing.
    """
    first_name = last_name = None
    affiliations: List[str] = []

    for el in author.iterdescendants():
        tag = local_name(el).lower()
        text = text_content(el)
        if not text:
            continue
        if tag.endswith("firstname"):
            first_name = text
        elif tag.endswith("lastname"):
            last_name = text
        elif tag.endswith("affiliation"):
            affiliations.append(text)

    if not (first_name and last_name and affiliations):
        return None
    return normalize_extracted_text(f"{first_name} {last_name}"), dedupe(affiliations)


def parse_europepmc_xml(content: str) -> ParserResult:
    root = parse_xml(content)
    containers = find_containers(root)
    collector = RecordCollector(SOURCE)

    for container in containers:
        authors = [el for el in container.iterdescendants() if local_name(el) == AUTHOR_TAG]
        if not authors:
            continue

        title = find_title(container)
        if not title:
            continue

        for author in authors:
            parsed = read_author(author)
            if parsed is None:
                continue
            full_name, affiliations = parsed
            for aff in affiliations:
                for email in clean_emails(extract_emails(aff)):
                    collector.add(title, full_name, email)

    logger.debug("Europe PMC: %d containers -> %d rows", len(containers), len(collector))
    return ParserResult(records=collector.records, total_processed=len(containers))
