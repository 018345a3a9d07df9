"""
Author <-> email matching.

Bibliographic exports list several authors and several emails per article
without saying which email belongs to whom. We score every (email, author)
pair with a fixed list of heuristic rules built around how institutions form
mail addresses (jsmith@, smith.j@, john.smith@, smithj@, jds@, ...) and then
hand each email to its best-scoring author.

A score of 0 means "no evidence", not "weak evidence".
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Callable, Collection, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from contact_filter import clean_emails
from text_normalization import normalize_extracted_text

logger = logging.getLogger(__name__)

NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
NON_ALPHA_RE = re.compile(r"[^a-z]+")


# -------------------- Name handling -------------------- #

def format_author_name(raw: str) -> str:
    """
    "Smith, John A." -> "John A Smith"-style "Given Names Surname" form.
    Names without a comma are only cleaned.
    """
    cleaned = normalize_extracted_text(re.sub(r"\.$", "", (raw or "").strip()))
    last, comma, rest = cleaned.partition(",")
    if comma:
        last, rest = last.strip(), rest.strip()
        if last and rest:
            return normalize_extracted_text(f"{rest} {last}")
    return cleaned


def _fold(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value or "")
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def normalize_for_match(value: str) -> str:
    return NON_ALNUM_RE.sub("", _fold(value))


def alnum_tokens(value: str) -> List[str]:
    return [t for t in NON_ALNUM_RE.split(_fold(value)) if t]


def alpha_tokens(value: str) -> List[str]:
    """
    Letters only; digits split tokens too ("jsmith2lab" -> ["jsmith", "lab"]).
    """
    return [t for t in NON_ALPHA_RE.split(_fold(value)) if t]


@dataclass(frozen=True)
class NameSignals:
    surname: str
    given_names: Tuple[str, ...]
    given_initials: str
    all_initials: str

    @classmethod
    def from_full_name(cls, full_name: str) -> "NameSignals":
        parts = [normalize_for_match(p) for p in (full_name or "").split(" ")]
        parts = [p for p in parts if p]
        surname = parts[-1] if parts else ""
        given = tuple(parts[:-1])
        return cls(
            surname=surname,
            given_names=given,
            given_initials="".join(p[0] for p in given),
            all_initials="".join(p[0] for p in parts),
        )


@dataclass(frozen=True)
class ShortNameSignals:
    """
    MEDLINE AU form, e.g. "Smith JA": surname first, then initials.
    """
    compact: str
    surname: str
    initials: str

    @classmethod
    def from_short_name(cls, short_name: str) -> "ShortNameSignals":
        tokens = alpha_tokens(short_name)
        return cls(
            compact="".join(tokens),
            surname=tokens[0] if tokens else "",
            initials="".join(tokens[1:]),
        )

    @property
    def initials_surname(self) -> str:
        return f"{self.initials}{self.surname}" if self.initials and self.surname else ""

    @property
    def surname_initials(self) -> str:
        return f"{self.surname}{self.initials}" if self.initials and self.surname else ""


# -------------------- Scoring rules -------------------- #

@dataclass(frozen=True)
class ScoringRule:
    """
    One heuristic: if predicate(token, name) holds, the pair scores at least `score`.
    """
    name: str
    score: int
    predicate: Callable[[str, NameSignals], bool]


@dataclass(frozen=True)
class ShortNameRule:
    """
    Same idea, but tested against the whole alphanumeric local part and one short name.
    """
    name: str
    score: int
    predicate: Callable[[str, ShortNameSignals], bool]


SCORING_RULES: Tuple[ScoringRule, ...] = (
    ScoringRule("surname_exact", 120,
                lambda t, n: bool(n.surname) and t == n.surname),
    ScoringRule("token_starts_with_surname", 110,
                lambda t, n: bool(n.surname) and t.startswith(n.surname)),
    ScoringRule("token_ends_with_surname", 105,
                lambda t, n: bool(n.surname) and t.endswith(n.surname)),
    ScoringRule("truncated_surname", 95,
                lambda t, n: len(t) >= 4 and n.surname.startswith(t)),
    ScoringRule("token_inside_surname", 90,
                lambda t, n: len(t) >= 4 and t in n.surname),
    ScoringRule("surname_inside_token", 90,
                lambda t, n: len(n.surname) >= 4 and n.surname in t),
    ScoringRule("given_name", 85,
                lambda t, n: t in n.given_names),
    ScoringRule("all_initials", 108,
                lambda t, n: len(t) >= 2 and t == n.all_initials),
    ScoringRule("initials_surname", 112,
                lambda t, n: bool(n.given_initials and n.surname) and t == n.given_initials + n.surname),
    ScoringRule("surname_initials", 110,
                lambda t, n: bool(n.given_initials and n.surname) and t == n.surname + n.given_initials),
    ScoringRule("first_initial_surname", 111,
                lambda t, n: bool(n.given_initials and n.surname) and t == n.given_initials[0] + n.surname),
)

SHORT_NAME_RULES: Tuple[ShortNameRule, ...] = (
    ShortNameRule("short_compact", 114,
                  lambda local, s: bool(s.compact) and s.compact in local),
    ShortNameRule("short_initials", 102,
                  lambda local, s: len(s.initials) >= 2 and s.initials in local),
    ShortNameRule("short_initials_surname", 116,
                  lambda local, s: bool(s.initials_surname) and s.initials_surname in local),
    ShortNameRule("short_surname_initials", 113,
                  lambda local, s: bool(s.surname_initials) and s.surname_initials in local),
)


def local_part(email: str) -> str:
    return (email or "").split("@", 1)[0]


def local_tokens(email: str) -> List[str]:
    """
    Alphanumeric tokens first, then letter-only runs, without repeats.
    """
    local = local_part(email)
    return list(dict.fromkeys(alnum_tokens(local) + alpha_tokens(local)))


def matching_rules(email: str, author_name: str, short_names: Iterable[str] = ()) -> List[Tuple[str, int]]:
    """
    Every rule that fires for this pair, in rule order. Handy when tuning rules.
    """
    name = NameSignals.from_full_name(author_name)
    tokens = local_tokens(email)
    fired: List[Tuple[str, int]] = []

    for rule in SCORING_RULES:
        if any(rule.predicate(token, name) for token in tokens):
            fired.append((rule.name, rule.score))

    local = normalize_for_match(local_part(email))
    shorts = [ShortNameSignals.from_short_name(s) for s in short_names]
    for rule in SHORT_NAME_RULES:
        if any(rule.predicate(local, s) for s in shorts):
            fired.append((rule.name, rule.score))

    return fired


def score_author_email(email: str, author_name: str, short_names: Iterable[str] = ()) -> int:
    return max((score for _, score in matching_rules(email, author_name, short_names)), default=0)


# -------------------- Record-level assignment -------------------- #

@dataclass
class AuthorCandidate:
    name: str
    short_names: List[str] = field(default_factory=list)


def _best_author(
    email: str,
    authors: Sequence[AuthorCandidate],
    pool: List[int],
    email_owners: Collection[int],
) -> Optional[int]:
    best_index: Optional[int] = None
    best_key = (0, False)
    for index in pool:
        author = authors[index]
        score = score_author_email(email, author.name, author.short_names)
        if score <= 0:
            continue
        key = (score, index in email_owners)
        if key > best_key:
            best_key = key
            best_index = index
    return best_index


def assign_emails(
    emails: Iterable[str],
    authors: Sequence[AuthorCandidate],
    strict: bool = False,
    strict_emails: Collection[str] = (),
    owners: Optional[Mapping[str, Collection[int]]] = None,
) -> List[Tuple[str, str]]:
    """
    Give each email of one record to at most one author. Returns (email, author name) pairs.

    Order of precedence per email:
      1. best positive score among authors that have not claimed an email yet
      2. the single author whose affiliation block the email came from (owners)
      3. same list position, when there are as many emails as authors
      4. the only author of the record
      5. first unclaimed author, unless the email is strict (then it is dropped)
    """
    cleaned = clean_emails(emails)
    if not cleaned or not authors:
        return []

    owners = owners or {}
    pool = list(range(len(authors)))
    positional = len(cleaned) == len(authors)
    pairs: List[Tuple[str, str]] = []

    for position, email in enumerate(cleaned):
        email_owners = owners.get(email, ())
        index = _best_author(email, authors, pool, email_owners)

        if index is None and len(email_owners) == 1:
            index = next(iter(email_owners))
        if index is None and positional and position in pool:
            index = position
        if index is None and len(authors) == 1:
            index = 0
        if index is None and not (strict or email in strict_emails):
            index = pool[0] if pool else 0

        if index is None:
            logger.debug("Dropping %s: no author match under strict matching", email)
            continue

        if index in pool:
            pool.remove(index)
        pairs.append((email, authors[index].name))

    return pairs


def owners_by_email(candidates: Mapping[int, Iterable[str]]) -> Dict[str, List[int]]:
    """
    {author index: emails found in that author's block} -> {email: [author indices]}
    """
    out: Dict[str, List[int]] = {}
    for index, emails in candidates.items():
        for email in emails:
            out.setdefault(email, [])
            if index not in out[email]:
                out[email].append(index)
    return out
