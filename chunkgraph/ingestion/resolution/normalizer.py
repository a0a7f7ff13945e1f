"""
Entity Normalization

Type-aware canonicalization of surface names into comparison keys, plus
alias generation for the types where naming conventions are predictable.

Normalization:
    1. Lowercase, trim, collapse internal whitespace
    2. Type-specific canonicalization:
        - Url: strip scheme, "www." and trailing slashes
        - Email: lowercase only
        - Phone: digits only
        - Money: strip currency symbols and thousands separators
        - Percent: strip "%"
        - everything else: generic step only
    3. Repeat until the result stops changing, so normalize is idempotent

Aliases:
    - Person: "First Last" -> "Last, First", "F. Last"
              "First Middle Last" -> "First Last", "F. M. Last", "Last, First Middle"
    - Organization: legal suffix stripped, suffix spelled the other ways
      ("Corp." <-> "Corporation"), acronym for 2-5 words
    - Keyword: naive singular/plural variant
"""

from __future__ import annotations

import re

from chunkgraph.types.entities import EntityType
from chunkgraph.utils.text import collapse_whitespace

_URL_PREFIX = re.compile(r"^(?:\s*(?:[a-z][a-z0-9+.\-]*://|www\.))+")
_URL_TRAILING = re.compile(r"[\s/]+$")
_NON_DIGIT = re.compile(r"\D")
_CURRENCY = re.compile(r"[$€£¥₹,]")

# Each family lists interchangeable spellings of one legal form, longest first
_LEGAL_SUFFIX_FAMILIES: tuple[tuple[str, ...], ...] = (
    ("Corporation", "Corp.", "Corp"),
    ("Incorporated", "Inc.", "Inc"),
    ("Limited", "Ltd.", "Ltd"),
    ("LLC", "L.L.C."),
    ("Company", "Co."),
)

_MAX_PASSES = 8


def _canonicalize(text: str, entity_type: EntityType) -> str:
    text = collapse_whitespace(text.lower())

    if entity_type == EntityType.URL:
        text = _URL_PREFIX.sub("", text)
        text = _URL_TRAILING.sub("", text)
    elif entity_type == EntityType.PHONE:
        text = _NON_DIGIT.sub("", text)
    elif entity_type == EntityType.MONEY:
        text = _CURRENCY.sub("", text)
    elif entity_type == EntityType.PERCENT:
        text = text.replace("%", "")
    # Email is case-insensitive: the generic lowercase step covers it

    return collapse_whitespace(text)


def normalize_name(name: str, entity_type: EntityType) -> str:
    """
    Normalize an entity name for comparison.

    Args:
        name: Surface name
        entity_type: Entity classification

    Returns:
        Canonical key; "" for empty or whitespace-only input
    """
    if not name or not name.strip():
        return ""

    current = name
    for _ in range(_MAX_PASSES):
        following = _canonicalize(current, entity_type)
        if following == current:
            break
        current = following
    return current


def _person_aliases(name: str) -> list[str]:
    parts = name.split()
    if len(parts) == 2:
        first, last = parts
        return [f"{last}, {first}", f"{first[0]}. {last}"]
    if len(parts) == 3:
        first, middle, last = parts
        return [
            f"{first} {last}",
            f"{first[0]}. {middle[0]}. {last}",
            f"{last}, {first} {middle}",
        ]
    return []


def _organization_aliases(name: str) -> list[str]:
    aliases: list[str] = []
    stripped = name.strip()

    for family in _LEGAL_SUFFIX_FAMILIES:
        matched = None
        for suffix in family:
            pattern = r"(?:^|[\s,]+)" + re.escape(suffix) + r"$"
            match = re.search(pattern, stripped, flags=re.IGNORECASE)
            if match:
                matched = match
                break
        if matched is None:
            continue
        base = stripped[: matched.start()].strip().rstrip(",.").strip()
        if base:
            aliases.append(base)
            aliases.extend(f"{base} {variant}" for variant in family)
        break

    words = stripped.split()
    if 2 <= len(words) <= 5:
        acronym = "".join(word[0].upper() for word in words if word[0].isalnum())
        if len(acronym) >= 2:
            aliases.append(acronym)

    return aliases


def _keyword_aliases(name: str) -> list[str]:
    word = name.strip()
    lower = word.lower()
    if lower.endswith("ies") and len(word) > 3:
        return [word[:-3] + "y"]  # cities -> city
    if lower.endswith(("ses", "xes", "zes", "ches", "shes")):
        return [word[:-2]]  # boxes -> box
    if lower.endswith("s") and not lower.endswith("ss"):
        return [word[:-1]]
    if lower.endswith("y") and len(word) > 1 and lower[-2] not in "aeiou":
        return [word[:-1] + "ies"]
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return [word + "es"]
    return [word + "s"]


class EntityNormalizer:
    """
    Normalization and alias generation for entity names.

    Stateless; a single instance can be shared freely.
    """

    def normalize(self, name: str, entity_type: EntityType) -> str:
        """Return the comparison key for ``name``."""
        return normalize_name(name, entity_type)

    def are_equivalent(self, name1: str, name2: str, entity_type: EntityType) -> bool:
        """
        True if both names normalize to the same key (case-insensitively).

        Blank names are never equivalent to anything.
        """
        if not name1 or not name1.strip() or not name2 or not name2.strip():
            return False
        return (
            self.normalize(name1, entity_type).lower()
            == self.normalize(name2, entity_type).lower()
        )

    def generate_aliases(self, name: str, entity_type: EntityType) -> list[str]:
        """
        Generate alternative names.

        Returns:
            Aliases deduplicated case-insensitively, never including ``name``
        """
        if not name or not name.strip():
            return []

        if entity_type == EntityType.PERSON:
            candidates = _person_aliases(name)
        elif entity_type == EntityType.ORGANIZATION:
            candidates = _organization_aliases(name)
        elif entity_type == EntityType.KEYWORD:
            candidates = _keyword_aliases(name)
        else:
            candidates = []

        original = name.strip().lower()
        seen: set[str] = set()
        aliases: list[str] = []
        for alias in candidates:
            key = alias.strip().lower()
            if not key or key == original or key in seen:
                continue
            seen.add(key)
            aliases.append(alias.strip())
        return aliases
