# name_matcher.py
"""
Fuzzy comparison of entity, function and extension names.

Implementation names carry organisational prefixes (``CUS_``, ``ISV``) and
structural suffixes (``Table``, ``Ext``), so both sides are reduced to their
semantic core before comparing.
"""

import logging
import re
from typing import Optional

from config import DEFAULTS, ReviewConfig

logger = logging.getLogger(__name__)


def edit_distance(s1: str, s2: str) -> int:
    """Levenshtein distance with unit insert/delete/substitute costs."""
    len1, len2 = len(s1), len(s2)
    matrix = [[0] * (len2 + 1) for _ in range(len1 + 1)]
    for i in range(len1 + 1):
        matrix[i][0] = i
    for j in range(len2 + 1):
        matrix[0][j] = j

    for i in range(1, len1 + 1):
        for j in range(1, len2 + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,
                matrix[i][j - 1] + 1,
                matrix[i - 1][j - 1] + cost,
            )
    return matrix[len1][len2]


def string_similarity(s1: str, s2: str) -> float:
    """Normalised similarity in [0, 1]: 1 - distance / longer length."""
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    return 1.0 - edit_distance(s1, s2) / max(len(s1), len(s2))


class NameMatcher:
    """Symmetric fuzzy name comparison."""

    def __init__(self, cfg: Optional[ReviewConfig] = None):
        self.cfg = cfg or DEFAULTS.review
        prefixes = "|".join(re.escape(p) for p in self.cfg.vendor_prefixes)
        suffixes = "|".join(re.escape(s) for s in self.cfg.kind_suffixes)
        # "CUS_Sales", "cusSales" and "AxSales" lose the prefix; "CustTable" keeps it
        self.prefix_pattern = re.compile(rf"^(?i:{prefixes})(?:_|(?=[A-Z]))")
        self.suffix_pattern = re.compile(rf"(?:{suffixes})$")

    def clean(self, name: str) -> str:
        """Strip vendor prefix and kind suffix, then lowercase and trim."""
        cleaned = self.prefix_pattern.sub("", name, count=1)
        cleaned = self.suffix_pattern.sub("", cleaned, count=1)
        return cleaned.lower().strip()

    def matches(self, name1: str, name2: str) -> bool:
        if not name1 or not name2:
            return False

        clean1 = self.clean(name1)
        clean2 = self.clean(name2)

        if clean1 == clean2:
            return True

        # An empty core would be contained in everything
        if not clean1 or not clean2:
            return False

        if clean1 in clean2 or clean2 in clean1:
            return True

        if len(clean1) > self.cfg.fuzzy_min_length and len(clean2) > self.cfg.fuzzy_min_length:
            similarity = string_similarity(clean1, clean2)
            if similarity > self.cfg.name_similarity_threshold:
                logger.debug("fuzzy name match %r ~ %r (%.3f)", name1, name2, similarity)
                return True

        return False
