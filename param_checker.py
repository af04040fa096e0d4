# param_checker.py
"""
Loose compatibility check between two free-form parameter lists,
e.g. ``"real price, int qty"`` against ``"str price, int qty"``.
"""

import logging
import re
from typing import List, Optional

from config import DEFAULTS, ReviewConfig
from name_matcher import string_similarity

logger = logging.getLogger(__name__)

NUMERIC_TYPES = frozenset({"int", "int64", "real", "decimal", "num"})
STRING_TYPES = frozenset({"str", "string"})
DATE_TYPES = frozenset({"date", "utcdatetime", "datetime"})
BOOLEAN_TYPES = frozenset({"boolean", "bool"})
TYPE_FAMILIES = (NUMERIC_TYPES, STRING_TYPES, DATE_TYPES, BOOLEAN_TYPES)

# Only compatible with the same kind
CONTAINER_TYPES = frozenset({"array", "list", "map", "set"})

COMPATIBLE_PAIRS = frozenset({
    frozenset({"any", "object"}),
    frozenset({"int", "enum"}),
    frozenset({"record", "common"}),
})

_WHITESPACE = re.compile(r"\s+")
_TYPED_PARAM = re.compile(r"(\w+)\s+\w+")


class ParameterParseError(ValueError):
    """A parameter group carries no ``type name`` pair."""


def types_compatible(type1: str, type2: str) -> bool:
    if type1 == type2:
        return True
    if any(type1 in family and type2 in family for family in TYPE_FAMILIES):
        return True
    if type1 in CONTAINER_TYPES or type2 in CONTAINER_TYPES:
        return False
    return frozenset({type1, type2}) in COMPATIBLE_PAIRS


def extract_types(params: str) -> List[str]:
    """Return the declared type of each comma-separated parameter."""
    types = []
    for group in params.split(","):
        m = _TYPED_PARAM.search(group)
        if not m:
            raise ParameterParseError(f"no type in parameter {group.strip()!r}")
        types.append(m.group(1))
    return types


class ParameterChecker:
    def __init__(self, cfg: Optional[ReviewConfig] = None):
        self.cfg = cfg or DEFAULTS.review

    def compatible(self, expected: Optional[str], actual: Optional[str]) -> bool:
        clean1 = _WHITESPACE.sub(" ", expected or "").strip().lower()
        clean2 = _WHITESPACE.sub(" ", actual or "").strip().lower()
        # Not enough information to call it a mismatch
        if not clean1 or not clean2:
            return True
        if clean1 == clean2:
            return True

        if clean1.count(",") != clean2.count(","):
            return False

        try:
            types1 = extract_types(clean1)
            types2 = extract_types(clean2)
        except ParameterParseError as e:
            similarity = string_similarity(clean1, clean2)
            logger.debug("parameter parse fallback (%s): similarity %.3f", e, similarity)
            return similarity > self.cfg.param_similarity_threshold

        for t1, t2 in zip(types1, types2):
            if not types_compatible(t1, t2):
                logger.debug("incompatible parameter types %r vs %r", t1, t2)
                return False
        return True
