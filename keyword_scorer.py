# keyword_scorer.py
"""
Keyword coverage: how much of a free-text requirement shows up in a code body.
"""

import math
import re
from typing import Optional, Tuple

from config import DEFAULTS, ReviewConfig
from utils import unique_in_order

_TOKEN_SPLIT = re.compile(r"[\s.,;:!?()\[\]{}]+")

STOP_WORDS = frozenset({
    "a", "about", "above", "after", "again", "against", "all", "am", "an", "and", "any", "are", "aren't", "as", "at",
    "be", "because", "been", "before", "being", "below", "between", "both", "but", "by",
    "can't", "cannot", "could", "couldn't",
    "did", "didn't", "do", "does", "doesn't", "doing", "don't", "down", "during",
    "each",
    "few", "for", "from", "further",
    "had", "hadn't", "has", "hasn't", "have", "haven't", "having", "he", "he'd", "he'll", "he's", "her", "here",
    "here's", "hers", "herself", "him", "himself", "his", "how", "how's",
    "i", "i'd", "i'll", "i'm", "i've", "if", "in", "into", "is", "isn't", "it", "it's", "its", "itself",
    "let's",
    "me", "more", "most", "mustn't", "my", "myself",
    "no", "nor", "not",
    "of", "off", "on", "once", "only", "or", "other", "ought", "our", "ours", "ourselves", "out", "over", "own",
    "same", "shan't", "she", "she'd", "she'll", "she's", "should", "shouldn't", "so", "some", "such",
    "than", "that", "that's", "the", "their", "theirs", "them", "themselves", "then", "there", "there's", "these",
    "they", "they'd", "they'll", "they're", "they've", "this", "those", "through", "to", "too",
    "under", "until", "up",
    "very",
    "was", "wasn't", "we", "we'd", "we'll", "we're", "we've", "were", "weren't", "what", "what's", "when", "when's",
    "where", "where's", "which", "while", "who", "who's", "whom", "why", "why's", "with", "won't", "would",
    "wouldn't",
    "you", "you'd", "you'll", "you're", "you've", "your", "yours", "yourself", "yourselves",
})

# Too common in code to say anything about a requirement
GENERIC_VERBS = frozenset({"use", "set", "get", "create", "update", "delete", "show", "display"})


class KeywordScorer:
    def __init__(self, cfg: Optional[ReviewConfig] = None):
        self.cfg = cfg or DEFAULTS.review

    def extract_keywords(self, text: str) -> Tuple[str, ...]:
        """Salient lowercase terms of ``text`` in first-seen order, without duplicates."""
        if not text:
            return ()
        tokens = [t for t in _TOKEN_SPLIT.split(text.lower()) if t]
        kept = (
            t for t in tokens
            if len(t) > 2
            and t.isalnum()
            and t not in STOP_WORDS
            and t not in GENERIC_VERBS
        )
        return tuple(unique_in_order(kept))

    def match_count(self, keywords: Tuple[str, ...], body: str) -> int:
        lowered = (body or "").lower()
        return sum(1 for kw in keywords if kw in lowered)

    def threshold(self, keyword_count: int) -> int:
        """Minimum matched keywords for a body to count as covering the requirement."""
        return max(self.cfg.min_keyword_matches, math.floor(keyword_count * self.cfg.keyword_match_ratio))

    def score(self, keywords: Tuple[str, ...], body: str) -> float:
        if not keywords:
            return 0.0
        return self.match_count(keywords, body) / len(keywords)

    def is_match(self, keywords: Tuple[str, ...], body: str) -> bool:
        if not keywords:
            return False
        return self.match_count(keywords, body) >= self.threshold(len(keywords))
