"""
Keyword scoring strategies.

A strategy owns the fuzzy parts of ranking: query tokenization, keyword
weighting, scenario detection and the query-complexity heuristic. The ranker
only aggregates what the strategy reports.
"""

import re
from typing import Callable, List

from retrieval.build_index import IndexSnapshot
from retrieval.types import ScoringWeights

MAX_QUERY_TOKENS = 20

_PUNCT_RE = re.compile(r'[^\w\s]')
_DOMAIN_TERMS_RE = re.compile(r'\b(tlc|teaching|learning|cycle|framework)\b', re.IGNORECASE)
_QUESTION_WORDS_RE = re.compile(r'\b(how|what|why|when|where|which)\b', re.IGNORECASE)

# callback(topic_id, amount)
AddScore = Callable[[str, float], None]


def tokenize_query(query: str, max_tokens: int = MAX_QUERY_TOKENS) -> List[str]:
    """Lowercase, strip punctuation, drop 1-char tokens, cap the count."""
    if not query or not isinstance(query, str):
        return []
    tokens = [t for t in _PUNCT_RE.sub(' ', query.lower()).split() if len(t) > 1]
    return tokens[:max_tokens]


class ScoringStrategy:
    """Interface for query scoring; subclasses override every method."""

    def tokenize(self, query: str) -> List[str]:
        raise NotImplementedError

    def score_tokens(self, tokens: List[str], snapshot: IndexSnapshot, add: AddScore) -> None:
        raise NotImplementedError

    def detect_scenarios(self, query: str) -> List[str]:
        raise NotImplementedError

    def query_complexity(self, query: str) -> float:
        raise NotImplementedError


class KeywordScoringStrategy(ScoringStrategy):
    """
    Exact + partial keyword matching against the inverted index.

    Exact hits add the stored weight; substring matches against other
    keywords (either direction) add `partial_match_factor` of it.
    """

    def __init__(self, weights: ScoringWeights = None, max_tokens: int = MAX_QUERY_TOKENS):
        self.weights = weights or ScoringWeights()
        self.max_tokens = max_tokens

    def tokenize(self, query: str) -> List[str]:
        return tokenize_query(query, self.max_tokens)

    def score_tokens(self, tokens: List[str], snapshot: IndexSnapshot, add: AddScore) -> None:
        factor = self.weights.partial_match_factor
        index = snapshot.keyword_index
        for token in tokens:
            for entry in index.get(token, ()):
                add(entry.topic_id, entry.relevance_score)

            for keyword, entries in index.items():
                if keyword == token:
                    continue
                if token in keyword or keyword in token:
                    for entry in entries:
                        add(entry.topic_id, entry.relevance_score * factor)

    def detect_scenarios(self, query: str) -> List[str]:
        """Troubleshooting scenarios recognizable directly in the query text."""
        q = (query or '').lower()
        scenarios = []

        if any(w in q for w in ('engagement', 'participation', 'motivation', 'bored')):
            scenarios.append('engagement_issues')

        if any(w in q for w in ('joint construction', 'discussion', 'collaboration', 'chaos')):
            scenarios.append('joint_construction_problems')

        if 'writing' in q and any(w in q for w in ('struggle', 'difficult', 'help')):
            scenarios.append('independent_writing_struggles')

        if 'time' in q and any(w in q for w in ('management', 'running out', 'schedule')):
            scenarios.append('time_management')

        return scenarios

    def query_complexity(self, query: str) -> float:
        """0.5 base, +0.2 long query, +0.2 domain terms, +0.1 question words."""
        query = query or ''
        complexity = 0.5
        if len(query.split()) > 5:
            complexity += 0.2
        if _DOMAIN_TERMS_RE.search(query):
            complexity += 0.2
        if _QUESTION_WORDS_RE.search(query):
            complexity += 0.1
        return min(complexity, 1.0)
