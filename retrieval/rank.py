"""
Multi-signal topic ranking over the document indexes.

Scoring (accumulated per topic):
   keyword hits (strategy)  + context boosts (subject, challenges, student needs)
   + scenario boosts (detected in the raw query) + expertise adjustment

Confidence:
   0.6 * min(avg_score / 5, 1) + 0.2 * query_complexity + 0.2 * result_diversity

Ties are broken by corpus insertion order.
"""

import logging
import time
from typing import Iterable, List, Optional

import numpy as np

from retrieval.build_index import DocumentIndexer, IndexSnapshot
from retrieval.scoring import KeywordScoringStrategy, ScoringStrategy
from retrieval.types import QueryContext, RankedResult, RankedTopic, ScoringWeights
from retrieval.vocabulary import EXPERTISE_TO_DIFFICULTY, NOVICE_LEVELS

logger = logging.getLogger("tlc.rank")

NO_RESULTS_REASONING = (
    'No highly relevant topics found for this query. '
    'Consider rephrasing or asking about specific TLC concepts.'
)


def _bucket_key(value: str) -> str:
    return '_'.join(value.strip().lower().split())


class QueryRanker:
    """Scores topics for a query + context and returns the top K."""

    def __init__(
        self,
        indexer: DocumentIndexer,
        strategy: Optional[ScoringStrategy] = None,
        weights: Optional[ScoringWeights] = None,
    ):
        self.indexer = indexer
        self.weights = weights or indexer.weights
        self.strategy = strategy or KeywordScoringStrategy(self.weights)

    def find_optimal_topics(
        self,
        query: str,
        context: Optional[QueryContext] = None,
        max_results: int = 3,
    ) -> RankedResult:
        """
        Rank topics for a free-text query.

        Never raises for empty input: an empty query, an uninitialized index
        or zero candidates all give an empty result with confidence 0.
        """
        start = time.perf_counter()
        context = QueryContext.coerce(context)

        snapshot = self.indexer.snapshot
        if snapshot is None:
            logger.warning("Knowledge index not initialized, returning empty results")
            return RankedResult(reasoning='Index not initialized')

        if not query or not query.strip():
            return RankedResult(
                reasoning='Query is empty. ' + NO_RESULTS_REASONING,
                query_analysis={'tokens': [], 'detected_scenarios': [],
                                'context_factors': context.factors()},
            )

        tokens = self.strategy.tokenize(query)
        scenarios = self.strategy.detect_scenarios(query)
        scores = self.score_topics(snapshot, tokens, scenarios, context)
        ranked = self._top_topics(snapshot, scores, max_results)

        return RankedResult(
            topics=ranked,
            confidence=self.calculate_confidence(ranked, query),
            reasoning=self.generate_reasoning(ranked, scenarios, context),
            query_analysis={
                'tokens': tokens,
                'detected_scenarios': scenarios,
                'context_factors': context.factors(),
            },
            retrieval_time_ms=(time.perf_counter() - start) * 1000.0,
        )

    # -- Scoring --

    def score_topics(
        self,
        snapshot: IndexSnapshot,
        tokens: List[str],
        scenarios: List[str],
        context: QueryContext,
    ) -> np.ndarray:
        """Accumulated score per topic, indexed by corpus position."""
        w = self.weights
        scores = np.zeros(len(snapshot.ordered), dtype=np.float64)
        positions = snapshot.positions

        def add(topic_id: str, amount: float) -> None:
            pos = positions.get(topic_id)
            if pos is not None:
                scores[pos] += amount

        def boost(topic_ids: Iterable[str], amount: float) -> None:
            for tid in topic_ids:
                add(tid, amount)

        # Keywords
        self.strategy.score_tokens(tokens, snapshot, add)

        # Context
        if context.subject:
            boost(snapshot.subject_index.get(context.subject.strip().lower(), ()), w.subject_boost)
        for challenge in context.challenges:
            boost(snapshot.scenario_index.get(_bucket_key(challenge), ()), w.challenge_boost)
        for need in context.student_needs:
            boost(snapshot.scenario_index.get(_bucket_key(need), ()), w.student_need_boost)

        # Scenarios detected in the query text
        for scenario in scenarios:
            boost(snapshot.scenario_index.get(scenario, ()), w.scenario_boost)

        # Expertise
        level = context.expertise_level
        if level:
            bucket = EXPERTISE_TO_DIFFICULTY.get(level)
            if bucket:
                boost(snapshot.difficulty_index.get(bucket, ()), w.expertise_match_boost)
            if level in NOVICE_LEVELS:
                boost(snapshot.difficulty_index.get('advanced', ()), -w.novice_advanced_penalty)

        return scores

    def _top_topics(
        self,
        snapshot: IndexSnapshot,
        scores: np.ndarray,
        max_results: int,
    ) -> List[RankedTopic]:
        if max_results <= 0 or scores.size == 0:
            return []
        norm = self.weights.score_normalizer
        # stable sort keeps corpus order among equal scores
        order = np.argsort(-scores, kind='stable')
        ranked: List[RankedTopic] = []
        for pos in order:
            score = float(scores[pos])
            if score <= 0:
                break
            ranked.append(RankedTopic(
                topic=snapshot.ordered[int(pos)],
                relevance_score=score,
                match_confidence=min(score / norm, 1.0),
            ))
            if len(ranked) >= max_results:
                break
        return ranked

    # -- Confidence and reasoning --

    def calculate_confidence(self, ranked: List[RankedTopic], query: str) -> float:
        if not ranked:
            return 0.0
        w = self.weights
        avg = float(np.mean([t.relevance_score for t in ranked]))
        relevance = min(avg / w.score_normalizer, 1.0)
        confidence = (
            relevance * w.relevance_share
            + self.strategy.query_complexity(query) * w.complexity_share
            + self.assess_result_diversity(ranked) * w.diversity_share
        )
        return float(np.clip(confidence, 0.0, 1.0))

    @staticmethod
    def assess_result_diversity(ranked: List[RankedTopic]) -> float:
        if len(ranked) <= 1:
            return 0.5
        categories = {t.topic.category for t in ranked}
        difficulties = {t.topic.difficulty for t in ranked}
        return min((len(categories) + len(difficulties)) / (len(ranked) * 2), 1.0)

    @staticmethod
    def generate_reasoning(
        ranked: List[RankedTopic],
        scenarios: List[str],
        context: QueryContext,
    ) -> str:
        if not ranked:
            return NO_RESULTS_REASONING

        top = ranked[0]
        parts = [
            f"Found {len(ranked)} relevant topics.",
            f'Top match: "{top.topic.title}" (confidence: {top.match_confidence * 100:.0f}%).',
        ]
        if context.subject:
            parts.append(f"Prioritized {context.subject} content.")
        if scenarios:
            parts.append(f"Detected scenario patterns: {', '.join(scenarios)}.")
        return ' '.join(parts)
