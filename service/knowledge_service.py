"""
Unified knowledge service: the one entry point for the surrounding app.

Owns one immutable state (indexes, ranker, cache, relationship graph) per
instance. Hot reload builds a complete new state and swaps the reference, so
a reader always sees either the old state or the new one.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from graph.defaults import CONCEPT_COMPLEXITY, DEFAULT_RELATIONSHIPS, MASTERY_INDICATORS
from graph.models import RelationshipGraph, RelationshipTableError, build_graph
from graph.paths import LearningPath, generate_learning_paths
from graph.prereqs import PrerequisiteLink, build_prerequisite_chain
from graph.related import (
    ApplicationContext, ComplementaryConcept,
    calculate_relationship_strengths, find_application_contexts,
    find_complementary_concepts, find_related_concepts,
    get_direct_relationships, navigation_recommendations,
)
from retrieval.build_index import DocumentIndexer
from retrieval.cache import QueryCache
from retrieval.rank import QueryRanker
from retrieval.types import CorpusError, QueryContext, RankedResult, RankedTopic, Topic
from service.config import Settings
from service.loader import load_corpus, load_relationships
from service.usage import UsageTracker

logger = logging.getLogger("tlc.service")

# Pass as `relationships` to mark the table as failed to load
TABLE_UNAVAILABLE = object()

KB_UNAVAILABLE = 'Knowledge base not available'
GRAPH_UNAVAILABLE = 'Relationship graph not available'
FALLBACK_REASONING = 'Using basic search - intelligent indexing not available'
FALLBACK_CONFIDENCE = 0.6


@dataclass(frozen=True)
class _KnowledgeState:
    corpus: Tuple[Any, ...]
    relationships: Any
    indexer: DocumentIndexer
    ranker: Optional[QueryRanker]
    cache: QueryCache
    graph: Optional[RelationshipGraph]
    fallback_topics: Tuple[Topic, ...] = ()

    @property
    def available(self) -> bool:
        return len(self.corpus) > 0


@dataclass
class ConceptOverview:
    """Everything known about one concept: topics, prerequisites, paths."""
    concept: str
    available: bool = True
    graph_available: bool = True
    message: str = ''
    topic_information: Optional[Topic] = None
    recommendations: RankedResult = field(default_factory=RankedResult)
    prerequisite_chain: List[PrerequisiteLink] = field(default_factory=list)
    complementary_concepts: List[ComplementaryConcept] = field(default_factory=list)
    application_contexts: List[ApplicationContext] = field(default_factory=list)
    learning_paths: List[LearningPath] = field(default_factory=list)
    navigation_recommendations: List[str] = field(default_factory=list)
    concept_metadata: Dict = field(default_factory=dict)

    @property
    def best_learning_path(self) -> Optional[LearningPath]:
        return self.learning_paths[0] if self.learning_paths else None

    def to_dict(self) -> Dict:
        best = self.best_learning_path
        return {
            'concept': self.concept,
            'available': self.available,
            'graph_available': self.graph_available,
            'message': self.message,
            'topic_information': self.topic_information.to_dict() if self.topic_information else None,
            'recommendations': self.recommendations.to_dict(),
            'learning_guidance': {
                'suggested_paths': [p.to_dict() for p in self.learning_paths],
                'best_path': best.to_dict() if best else None,
                'prerequisites': [p.to_dict() for p in self.prerequisite_chain],
                'complementary_topics': [c.to_dict() for c in self.complementary_concepts],
                'practical_applications': [a.to_dict() for a in self.application_contexts],
            },
            'navigation_recommendations': list(self.navigation_recommendations),
            'concept_metadata': dict(self.concept_metadata),
        }


def _raw_records(corpus: Any) -> List[Any]:
    """Topic records as supplied, without validation."""
    if corpus is None:
        return []
    if isinstance(corpus, Mapping):
        kb = corpus.get('knowledge_base', corpus)
        topics = kb.get('topics') if isinstance(kb, Mapping) else None
        return list(topics) if isinstance(topics, (list, tuple)) else []
    if isinstance(corpus, (list, tuple)):
        return list(corpus)
    return []


def _lenient_topics(records: List[Any]) -> Tuple[Topic, ...]:
    """Every record that parses on its own; used only by the fallback search."""
    topics = []
    for record in records:
        if isinstance(record, Topic):
            topics.append(record)
            continue
        try:
            topics.append(Topic.from_dict(record))
        except CorpusError as e:
            logger.debug("Fallback search skips record: %s", e)
    return tuple(topics)


def _humanize(concept: str) -> str:
    return concept.replace('_', ' ').strip()


class KnowledgeService:
    """
    Facade over the indexer, ranker, cache and relationship graph.

    No public method raises on missing or partial data; each returns a
    neutral result carrying an explanatory message instead.
    """

    def __init__(
        self,
        corpus: Any = None,
        relationships: Any = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.usage = UsageTracker(self.settings.usage_window)
        self._reload_lock = threading.Lock()
        self._state = self._build_state(corpus, relationships)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'KnowledgeService':
        """Load the corpus and relationship table from the configured files."""
        settings = settings or Settings()
        try:
            corpus = load_corpus(settings.corpus_path)
        except CorpusError as e:
            logger.error("Error loading knowledge base: %s", e)
            corpus = None

        relationships = None
        if settings.relationships_path is not None:
            try:
                relationships = load_relationships(settings.relationships_path)
            except RelationshipTableError as e:
                logger.error("Error loading relationship table: %s", e)
                relationships = TABLE_UNAVAILABLE
        return cls(corpus, relationships, settings)

    # ----------------------------
    # Build / reload
    # ----------------------------

    def _build_state(self, corpus: Any, relationships: Any) -> _KnowledgeState:
        s = self.settings
        records = _raw_records(corpus)

        indexer = DocumentIndexer(weights=s.weights)
        indexed = indexer.build_indexes(records) if records else False
        if records and not indexed:
            logger.warning("Knowledge base loaded but indexing failed - falling back to basic retrieval")

        if relationships is None:
            relationships = DEFAULT_RELATIONSHIPS
        return _KnowledgeState(
            corpus=tuple(records),
            relationships=relationships,
            indexer=indexer,
            ranker=QueryRanker(indexer, weights=s.weights) if indexed else None,
            cache=QueryCache(s.cache_capacity),
            graph=self._build_graph(relationships),
            fallback_topics=() if indexed else _lenient_topics(records),
        )

    @staticmethod
    def _build_graph(relationships: Any) -> Optional[RelationshipGraph]:
        if relationships is TABLE_UNAVAILABLE:
            return None
        try:
            return build_graph(relationships, complexity=CONCEPT_COMPLEXITY,
                               mastery_indicators=MASTERY_INDICATORS)
        except RelationshipTableError as e:
            logger.error("Relationship graph not built: %s", e)
            return None

    def reload(self, corpus: Any, relationships: Any = None) -> bool:
        """
        Rebuild everything from new inputs and swap it in.

        Returns True when the new indexes built successfully.
        """
        with self._reload_lock:
            state = self._build_state(corpus, relationships)
            self._state = state
        logger.info("Knowledge state reloaded (indexed=%s, graph=%s)",
                    state.ranker is not None, state.graph is not None)
        return state.ranker is not None

    def rebuild_intelligent_indexes(self) -> bool:
        """Rebuild from the inputs of the current state; clears the cache."""
        state = self._state
        if not state.available:
            return False
        logger.info("Rebuilding intelligent knowledge indexes")
        return self.reload(list(state.corpus), state.relationships)

    # ----------------------------
    # Availability
    # ----------------------------

    def is_available(self) -> bool:
        return self._state.available

    def is_indexed(self) -> bool:
        return self._state.ranker is not None

    def has_graph(self) -> bool:
        return self._state.graph is not None

    # ----------------------------
    # Topic retrieval
    # ----------------------------

    def find_relevant_topics(self, query: str, context: Any = None) -> List[RankedTopic]:
        result = self.get_intelligent_recommendations(
            query, context, self.settings.relevant_topics_limit)
        return result.topics

    def get_intelligent_recommendations(
        self,
        query: str,
        context: Any = None,
        max_results: Optional[int] = None,
    ) -> RankedResult:
        """Ranked topics via the cache; linear substring scan if indexing failed."""
        return self._recommend(self._state, query, context, max_results)

    def _recommend(
        self,
        state: _KnowledgeState,
        query: str,
        context: Any,
        max_results: Optional[int],
    ) -> RankedResult:
        if not state.available:
            return RankedResult(reasoning=KB_UNAVAILABLE, intelligent=False)

        k = self.settings.default_max_results if max_results is None else max_results
        ctx = self._coerce_context(context)
        try:
            if state.ranker is not None:
                result, hit = state.cache.get_or_compute(
                    query, ctx, k,
                    lambda: state.ranker.find_optimal_topics(query, ctx, k),
                )
                self.usage.record_query(result.retrieval_time_ms, result.confidence, hit)
                return result

            logger.warning("Using fallback linear search - indexing not available")
            return self._linear_search(state, query, k)
        except Exception as e:
            logger.exception("Error in topic retrieval")
            return RankedResult(reasoning=f"Error during retrieval: {e}")

    @staticmethod
    def _linear_search(state: _KnowledgeState, query: str, k: int) -> RankedResult:
        q = (query or '').strip().lower()
        ranked: List[RankedTopic] = []
        if q and k > 0:
            for topic in state.fallback_topics:
                hits = sum((
                    q in topic.title.lower(),
                    q in topic.summary.lower(),
                    any(q in kw.lower() for kw in topic.keywords),
                    any(q in tq.lower() for tq in topic.teacher_queries),
                ))
                if hits:
                    ranked.append(RankedTopic(topic, float(hits), min(hits / 5.0, 1.0)))
                    if len(ranked) >= k:
                        break
        return RankedResult(
            topics=ranked,
            confidence=FALLBACK_CONFIDENCE if ranked else 0.0,
            reasoning=FALLBACK_REASONING,
            intelligent=False,
        )

    def get_advanced_intelligent_recommendations(
        self,
        query: str,
        context: Any = None,
        max_results: Optional[int] = None,
    ) -> Dict:
        """Recommendations with each topic's prerequisites, complements and best path."""
        state = self._state
        result = self._recommend(state, query, context, max_results)
        payload = result.to_dict()
        if not result.topics or state.graph is None:
            payload['relationship_analysis'] = {
                'available': False,
                'message': GRAPH_UNAVAILABLE if state.graph is None else 'No topics to analyse',
            }
            return payload

        ctx = self._coerce_context(context)
        graph = state.graph
        depth = self.settings.prerequisite_max_depth
        enhanced = []
        for ranked in result.topics:
            tid = ranked.topic.id
            paths = generate_learning_paths(graph, tid, ctx, depth)
            meta = graph.metadata(tid)
            item = ranked.to_dict()
            item['relationships'] = {
                'prerequisites': [p.to_dict() for p in build_prerequisite_chain(graph, tid, depth)[:2]],
                'complements': [c.to_dict() for c in find_complementary_concepts(graph, tid)[:2]],
                'applications': [a.to_dict() for a in find_application_contexts(graph, tid, ctx)[:2]],
            }
            item['learning_path'] = paths[0].to_dict() if paths else None
            item['concept_metadata'] = meta.to_dict() if meta else {}
            enhanced.append(item)

        payload['topics'] = enhanced
        payload['relationship_analysis'] = {
            'available': True,
            'concept_connections': len(enhanced),
            'learning_paths_found': sum(1 for t in enhanced if t['learning_path']),
        }
        return payload

    # ----------------------------
    # Concept graph
    # ----------------------------

    def get_prerequisite_chain(self, concept: str) -> List[PrerequisiteLink]:
        graph = self._graph()
        if graph is None:
            return []
        return build_prerequisite_chain(graph, concept, self.settings.prerequisite_max_depth)

    def get_learning_paths(self, concept: str, context: Any = None) -> List[LearningPath]:
        graph = self._graph()
        if graph is None:
            return []
        return generate_learning_paths(graph, concept, self._coerce_context(context),
                                       self.settings.prerequisite_max_depth)

    def get_complementary_concepts(self, concept: str) -> List[ComplementaryConcept]:
        graph = self._graph()
        return find_complementary_concepts(graph, concept) if graph else []

    def get_application_contexts(self, concept: str, context: Any = None) -> List[ApplicationContext]:
        graph = self._graph()
        if graph is None:
            return []
        return find_application_contexts(graph, concept, self._coerce_context(context))

    def find_related_concepts(
        self,
        concept: str,
        relationship_type: Optional[str] = None,
        max_results: int = 5,
    ) -> List[Dict]:
        graph = self._graph()
        if graph is None:
            return []
        return find_related_concepts(graph, concept, relationship_type, max_results)

    def get_concept_relationships(self, concept: str, context: Any = None) -> Dict:
        """Full relationship analysis for one concept."""
        graph = self._graph()
        if graph is None:
            message = KB_UNAVAILABLE if not self.is_available() else GRAPH_UNAVAILABLE
            return {'concept': concept, 'available': False, 'error': message,
                    'direct_relationships': []}
        ctx = self._coerce_context(context)
        depth = self.settings.prerequisite_max_depth
        try:
            self.usage.record_concept_lookup(concept)
            return {
                'concept': concept,
                'available': True,
                'direct_relationships': [r.to_dict() for r in get_direct_relationships(graph, concept)],
                'prerequisite_chain': [p.to_dict() for p in build_prerequisite_chain(graph, concept, depth)],
                'learning_paths': [p.to_dict() for p in generate_learning_paths(graph, concept, ctx, depth)],
                'complementary_concepts': [c.to_dict() for c in find_complementary_concepts(graph, concept)],
                'application_contexts': [a.to_dict() for a in find_application_contexts(graph, concept, ctx)],
                'relationship_strengths': calculate_relationship_strengths(graph, concept, ctx),
                'recommendations': navigation_recommendations(ctx),
                'concept_metadata': self._concept_metadata(graph, concept),
            }
        except Exception:
            logger.exception("Relationship analysis failed for %r", concept)
            return {'concept': concept, 'available': False,
                    'error': 'Relationship analysis failed', 'direct_relationships': []}

    def get_concept_overview(self, concept: str, context: Any = None) -> ConceptOverview:
        """
        Join topic retrieval for the concept's name with every graph view.

        The best learning path is the first one for the user's expertise.
        """
        state = self._state
        if not state.available:
            return ConceptOverview(concept=concept, available=False,
                                   graph_available=state.graph is not None,
                                   message=KB_UNAVAILABLE)

        ctx = self._coerce_context(context)
        overview = ConceptOverview(
            concept=concept,
            topic_information=self._find_topic(state, concept),
            recommendations=self._recommend(
                state, _humanize(concept), ctx, self.settings.default_max_results),
            navigation_recommendations=navigation_recommendations(ctx),
        )

        graph = state.graph
        if graph is None:
            overview.graph_available = False
            overview.message = GRAPH_UNAVAILABLE
            return overview

        depth = self.settings.prerequisite_max_depth
        try:
            self.usage.record_concept_lookup(concept)
            overview.prerequisite_chain = build_prerequisite_chain(graph, concept, depth)
            overview.complementary_concepts = find_complementary_concepts(graph, concept)
            overview.application_contexts = find_application_contexts(graph, concept, ctx)
            overview.learning_paths = generate_learning_paths(graph, concept, ctx, depth)
            overview.concept_metadata = self._concept_metadata(graph, concept)
        except Exception:
            logger.exception("Concept overview failed for %r", concept)
            overview.message = 'Relationship analysis failed'
        if not graph.has_concept(concept) and not overview.message:
            overview.message = f"Concept {concept!r} is not in the relationship graph"
        return overview

    # ----------------------------
    # Passive counters
    # ----------------------------

    def track_relationship_usage(self, relationship: Any, feedback: Any = None) -> None:
        helpful = feedback.get('helpful') if isinstance(feedback, Mapping) else feedback
        self.usage.record_relationship_usage(relationship, helpful)

    def get_relationship_metrics(self) -> Dict:
        metrics = self.usage.relationship_metrics()
        graph = self._graph()
        metrics['total_concepts'] = graph.count_concepts() if graph else 0
        return metrics

    def get_intelligence_stats(self) -> Dict:
        state = self._state
        if not state.indexer.is_initialized():
            return {'indexing_enabled': False,
                    'message': 'Intelligent indexing not available'}
        snapshot = state.indexer.snapshot
        return {
            'indexing_enabled': True,
            'index_build_time_ms': snapshot.build_time_ms,
            'index_size': state.indexer.get_index_sizes(),
            'cache': state.cache.stats(),
            **self.usage.query_stats(),
        }

    # ----------------------------
    # Helpers
    # ----------------------------

    def _graph(self) -> Optional[RelationshipGraph]:
        state = self._state
        return state.graph if state.available else None

    def _concept_metadata(self, graph: RelationshipGraph, concept: str) -> Dict:
        meta = graph.metadata(concept)
        if meta is None:
            return {}
        d = meta.to_dict()
        d['frequency'] = meta.frequency + self.usage.concept_frequency(concept)
        return d

    @staticmethod
    def _find_topic(state: _KnowledgeState, concept: str) -> Optional[Topic]:
        snapshot = state.indexer.snapshot
        topics = snapshot.ordered if snapshot is not None else state.fallback_topics
        needle = _humanize(concept).lower()
        for topic in topics:
            if topic.id == concept:
                return topic
        if not needle:
            return None
        for topic in topics:
            if needle in topic.title.lower():
                return topic
        return None

    @staticmethod
    def _coerce_context(context: Any) -> QueryContext:
        try:
            return QueryContext.coerce(context)
        except TypeError as e:
            logger.warning("Ignoring unusable context: %s", e)
            return QueryContext()
