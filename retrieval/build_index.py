"""
Build the keyword and auxiliary indexes from a static topic corpus.

Input:  list of Topic records (or mappings), or {"knowledge_base": {"topics": [...]}}
Output: one immutable IndexSnapshot
   - topics            topic_id -> Topic (corpus order)
   - keyword_index     keyword  -> (KeywordEntry, ...)
   - scenario_index    scenario -> (topic_id, ...)
   - concept_index     concept  -> (topic_id, ...) by concept relevance
   - difficulty_index  level    -> (topic_id, ...)
   - subject_index     subject  -> (topic_id, ...)

Keyword weights by source:
   explicit keyword 3.0, title 2.5, summary 2.0, teacher query 2.5, content 1.0
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from retrieval.types import CorpusError, KeywordEntry, ScoringWeights, Topic, DIFFICULTY_LEVELS
from retrieval.vocabulary import IndexVocabulary, STOPWORDS

logger = logging.getLogger("tlc.index")

MAX_SIGNIFICANT_WORDS = 10

_PUNCT_RE = re.compile(r'[^\w\s]')


def significant_words(
    text: str,
    stopwords: Iterable[str] = STOPWORDS,
    limit: int = MAX_SIGNIFICANT_WORDS,
) -> List[str]:
    """
    Extract significant words from text.

    Lowercases, replaces punctuation with spaces, drops stopwords, tokens of
    length <= 2 and purely numeric tokens. Returns at most `limit` words in
    text order.
    """
    if not text or not isinstance(text, str):
        return []
    stop = stopwords if isinstance(stopwords, (set, frozenset)) else set(stopwords)
    words = []
    for word in _PUNCT_RE.sub(' ', text.lower()).split():
        if len(word) <= 2 or word in stop or word.isdigit():
            continue
        words.append(word)
        if len(words) >= limit:
            break
    return words


def iter_content_text(content: Any) -> Iterator[str]:
    """Yield every string inside nested content (dicts, lists, strings)."""
    if isinstance(content, str):
        yield content
    elif isinstance(content, Mapping):
        for value in content.values():
            yield from iter_content_text(value)
    elif isinstance(content, (list, tuple)):
        for item in content:
            yield from iter_content_text(item)


def normalize_topics(corpus: Any) -> List[Topic]:
    """
    Turn a raw corpus into Topics, preserving corpus order.

    Raises:
        CorpusError: malformed corpus, bad record, or duplicate topic id.
    """
    if isinstance(corpus, Mapping):
        kb = corpus.get('knowledge_base', corpus)
        if not isinstance(kb, Mapping) or 'topics' not in kb:
            raise CorpusError("Corpus mapping has no 'knowledge_base.topics' section")
        corpus = kb.get('topics') or []
    if corpus is None:
        return []
    if isinstance(corpus, (str, bytes)) or not isinstance(corpus, Iterable):
        raise CorpusError(f"Corpus must be a list of topics, got {type(corpus).__name__}")

    topics: List[Topic] = []
    seen = set()
    for record in corpus:
        topic = record if isinstance(record, Topic) else Topic.from_dict(record)
        if topic.id in seen:
            raise CorpusError(f"Duplicate topic id: {topic.id!r}")
        seen.add(topic.id)
        topics.append(topic)
    return topics


@dataclass(frozen=True)
class IndexSnapshot:
    """Immutable result of one successful build."""
    ordered: Tuple[Topic, ...]
    topics: Dict[str, Topic]
    positions: Dict[str, int]
    keyword_index: Dict[str, Tuple[KeywordEntry, ...]]
    scenario_index: Dict[str, Tuple[str, ...]]
    concept_index: Dict[str, Tuple[str, ...]]
    difficulty_index: Dict[str, Tuple[str, ...]]
    subject_index: Dict[str, Tuple[str, ...]]
    build_time_ms: float = 0.0

    @property
    def stats(self) -> Dict[str, int]:
        return {
            'topics': len(self.topics),
            'keywords': len(self.keyword_index),
            'scenarios': len(self.scenario_index),
            'concepts': len(self.concept_index),
            'difficulties': len(self.difficulty_index),
            'subjects': len(self.subject_index),
        }


class DocumentIndexer:
    """
    Builds and owns the keyword/scenario/concept/difficulty/subject indexes.

    A build either publishes a complete snapshot or leaves the indexer
    uninitialized; readers only ever see `snapshot` as a whole.
    """

    def __init__(
        self,
        vocabulary: Optional[IndexVocabulary] = None,
        weights: Optional[ScoringWeights] = None,
    ):
        self.vocabulary = vocabulary or IndexVocabulary()
        self.weights = weights or ScoringWeights()
        self._snapshot: Optional[IndexSnapshot] = None

    @property
    def snapshot(self) -> Optional[IndexSnapshot]:
        return self._snapshot

    def is_initialized(self) -> bool:
        return self._snapshot is not None

    def build_indexes(self, corpus: Any) -> bool:
        """
        Build every index from the corpus.

        Returns:
            True on success. False on any corpus problem or an empty corpus,
            in which case the indexer is left uninitialized.
        """
        start = time.perf_counter()
        logger.info("Building knowledge indexes")
        try:
            topics = normalize_topics(corpus)
        except (CorpusError, TypeError) as e:
            logger.error("Invalid corpus, index not built: %s", e)
            self._snapshot = None
            return False

        if not topics:
            logger.warning("Corpus has no topics, index not built")
            self._snapshot = None
            return False

        keyword_index = self._build_keyword_index(topics)
        snapshot = IndexSnapshot(
            ordered=tuple(topics),
            topics={t.id: t for t in topics},
            positions={t.id: i for i, t in enumerate(topics)},
            keyword_index=keyword_index,
            scenario_index=self._build_bucket_index(topics, self.vocabulary.scenarios),
            concept_index=self._build_concept_index(topics),
            difficulty_index=self._build_difficulty_index(topics),
            subject_index=self._build_bucket_index(
                topics, self.vocabulary.subjects, include_content=True),
            build_time_ms=(time.perf_counter() - start) * 1000.0,
        )
        self._snapshot = snapshot

        logger.info(
            "Indexed %d topics with %d unique keywords in %.2fms",
            len(topics), len(keyword_index), snapshot.build_time_ms,
        )
        return True

    def get_index_sizes(self) -> Dict[str, int]:
        if self._snapshot is None:
            return {k: 0 for k in ('topics', 'keywords', 'scenarios',
                                   'concepts', 'difficulties', 'subjects')}
        return dict(self._snapshot.stats)

    # -- Keyword index --

    def _topic_terms(self, topic: Topic) -> List[Tuple[str, str]]:
        """(term, source) pairs for one topic, deduplicated per source."""
        stop = self.vocabulary.stopwords
        pairs: List[Tuple[str, str]] = []

        for kw in topic.keywords:
            term = kw.strip().lower()
            if len(term) >= 2:
                pairs.append((term, 'explicit_keyword'))
        for w in significant_words(topic.title, stop):
            pairs.append((w, 'title'))
        for w in significant_words(topic.summary, stop):
            pairs.append((w, 'summary'))
        for query in topic.teacher_queries:
            for w in significant_words(query, stop):
                pairs.append((w, 'teacher_query'))

        # Content words are capped per topic, not per section
        content_words: List[str] = []
        for text in iter_content_text(topic.content):
            for w in significant_words(text, stop):
                if w not in content_words:
                    content_words.append(w)
            if len(content_words) >= MAX_SIGNIFICANT_WORDS:
                break
        for w in content_words[:MAX_SIGNIFICANT_WORDS]:
            pairs.append((w, 'content'))

        seen = set()
        unique = []
        for pair in pairs:
            if pair not in seen:
                seen.add(pair)
                unique.append(pair)
        return unique

    def _build_keyword_index(self, topics: List[Topic]) -> Dict[str, Tuple[KeywordEntry, ...]]:
        postings: Dict[str, List[KeywordEntry]] = {}
        for topic in topics:
            for term, source in self._topic_terms(topic):
                postings.setdefault(term, []).append(KeywordEntry(
                    topic_id=topic.id,
                    relevance_score=self.weights.source_weight(source),
                    source=source,
                ))
        return {k: tuple(v) for k, v in postings.items()}

    # -- Auxiliary indexes --

    def _build_bucket_index(
        self,
        topics: List[Topic],
        buckets: Dict[str, Tuple[str, ...]],
        include_content: bool = False,
    ) -> Dict[str, Tuple[str, ...]]:
        index: Dict[str, Tuple[str, ...]] = {}
        for name, triggers in buckets.items():
            matched = [t.id for t in topics
                       if any(_topic_mentions(t, kw, include_content) for kw in triggers)]
            if matched:
                index[name] = tuple(matched)
        return index

    def _build_concept_index(self, topics: List[Topic]) -> Dict[str, Tuple[str, ...]]:
        index: Dict[str, Tuple[str, ...]] = {}
        for concept, triggers in self.vocabulary.concepts.items():
            scored = []
            for pos, topic in enumerate(topics):
                title = topic.title.lower()
                summary = topic.summary.lower()
                keywords = [k.lower() for k in topic.keywords]
                score = 0
                for kw in triggers:
                    if kw in title:
                        score += 3
                    if kw in summary:
                        score += 2
                    if any(kw in k for k in keywords):
                        score += 2
                if score > 0:
                    scored.append((-score, pos, topic.id))
            if scored:
                scored.sort()
                index[concept] = tuple(tid for _, _, tid in scored)
        return index

    def _build_difficulty_index(self, topics: List[Topic]) -> Dict[str, Tuple[str, ...]]:
        index: Dict[str, Tuple[str, ...]] = {}
        for level in DIFFICULTY_LEVELS:
            matched = tuple(t.id for t in topics if t.difficulty == level)
            if matched:
                index[level] = matched
        return index


def _topic_mentions(topic: Topic, keyword: str, include_content: bool) -> bool:
    if keyword in topic.title.lower() or keyword in topic.summary.lower():
        return True
    if any(keyword in k.lower() for k in topic.keywords):
        return True
    if include_content:
        return any(keyword in text.lower() for text in iter_content_text(topic.content))
    return False
