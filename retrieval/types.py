"""Data types shared by the indexer, ranker and cache."""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional, Tuple


DIFFICULTY_LEVELS: Tuple[str, ...] = ('beginner', 'intermediate', 'advanced')
EXPERTISE_LEVELS: Tuple[str, ...] = ('novice', 'developing', 'proficient', 'expert')


class CorpusError(ValueError):
    """Raised when a corpus record cannot be turned into a Topic."""


@dataclass(frozen=True)
class Topic:
    """An indexed unit of knowledge content."""
    id: str
    title: str
    summary: str = ''
    keywords: Tuple[str, ...] = ()
    teacher_queries: Tuple[str, ...] = ()
    content: Any = field(default_factory=dict)  # nested sections of text
    difficulty: Optional[str] = None
    category: Optional[str] = None

    def to_dict(self) -> Dict:
        d = asdict(self)
        d['keywords'] = list(self.keywords)
        d['teacher_queries'] = list(self.teacher_queries)
        return d

    @classmethod
    def from_dict(cls, data: Mapping) -> 'Topic':
        """
        Build a Topic from a corpus record.

        Raises:
            CorpusError: record is not a mapping, lacks id/title, or has an
                         unknown difficulty.
        """
        if not isinstance(data, Mapping):
            raise CorpusError(f"Topic record must be a mapping, got {type(data).__name__}")

        topic_id = data.get('id')
        if not topic_id or not isinstance(topic_id, str):
            raise CorpusError(f"Topic record is missing 'id': {dict(data)!r:.80}")
        title = data.get('title')
        if not title or not isinstance(title, str):
            raise CorpusError(f"Topic {topic_id!r} is missing 'title'")

        difficulty = data.get('difficulty')
        if difficulty is not None:
            difficulty = str(difficulty).strip().lower()
            if difficulty not in DIFFICULTY_LEVELS:
                raise CorpusError(
                    f"Topic {topic_id!r} has unknown difficulty {difficulty!r}"
                )

        return cls(
            id=topic_id,
            title=title,
            summary=data.get('summary') or '',
            keywords=tuple(str(k) for k in data.get('keywords') or ()),
            teacher_queries=tuple(str(q) for q in data.get('teacher_queries') or ()),
            content=data.get('content') or {},
            difficulty=difficulty,
            category=data.get('category'),
        )


@dataclass(frozen=True)
class KeywordEntry:
    """One (topic, weight, source) posting under a keyword."""
    topic_id: str
    relevance_score: float
    source: str  # explicit_keyword | title | summary | teacher_query | content


@dataclass(frozen=True)
class QueryContext:
    """
    Optional per-call context supplied by the surrounding service.

    Every field may be absent; absence is None / empty tuple.
    """
    subject: Optional[str] = None
    challenges: Tuple[str, ...] = ()
    student_needs: Tuple[str, ...] = ()
    expertise_level: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> 'QueryContext':
        """Accepts snake_case or camelCase keys; unknown keys are ignored."""
        if not data:
            return cls()
        subject = data.get('subject')
        needs = data.get('student_needs', data.get('studentNeeds'))
        level = data.get('expertise_level', data.get('expertiseLevel'))
        return cls(
            subject=str(subject) if subject else None,
            challenges=_as_str_tuple(data.get('challenges')),
            student_needs=_as_str_tuple(needs),
            expertise_level=str(level).strip().lower() if level else None,
        )

    @classmethod
    def coerce(cls, context: Any) -> 'QueryContext':
        if isinstance(context, cls):
            return context
        if context is None or isinstance(context, Mapping):
            return cls.from_dict(context)
        raise TypeError(f"Unsupported context type: {type(context).__name__}")

    def to_dict(self) -> Dict:
        return {
            'subject': self.subject,
            'challenges': list(self.challenges),
            'student_needs': list(self.student_needs),
            'expertise_level': self.expertise_level,
        }

    def factors(self) -> List[str]:
        """Names of the fields that are actually set."""
        return [k for k, v in self.to_dict().items() if v]


def _as_str_tuple(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class ScoringWeights:
    """
    Empirical weights used by indexing, ranking and confidence.

    Treated as configuration; see service.config.Settings.
    """
    # keyword sources
    explicit_keyword: float = 3.0
    title: float = 2.5
    summary: float = 2.0
    teacher_query: float = 2.5
    content: float = 1.0
    partial_match_factor: float = 0.5

    # context and scenario boosts
    subject_boost: float = 1.5
    challenge_boost: float = 2.0
    student_need_boost: float = 1.8
    scenario_boost: float = 2.5
    expertise_match_boost: float = 1.0
    novice_advanced_penalty: float = 0.5

    # confidence blend
    score_normalizer: float = 5.0
    relevance_share: float = 0.6
    complexity_share: float = 0.2
    diversity_share: float = 0.2

    def source_weight(self, source: str) -> float:
        return getattr(self, source)


@dataclass(frozen=True)
class RankedTopic:
    """A topic with its accumulated score."""
    topic: Topic
    relevance_score: float
    match_confidence: float

    def to_dict(self) -> Dict:
        d = self.topic.to_dict()
        d['relevance_score'] = self.relevance_score
        d['match_confidence'] = self.match_confidence
        return d


@dataclass
class RankedResult:
    """Ranked topics plus overall confidence and a human-readable reasoning."""
    topics: List[RankedTopic] = field(default_factory=list)
    confidence: float = 0.0
    reasoning: str = ''
    intelligent: bool = True
    query_analysis: Dict = field(default_factory=dict)
    retrieval_time_ms: float = 0.0

    @property
    def topic_ids(self) -> List[str]:
        return [t.topic.id for t in self.topics]

    def to_dict(self) -> Dict:
        return {
            'topics': [t.to_dict() for t in self.topics],
            'confidence': self.confidence,
            'reasoning': self.reasoning,
            'intelligent': self.intelligent,
            'query_analysis': dict(self.query_analysis),
            'retrieval_time_ms': self.retrieval_time_ms,
        }
