"""Fixed internal vocabularies used to build the auxiliary indexes."""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Tuple


SCENARIO_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    'engagement_issues': ('engagement', 'participation', 'motivation', 'bored', 'disengaged'),
    'joint_construction_problems': ('joint construction', 'collaboration', 'discussion', 'chaos', 'dominated'),
    'independent_writing_struggles': ('independent', 'writing', 'blank pages', 'cant write', 'stuck'),
    'time_management': ('time', 'running out', 'schedule', 'pacing', 'rushed'),
    'differentiation_needs': ('differentiation', 'diverse', 'eal', 'esl', 'support', 'advanced'),
    'assessment_challenges': ('assessment', 'feedback', 'evaluation', 'grades', 'marking'),
}

CONCEPT_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    'field_building': ('field building', 'prior knowledge', 'context', 'vocabulary'),
    'modeling': ('modeling', 'deconstruction', 'demonstration', 'example'),
    'joint_construction': ('joint construction', 'guided practice', 'collaboration', 'scaffolding'),
    'independent_construction': ('independent', 'individual', 'assessment', 'application'),
    'scaffolding': ('scaffold', 'support', 'guidance', 'gradual release'),
    'genre_based_teaching': ('genre', 'text type', 'structure', 'language features'),
}

SUBJECT_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    'english': ('english', 'literacy', 'writing', 'reading', 'language', 'genre'),
    'science': ('science', 'scientific', 'investigation', 'hypothesis', 'experiment'),
    'mathematics': ('mathematics', 'math', 'problem solving', 'numerical', 'calculation'),
    'history': ('history', 'historical', 'past', 'chronology', 'evidence'),
    'geography': ('geography', 'spatial', 'location', 'environment', 'mapping'),
}

# expertise level -> difficulty bucket it is matched against
EXPERTISE_TO_DIFFICULTY: Dict[str, str] = {
    'novice': 'beginner',
    'beginner': 'beginner',
    'developing': 'intermediate',
    'intermediate': 'intermediate',
    'proficient': 'intermediate',
    'expert': 'advanced',
    'advanced': 'advanced',
}

NOVICE_LEVELS: FrozenSet[str] = frozenset({'novice', 'beginner'})

STOPWORDS: FrozenSet[str] = frozenset({
    'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
    'from', 'about', 'into', 'through', 'during', 'before', 'after', 'above', 'below',
    'up', 'down', 'out', 'off', 'over', 'under', 'again', 'further', 'then', 'once',
    'is', 'are', 'was', 'were', 'be', 'been', 'being', 'have', 'has', 'had', 'do',
    'does', 'did', 'will', 'would', 'could', 'should', 'may', 'might', 'must', 'can',
    'a', 'an', 'this', 'that', 'these', 'those', 'i', 'you', 'he', 'she', 'it', 'we', 'they',
})


@dataclass(frozen=True)
class IndexVocabulary:
    """Bucket name -> trigger keywords, one mapping per auxiliary index."""
    scenarios: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: dict(SCENARIO_KEYWORDS))
    concepts: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: dict(CONCEPT_KEYWORDS))
    subjects: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: dict(SUBJECT_KEYWORDS))
    stopwords: FrozenSet[str] = STOPWORDS
