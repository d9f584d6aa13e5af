"""Typed learning-path generation: exploration, mastery, application."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from graph.models import RelationshipGraph
from graph.prereqs import DEFAULT_MAX_DEPTH, build_prerequisite_chain
from retrieval.types import QueryContext
from retrieval.vocabulary import NOVICE_LEVELS

# minutes per step
EXPLORATION_STEP = 8
MASTERY_STEP = 12
APPLICATION_STEP = 15

MAX_EXPLORATION_NEIGHBORS = 3
MAX_MASTERY_NODES = 6

PATH_TYPES = ('exploration', 'mastery', 'application')


@dataclass
class LearningPath:
    type: str
    name: str
    description: str
    difficulty: str
    path: List[str] = field(default_factory=list)
    step_minutes: int = 0

    @property
    def estimated_time(self) -> int:
        return len(self.path) * self.step_minutes

    def to_dict(self) -> Dict:
        return {
            'type': self.type,
            'name': self.name,
            'description': self.description,
            'difficulty': self.difficulty,
            'path': list(self.path),
            'estimated_time': self.estimated_time,
        }


def exploration_path(graph: RelationshipGraph, concept: str) -> List[str]:
    """Concept plus up to 3 neighbors via complements/builds_on outgoing edges."""
    path = [concept]
    for target, edge in graph.outgoing(concept):
        if len(path) > MAX_EXPLORATION_NEIGHBORS:
            break
        if edge.type in ('complements', 'builds_on') and target not in path:
            path.append(target)
    return path


def mastery_path(
    graph: RelationshipGraph,
    concept: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[str]:
    """
    Prerequisite chain, the concept, then what it enables; at most 6 nodes.

    The concept is always present. A long chain keeps its nearest
    prerequisites, which sit at the end of the farthest-first chain.
    """
    path: List[str] = []
    for link in build_prerequisite_chain(graph, concept, max_depth):
        if link.concept not in path:
            path.append(link.concept)
    path = path[-(MAX_MASTERY_NODES - 1):]
    path.append(concept)
    for target, _ in graph.outgoing(concept, 'enables'):
        if len(path) >= MAX_MASTERY_NODES:
            break
        if target not in path:
            path.append(target)
    return path


def application_path(graph: RelationshipGraph, concept: str) -> List[str]:
    return [concept] + [t for t, _ in graph.outgoing(concept, 'applies_to')]


def _preferred_type(expertise_level: Optional[str]) -> str:
    if expertise_level in NOVICE_LEVELS:
        return 'exploration'
    if expertise_level == 'expert':
        return 'application'
    return 'mastery'


def generate_learning_paths(
    graph: RelationshipGraph,
    concept: str,
    context: Optional[QueryContext] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[LearningPath]:
    """
    Build the three typed paths and order them for the user's expertise.

    novice -> exploration first, expert -> application first, anyone else
    -> mastery first. The remaining paths keep their natural order. An
    unknown concept has no paths.
    """
    if not graph.has_concept(concept):
        return []
    context = QueryContext.coerce(context)

    paths = [
        LearningPath(
            type='exploration',
            name='Concept Exploration Path',
            description='Discover related concepts and deepen understanding',
            difficulty='moderate',
            path=exploration_path(graph, concept),
            step_minutes=EXPLORATION_STEP,
        ),
        LearningPath(
            type='mastery',
            name='Mastery Development Path',
            description='Systematic progression toward concept mastery',
            difficulty='progressive',
            path=mastery_path(graph, concept, max_depth),
            step_minutes=MASTERY_STEP,
        ),
        LearningPath(
            type='application',
            name='Practical Application Path',
            description='Apply concepts in real teaching scenarios',
            difficulty='advanced',
            path=application_path(graph, concept),
            step_minutes=APPLICATION_STEP,
        ),
    ]
    preferred = _preferred_type(context.expertise_level)
    paths.sort(key=lambda p: p.type != preferred)
    return paths
