"""Neighbor queries: complements, application contexts, direct relationships."""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Mapping, Optional

from graph.defaults import DEFAULT_RELEVANCE, SUBJECT_RELEVANCE
from graph.models import RelationshipGraph
from retrieval.types import QueryContext
from retrieval.vocabulary import NOVICE_LEVELS

SYNERGY_SCALE = 5.0

_DESCRIPTION_TEMPLATES = {
    'prerequisite': '{source} is required before learning {target}',
    'builds_on': '{target} builds upon concepts from {source}',
    'complements': '{source} complements and enhances {target}',
    'applies_to': '{source} is applied within {target}',
    'enables': '{source} enables or facilitates {target}',
}


def describe_relationship(source: str, target: str, rel_type: str) -> str:
    template = _DESCRIPTION_TEMPLATES.get(rel_type, '{source} relates to {target}')
    return template.format(source=source, target=target)


@dataclass
class ComplementaryConcept:
    concept: str
    strength: float
    synergy: float
    description: str
    application_suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        d = asdict(self)
        d['relationship'] = 'complements'
        return d


@dataclass
class ApplicationContext:
    context: str
    applicability: float
    relevance_to_user: float
    description: str
    examples: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class DirectRelationship:
    source: str
    target: str
    type: str
    strength: float
    direction: str  # outgoing | incoming

    @property
    def description(self) -> str:
        return describe_relationship(self.source, self.target, self.type)

    def to_dict(self) -> Dict:
        d = asdict(self)
        d['description'] = self.description
        return d


def concept_synergy(graph: RelationshipGraph, a: str, b: str) -> float:
    """Shared outgoing neighbors of a and b, divided by 5, capped at 1."""
    node_a = graph.get_concept(a)
    node_b = graph.get_concept(b)
    if node_a is None or node_b is None:
        return 0.0
    shared = set(node_a.outgoing) & set(node_b.outgoing)
    return min(len(shared) / SYNERGY_SCALE, 1.0)


def find_complementary_concepts(graph: RelationshipGraph, concept: str) -> List[ComplementaryConcept]:
    """Complements of a concept, highest synergy (then strength) first."""
    found = []
    for target, edge in graph.outgoing(concept, 'complements'):
        found.append(ComplementaryConcept(
            concept=target,
            strength=edge.weight,
            synergy=concept_synergy(graph, concept, target),
            description=f"{concept} and {target} work together to enhance learning effectiveness",
            application_suggestions=[
                f"Use {concept} alongside {target} in lesson planning",
                "Combine strategies from both concepts for maximum impact",
            ],
        ))
    found.sort(key=lambda c: (-c.synergy, -c.strength))
    return found


def user_relevance(
    target: str,
    context: QueryContext,
    relevance: Mapping[str, Mapping[str, float]] = SUBJECT_RELEVANCE,
) -> float:
    if not context.subject:
        return DEFAULT_RELEVANCE
    return relevance.get(context.subject.lower(), {}).get(target, DEFAULT_RELEVANCE)


def find_application_contexts(
    graph: RelationshipGraph,
    concept: str,
    context: Optional[QueryContext] = None,
) -> List[ApplicationContext]:
    """applies_to targets, by applicability then relevance to the user's subject."""
    context = QueryContext.coerce(context)
    found = []
    for target, edge in graph.outgoing(concept, 'applies_to'):
        found.append(ApplicationContext(
            context=target,
            applicability=edge.weight,
            relevance_to_user=user_relevance(target, context),
            description=f"{concept} is particularly effective when applied in {target}",
            examples=[f"Example application of {concept} in {target}"],
        ))
    found.sort(key=lambda a: (-a.applicability, -a.relevance_to_user))
    return found


def get_direct_relationships(graph: RelationshipGraph, concept: str) -> List[DirectRelationship]:
    """Outgoing then incoming edges, strongest first."""
    rels = [DirectRelationship(concept, t, e.type, e.weight, 'outgoing')
            for t, e in graph.outgoing(concept)]
    rels += [DirectRelationship(s, concept, e.type, e.weight, 'incoming')
             for s, e in graph.incoming(concept)]
    rels.sort(key=lambda r: -r.strength)
    return rels


def find_related_concepts(
    graph: RelationshipGraph,
    concept: str,
    rel_type: Optional[str] = None,
    max_results: int = 5,
) -> List[Dict]:
    """
    Concepts on the other end of the strongest direct relationships.

    Incoming edges report the source, so a concept never lists itself.
    """
    rels = get_direct_relationships(graph, concept)
    if rel_type:
        rels = [r for r in rels if r.type == rel_type]
    return [
        {
            'concept': r.target if r.direction == 'outgoing' else r.source,
            'relationship_type': r.type,
            'direction': r.direction,
            'strength': r.strength,
            'description': r.description,
        }
        for r in rels[:max(max_results, 0)]
    ]


def context_relevance(rel_type: str, context: QueryContext) -> float:
    if context.expertise_level in NOVICE_LEVELS and rel_type == 'prerequisite':
        return 0.9
    if context.expertise_level == 'expert' and rel_type == 'enables':
        return 0.9
    return 0.7


def calculate_relationship_strengths(
    graph: RelationshipGraph,
    concept: str,
    context: Optional[QueryContext] = None,
) -> Dict[str, Dict]:
    """Per relation type: average outgoing strength, count, context relevance."""
    context = QueryContext.coerce(context)
    strengths: Dict[str, Dict] = {}
    for rel_type in graph.relation_types:
        edges = graph.outgoing(concept, rel_type)
        if not edges:
            continue
        strengths[rel_type] = {
            'average_strength': sum(e.weight for _, e in edges) / len(edges),
            'count': len(edges),
            'context_relevance': context_relevance(rel_type, context),
        }
    return strengths


def navigation_recommendations(context: Optional[QueryContext] = None) -> List[str]:
    context = QueryContext.coerce(context)
    recs = []
    if context.expertise_level in NOVICE_LEVELS:
        recs.append('Start with prerequisite concepts before advancing')
        recs.append('Focus on foundational understanding')
    elif context.expertise_level == 'expert':
        recs.append('Explore advanced applications and extensions')
        recs.append('Consider mentoring others in this area')
    if context.subject:
        recs.append(f"Explore {context.subject}-specific applications")
    return recs
