"""Data models and the directed, typed, weighted concept-relationship graph."""

import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

logger = logging.getLogger("tlc.graph")

DEFAULT_COMPLEXITY = 5

# table entries of these types name the edge source, not the target
SOURCE_LISTED_TYPES = frozenset({'prerequisite'})


class RelationshipTableError(ValueError):
    """Raised when a relationship table cannot be parsed."""


@dataclass(frozen=True)
class RelationType:
    """A relationship kind with its configured weight and directionality."""
    name: str
    label: str
    description: str
    weight: float
    bidirectional: bool = False

    @property
    def direction(self) -> str:
        return 'bidirectional' if self.bidirectional else 'unidirectional'


RELATION_TYPES: Dict[str, RelationType] = {
    'prerequisite': RelationType(
        'prerequisite', 'Prerequisite',
        'Concept A must be understood before concept B', 0.9),
    'builds_on': RelationType(
        'builds_on', 'Builds On',
        'Concept B extends or builds upon concept A', 0.8),
    'complements': RelationType(
        'complements', 'Complements',
        'Concepts work together synergistically', 0.7, bidirectional=True),
    'contrasts': RelationType(
        'contrasts', 'Contrasts',
        'Concepts highlight differences when compared', 0.6, bidirectional=True),
    'applies_to': RelationType(
        'applies_to', 'Applies To',
        'Concept A is applied within context B', 0.8),
    'exemplifies': RelationType(
        'exemplifies', 'Exemplifies',
        'Concept A is an example of concept B', 0.7),
    'enables': RelationType(
        'enables', 'Enables',
        'Concept A enables or facilitates concept B', 0.8),
}


@dataclass(frozen=True)
class Edge:
    """One direction of a relationship, stored in an adjacency map."""
    type: str
    weight: float
    bidirectional: bool = False


@dataclass
class ConceptMetadata:
    complexity: int = DEFAULT_COMPLEXITY
    frequency: int = 0
    mastery_indicators: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class ConceptNode:
    """A concept with separate outgoing and incoming adjacency maps."""
    concept_id: str
    outgoing: Dict[str, Edge] = field(default_factory=dict)   # target -> Edge
    incoming: Dict[str, Edge] = field(default_factory=dict)   # source -> Edge
    metadata: ConceptMetadata = field(default_factory=ConceptMetadata)

    def outgoing_of_type(self, rel_type: str) -> List[Tuple[str, Edge]]:
        return [(t, e) for t, e in self.outgoing.items() if e.type == rel_type]

    def incoming_of_type(self, rel_type: str) -> List[Tuple[str, Edge]]:
        return [(s, e) for s, e in self.incoming.items() if e.type == rel_type]


class RelationshipGraph:
    """
    In-memory concept graph.

    Nodes are created lazily on first edge reference. Each ordered
    (source, target) pair holds at most one edge; a later relationship for
    the same pair replaces the earlier one. Bidirectional types are always
    mirrored with the same type and weight; replacing either half of a
    mirrored edge removes the other half.
    """

    def __init__(
        self,
        relation_types: Optional[Mapping[str, RelationType]] = None,
        complexity: Optional[Mapping[str, int]] = None,
        mastery_indicators: Optional[Mapping[str, List[str]]] = None,
    ):
        self.relation_types: Dict[str, RelationType] = dict(relation_types or RELATION_TYPES)
        self._complexity = dict(complexity or {})
        self._indicators = dict(mastery_indicators or {})
        self._nodes: Dict[str, ConceptNode] = {}

    # -- Nodes --

    def ensure_concept(self, concept_id: str) -> ConceptNode:
        node = self._nodes.get(concept_id)
        if node is None:
            node = ConceptNode(
                concept_id=concept_id,
                metadata=ConceptMetadata(
                    complexity=self._complexity.get(concept_id, DEFAULT_COMPLEXITY),
                    mastery_indicators=list(self._indicators.get(concept_id, [])),
                ),
            )
            self._nodes[concept_id] = node
        return node

    def get_concept(self, concept_id: str) -> Optional[ConceptNode]:
        return self._nodes.get(concept_id)

    def has_concept(self, concept_id: str) -> bool:
        return concept_id in self._nodes

    def concepts(self) -> Iterator[str]:
        return iter(self._nodes)

    def count_concepts(self) -> int:
        return len(self._nodes)

    def count_edges(self) -> int:
        return sum(len(n.outgoing) for n in self._nodes.values())

    # -- Edges --

    def add_relationship(self, source: str, target: str, rel_type: str) -> bool:
        """
        Insert source -> target of the given type.

        Returns False (and logs) for an undefined relation type.
        """
        rtype = self.relation_types.get(rel_type)
        if rtype is None:
            logger.warning("Skipping relationship %s -> %s: unknown type %r",
                           source, target, rel_type)
            return False

        src = self.ensure_concept(source)
        dst = self.ensure_concept(target)
        edge = Edge(type=rel_type, weight=rtype.weight, bidirectional=rtype.bidirectional)

        previous = src.outgoing.get(target)
        if previous is not None and previous.bidirectional:
            # the mirror half goes with it
            dst.outgoing.pop(source, None)
            src.incoming.pop(target, None)
            logger.debug("Relationship %s <-> %s (%s) replaced by %s",
                         source, target, previous.type, rel_type)

        src.outgoing[target] = edge
        dst.incoming[source] = edge
        if rtype.bidirectional:
            dst.outgoing[source] = edge
            src.incoming[target] = edge
        return True

    def outgoing(self, concept_id: str, rel_type: Optional[str] = None) -> List[Tuple[str, Edge]]:
        node = self._nodes.get(concept_id)
        if node is None:
            return []
        if rel_type is None:
            return list(node.outgoing.items())
        return node.outgoing_of_type(rel_type)

    def incoming(self, concept_id: str, rel_type: Optional[str] = None) -> List[Tuple[str, Edge]]:
        node = self._nodes.get(concept_id)
        if node is None:
            return []
        if rel_type is None:
            return list(node.incoming.items())
        return node.incoming_of_type(rel_type)

    def edge(self, source: str, target: str) -> Optional[Edge]:
        node = self._nodes.get(source)
        return node.outgoing.get(target) if node else None

    def metadata(self, concept_id: str) -> Optional[ConceptMetadata]:
        node = self._nodes.get(concept_id)
        return node.metadata if node else None


def build_graph(
    table: Mapping,
    relation_types: Optional[Mapping[str, RelationType]] = None,
    complexity: Optional[Mapping[str, int]] = None,
    mastery_indicators: Optional[Mapping[str, List[str]]] = None,
) -> RelationshipGraph:
    """
    Build a graph from {concept: {relation_type: [target, ...]}}.

    A prerequisite entry lists what the concept requires, so
    {X: {'prerequisite': [Y]}} becomes the edge Y -> X. Entries with an
    unknown relation type are skipped with a warning.

    Raises:
        RelationshipTableError: the table is not a mapping of mappings of lists.
    """
    if not isinstance(table, Mapping):
        raise RelationshipTableError(
            f"Relationship table must be a mapping, got {type(table).__name__}")

    graph = RelationshipGraph(relation_types, complexity, mastery_indicators)
    for concept, relationships in table.items():
        if not isinstance(relationships, Mapping):
            raise RelationshipTableError(
                f"Relationships for {concept!r} must be a mapping")
        graph.ensure_concept(concept)
        for rel_type, targets in relationships.items():
            if isinstance(targets, str) or not isinstance(targets, (list, tuple)):
                raise RelationshipTableError(
                    f"Targets for {concept!r}.{rel_type} must be a list")
            for target in targets:
                if rel_type in SOURCE_LISTED_TYPES:
                    graph.add_relationship(str(target), concept, rel_type)
                else:
                    graph.add_relationship(concept, str(target), rel_type)

    logger.info("Knowledge graph initialized with %d concepts, %d edges",
                graph.count_concepts(), graph.count_edges())
    return graph
