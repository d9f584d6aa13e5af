"""Prerequisite chain discovery over incoming prerequisite edges."""

from dataclasses import dataclass, asdict
from typing import Dict, List, Set

from graph.models import RelationshipGraph

DEFAULT_MAX_DEPTH = 5


@dataclass(frozen=True)
class PrerequisiteLink:
    concept: str
    strength: float
    depth: int
    required_for: str

    @property
    def description(self) -> str:
        return f"Understanding {self.concept} is required for {self.required_for}"

    def to_dict(self) -> Dict:
        d = asdict(self)
        d['relationship'] = 'prerequisite'
        d['description'] = self.description
        return d


def build_prerequisite_chain(
    graph: RelationshipGraph,
    concept: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[PrerequisiteLink]:
    """
    Walk incoming prerequisite edges backward, depth-first.

    Each discovered ancestor is prepended, so the chain reads farthest-first.
    The visited set (seeded with the concept itself) makes cycles terminate
    and keeps every concept to a single entry; ancestors deeper than
    `max_depth` are not explored.

    Returns:
        List of PrerequisiteLink, farthest prerequisite first.
    """
    chain: List[PrerequisiteLink] = []
    visited: Set[str] = {concept}

    def walk(current: str, depth: int) -> None:
        if depth >= max_depth:
            return
        for source, edge in graph.incoming(current, 'prerequisite'):
            if source in visited:
                continue
            visited.add(source)
            chain.insert(0, PrerequisiteLink(
                concept=source,
                strength=edge.weight,
                depth=depth + 1,
                required_for=current,
            ))
            walk(source, depth + 1)

    if graph.has_concept(concept):
        walk(concept, 0)
    return chain


def chain_concepts(chain: List[PrerequisiteLink]) -> List[str]:
    return [link.concept for link in chain]
