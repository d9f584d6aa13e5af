"""Tests for graph/related.py -- complements, applications, direct relationships."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from graph.defaults import DEFAULT_RELATIONSHIPS
from graph.models import build_graph
from graph.related import (
    calculate_relationship_strengths, concept_synergy, context_relevance, describe_relationship,
    find_application_contexts, find_complementary_concepts, find_related_concepts,
    get_direct_relationships, navigation_recommendations,
)
from retrieval.types import QueryContext


def _synergy_graph():
    """a complements b and c; a and b share two outgoing neighbors."""
    return build_graph({
        'a': {'complements': ['b', 'c'], 'builds_on': ['x', 'y']},
        'b': {'builds_on': ['x', 'y']},
    })


# ============================================================================
# SYNERGY AND COMPLEMENTS
# ============================================================================

def test_synergy_counts_shared_outgoing_neighbors():
    g = _synergy_graph()
    # shared: x, y
    assert concept_synergy(g, 'a', 'b') == pytest.approx(0.4)
    assert concept_synergy(g, 'a', 'c') == 0.0
    assert concept_synergy(g, 'a', 'missing') == 0.0


def test_synergy_capped_at_one():
    targets = [f"t{i}" for i in range(7)]
    g = build_graph({'a': {'builds_on': targets}, 'b': {'builds_on': targets}})
    assert concept_synergy(g, 'a', 'b') == 1.0


def test_complements_sorted_by_synergy():
    found = find_complementary_concepts(_synergy_graph(), 'a')
    assert [c.concept for c in found] == ['b', 'c']
    assert found[0].strength == 0.7
    assert found[0].to_dict()['relationship'] == 'complements'


def test_complements_of_unknown_concept():
    assert find_complementary_concepts(_synergy_graph(), 'nothing') == []


# ============================================================================
# APPLICATION CONTEXTS
# ============================================================================

def test_application_contexts_use_subject_relevance():
    g = build_graph({'modeling': {'applies_to': ['skill_demonstration', 'text_deconstruction']}})
    found = find_application_contexts(g, 'modeling', QueryContext(subject='English'))
    # equal applicability, so user relevance decides
    assert [a.context for a in found] == ['text_deconstruction', 'skill_demonstration']
    assert found[0].relevance_to_user == 0.9
    assert found[1].relevance_to_user == 0.5


def test_application_contexts_without_subject():
    found = find_application_contexts(build_graph(DEFAULT_RELATIONSHIPS), 'field_building')
    assert {a.context for a in found} == {'lesson_introduction', 'unit_beginning'}
    assert all(a.relevance_to_user == 0.5 for a in found)


# ============================================================================
# DIRECT RELATIONSHIPS
# ============================================================================

def test_direct_relationships_strongest_first():
    g = build_graph({
        'joint_construction': {'prerequisite': ['modeling'], 'complements': ['feedback']},
    })
    rels = get_direct_relationships(g, 'joint_construction')
    assert rels[0].type == 'prerequisite'
    assert rels[0].direction == 'incoming'
    assert [r.strength for r in rels] == sorted((r.strength for r in rels), reverse=True)


def test_find_related_concepts_never_lists_itself():
    g = build_graph({'a': {'prerequisite': ['p'], 'enables': ['e'], 'complements': ['c']}})
    related = find_related_concepts(g, 'a')
    names = [r['concept'] for r in related]
    assert 'a' not in names
    assert set(names) == {'p', 'e', 'c'}


def test_find_related_concepts_filter_and_limit():
    g = build_graph(DEFAULT_RELATIONSHIPS)
    related = find_related_concepts(g, 'modeling', 'enables', max_results=1)
    assert len(related) == 1
    assert related[0]['relationship_type'] == 'enables'
    assert find_related_concepts(g, 'modeling', max_results=0) == []


def test_describe_relationship():
    assert describe_relationship('a', 'b', 'prerequisite') == 'a is required before learning b'
    assert describe_relationship('a', 'b', 'contrasts') == 'a relates to b'


# ============================================================================
# STRENGTHS AND NAVIGATION
# ============================================================================

def test_relationship_strengths_per_type():
    g = build_graph(DEFAULT_RELATIONSHIPS)
    strengths = calculate_relationship_strengths(g, 'modeling', {'expertiseLevel': 'expert'})
    assert strengths['enables']['count'] == 2
    assert strengths['enables']['average_strength'] == pytest.approx(0.8)
    assert strengths['enables']['context_relevance'] == 0.9
    assert strengths['builds_on']['context_relevance'] == 0.7
    assert 'prerequisite' not in strengths


def test_navigation_recommendations():
    recs = navigation_recommendations(QueryContext(subject='science', expertise_level='novice'))
    assert recs[0] == 'Start with prerequisite concepts before advancing'
    assert recs[-1] == 'Explore science-specific applications'
    assert navigation_recommendations(None) == []


def test_beginner_is_treated_as_novice():
    ctx = QueryContext(expertise_level='beginner')
    assert context_relevance('prerequisite', ctx) == 0.9
    assert navigation_recommendations(ctx)[0] == 'Start with prerequisite concepts before advancing'
