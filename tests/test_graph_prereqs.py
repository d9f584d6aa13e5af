"""Tests for graph/prereqs.py -- backward prerequisite chains."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from graph.models import build_graph
from graph.prereqs import build_prerequisite_chain, chain_concepts


def _linear_chain(n):
    """c0 requires c1, c1 requires c2, ... c{n-1} requires c{n}."""
    return build_graph({f"c{i}": {'prerequisite': [f"c{i + 1}"]} for i in range(n)})


def test_single_prerequisite():
    g = build_graph({'joint_construction': {'prerequisite': ['modeling']}})
    assert chain_concepts(build_prerequisite_chain(g, 'joint_construction')) == ['modeling']


def test_chain_is_farthest_first():
    g = build_graph({
        'independent_construction': {'prerequisite': ['joint_construction']},
        'joint_construction': {'prerequisite': ['modeling']},
    })
    chain = build_prerequisite_chain(g, 'independent_construction')
    assert chain_concepts(chain) == ['modeling', 'joint_construction']
    assert [link.depth for link in chain] == [2, 1]
    assert chain[0].required_for == 'joint_construction'


def test_cycle_terminates_without_duplicates():
    g = build_graph({'a': {'prerequisite': ['b']}, 'b': {'prerequisite': ['a']}})
    assert chain_concepts(build_prerequisite_chain(g, 'a')) == ['b']
    assert chain_concepts(build_prerequisite_chain(g, 'b')) == ['a']


def test_diamond_lists_shared_ancestor_once():
    g = build_graph({
        'top': {'prerequisite': ['left', 'right']},
        'left': {'prerequisite': ['base']},
        'right': {'prerequisite': ['base']},
    })
    names = chain_concepts(build_prerequisite_chain(g, 'top'))
    assert sorted(names) == ['base', 'left', 'right']
    assert 'top' not in names


def test_depth_bound():
    """Ancestors deeper than max_depth are not explored."""
    g = _linear_chain(8)
    assert chain_concepts(build_prerequisite_chain(g, 'c0')) == ['c5', 'c4', 'c3', 'c2', 'c1']
    assert chain_concepts(build_prerequisite_chain(g, 'c0', max_depth=2)) == ['c2', 'c1']


def test_unknown_concept_has_no_chain():
    g = _linear_chain(2)
    assert build_prerequisite_chain(g, 'nothing') == []


def test_link_serialization():
    g = build_graph({'joint_construction': {'prerequisite': ['modeling']}})
    d = build_prerequisite_chain(g, 'joint_construction')[0].to_dict()
    assert d['relationship'] == 'prerequisite'
    assert d['strength'] == 0.9
    assert d['description'] == 'Understanding modeling is required for joint_construction'
