"""Load the static corpus and relationship table from JSON / JSONL files."""

import json
from pathlib import Path
from typing import Any, Dict, List

from graph.models import RelationshipTableError
from retrieval.types import CorpusError


def load_corpus(path: Path) -> List[Dict[str, Any]]:
    """
    Read topic records.

    Accepts a JSON file holding either a list of topics or
    {"knowledge_base": {"topics": [...]}}, or a JSONL file with one topic per
    line. Records are returned raw; validation happens at index build.

    Raises:
        CorpusError: missing or unreadable file, invalid JSON or encoding,
                     or unexpected structure.
    """
    path = Path(path)
    if not path.exists():
        raise CorpusError(f"Corpus file not found: {path}")

    try:
        if path.suffix == '.jsonl':
            topics = []
            with open(path, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    topics.append(json.loads(line))
            return topics

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CorpusError(f"Invalid JSON in {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise CorpusError(f"Corpus file {path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise CorpusError(f"Cannot read corpus file {path}: {e}") from e

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        kb = data.get('knowledge_base', data)
        topics = kb.get('topics') if isinstance(kb, dict) else None
        if isinstance(topics, list):
            return topics
    raise CorpusError(f"No topic list found in {path}")


def load_relationships(path: Path) -> Dict[str, Dict[str, List[str]]]:
    """
    Read {concept: {relation_type: [target, ...]}} from a JSON file.

    Raises:
        RelationshipTableError: missing or unreadable file, invalid JSON or
                                encoding, or not a mapping.
    """
    path = Path(path)
    if not path.exists():
        raise RelationshipTableError(f"Relationship table not found: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise RelationshipTableError(f"Invalid JSON in {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise RelationshipTableError(f"Relationship table {path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise RelationshipTableError(f"Cannot read relationship table {path}: {e}") from e

    if not isinstance(data, dict):
        raise RelationshipTableError(f"Relationship table in {path} must be an object")
    return data.get('relationships', data)
