"""Configuration for the knowledge engine."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from retrieval.types import ScoringWeights


@dataclass
class Settings:
    """
    Data file locations, cache sizing and scoring weights.

    Defaults resolve relative to the project root.
    Every field is overridable at construction for testing.
    """
    corpus_path: Optional[Path] = None
    relationships_path: Optional[Path] = None
    cache_capacity: int = 100
    default_max_results: int = 3
    relevant_topics_limit: int = 5
    prerequisite_max_depth: int = 5
    usage_window: int = 100  # retained measurements per passive counter
    weights: ScoringWeights = field(default_factory=ScoringWeights)

    def __post_init__(self):
        project_root = Path(__file__).resolve().parent.parent

        if self.corpus_path is None:
            env_corpus = os.environ.get("KNOWLEDGE_CORPUS_PATH")
            self.corpus_path = (Path(env_corpus) if env_corpus
                                else project_root / "data" / "framework-knowledge.json")
        self.corpus_path = Path(self.corpus_path)

        # No relationships file means the built-in table is used
        if self.relationships_path is None:
            env_rel = os.environ.get("KNOWLEDGE_RELATIONSHIPS_PATH")
            if env_rel:
                self.relationships_path = Path(env_rel)
        if self.relationships_path is not None:
            self.relationships_path = Path(self.relationships_path)

        env_cache = os.environ.get("QUERY_CACHE_SIZE")
        if env_cache is not None:
            try:
                self.cache_capacity = int(env_cache)
            except ValueError:
                pass
        env_depth = os.environ.get("PREREQUISITE_MAX_DEPTH")
        if env_depth is not None:
            try:
                self.prerequisite_max_depth = int(env_depth)
            except ValueError:
                pass
        env_k = os.environ.get("DEFAULT_MAX_RESULTS")
        if env_k is not None:
            try:
                self.default_max_results = int(env_k)
            except ValueError:
                pass

        if self.cache_capacity < 1:
            self.cache_capacity = 1
