"""Concept extraction, relevance scoring and per-conversation concept memory."""

from context_engine.concepts.extractor import extract_concepts, extract_keywords
from context_engine.concepts.memory import ConceptMemory
from context_engine.concepts.scoring import mean_relevance, weighted_relevance

__all__ = [
    "ConceptMemory",
    "extract_concepts",
    "extract_keywords",
    "mean_relevance",
    "weighted_relevance",
]
