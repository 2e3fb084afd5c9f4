"""Distress detection for AstraPath."""

from .classifier import KeywordClassifier, classify

__all__ = [
    "KeywordClassifier",
    "classify",
]
