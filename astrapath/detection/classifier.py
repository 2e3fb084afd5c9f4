"""Distress keyword classifier."""

import logging
from typing import Iterable, Optional

from ..config import DEFAULT_KEYWORDS

logger = logging.getLogger(__name__)


class KeywordClassifier:
    """Matches transcripts against a fixed set of distress keywords."""

    def __init__(self, keywords: Optional[Iterable[str]] = None):
        """Initialize classifier.

        Args:
            keywords: Trigger phrases; defaults to "help", "stop", "leave me"
        """
        source = DEFAULT_KEYWORDS if keywords is None else keywords
        self.keywords = tuple(k.lower().strip() for k in source if k and k.strip())
        if not self.keywords:
            raise ValueError("KeywordClassifier needs at least one keyword")
        logger.debug(f"KeywordClassifier initialized with keywords: {self.keywords}")

    def classify(self, transcript: str) -> bool:
        """Return True if the transcript contains any keyword as a substring."""
        return bool(self.matched_keywords(transcript))

    def matched_keywords(self, transcript: str) -> list:
        """Return the keywords found in the transcript, in configured order."""
        if not transcript:
            return []
        normalized = transcript.lower().strip()
        return [keyword for keyword in self.keywords if keyword in normalized]


_default_classifier = KeywordClassifier()


def classify(transcript: str) -> bool:
    """Classify a transcript against the default keyword set."""
    return _default_classifier.classify(transcript)
