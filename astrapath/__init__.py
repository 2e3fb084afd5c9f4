"""AstraPath Safe Companion: distress detection and escalation core."""

__version__ = "0.1.0"
