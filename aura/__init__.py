"""AURA completion broker: goal extraction and dialogue over cascading AI providers."""

__version__ = "1.0.0"
