"""Smile Forward: AI smile makeover lead-generation service."""

__version__ = "0.1.0"
