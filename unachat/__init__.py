"""unachat - Realtime chat relay with safe rich-media message rendering."""

from .classifier import MediaClassification, MediaClassifier, MediaKind, classify
from .composer import Envelope, MalformedEnvelopeError, compose
from .renderer import render
from .sanitizer import sanitize
from .scanner import UrlToken, find_urls, process

__version__ = "1.0.0"

__all__ = [
    "Envelope",
    "MalformedEnvelopeError",
    "MediaClassification",
    "MediaClassifier",
    "MediaKind",
    "UrlToken",
    "classify",
    "compose",
    "find_urls",
    "process",
    "render",
    "sanitize",
]
