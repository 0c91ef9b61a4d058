"""
ORM models in one place.

Usage:
    from intake.models import BlobFile, Submission
"""

from .blob import BlobChunk, BlobFile
from .submission import Submission

__all__ = [
    "BlobChunk",
    "BlobFile",
    "Submission",
]
