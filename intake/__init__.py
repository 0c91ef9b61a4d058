"""Contact and internship-application intake service with resume storage."""

__version__ = "1.0.0"
