from . import contact, health, resume

__all__ = ["contact", "health", "resume"]
