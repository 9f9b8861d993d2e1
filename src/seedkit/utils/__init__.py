"""Small helpers shared across seedkit modules."""

from .slug import slugify

__all__ = ["slugify"]
