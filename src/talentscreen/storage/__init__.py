"""Persistence layer for screening sessions and candidates."""

from .base import ScreeningStore
from .sql import SqlScreeningStore

__all__ = ["ScreeningStore", "SqlScreeningStore"]
