"""Persistent store adapters."""

from .client import SupabaseMatchStore

__all__ = ["SupabaseMatchStore"]
