"""Supabase-backed record store."""

from .client import SupabaseClient

__all__ = ["SupabaseClient"]
