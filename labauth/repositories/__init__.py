"""
Repository Layer Package.

Provides data-access abstractions over the hosted Supabase tables.
All table operations flow through repositories; services never build
PostgREST queries directly.

Usage:
    from labauth.repositories.user_repository import UserRepository
"""

from labauth.repositories.base_repository import BaseRepository
from labauth.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
]
