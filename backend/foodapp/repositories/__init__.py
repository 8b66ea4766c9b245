"""Repository package exposing persistence-layer access for domain models."""

from __future__ import annotations

from foodapp.repositories.base import BaseRepository, Page, Pagination, order_clauses
from foodapp.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "Page",
    "Pagination",
    "order_clauses",
    "UserRepository",
]
