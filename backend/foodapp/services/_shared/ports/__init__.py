"""
Interfaces the service layer depends on; adapters live under ``foodapp.infra``.

- :class:`~.UserStore`: saves new users, safe for concurrent callers. Comes
  with the :class:`~.UserRecord` value it exchanges.
- :class:`~.TokenProvider`: mints access tokens.
"""

from __future__ import annotations

from .token_provider import TokenProvider
from .user_store import UserRecord, UserStore

__all__ = [
    "TokenProvider",
    "UserRecord",
    "UserStore",
]
