"""Version 1 routes: health, login/identity and user management."""

from __future__ import annotations

from flask import Blueprint

from foodapp.api.v1 import auth, health, users

API_VERSION = "v1"

REGISTRY: tuple[tuple[Blueprint, str], ...] = (
    (health.bp, ""),
    (auth.bp, "auth"),
    (users.bp, "users"),
)
