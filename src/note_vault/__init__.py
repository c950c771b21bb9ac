"""Local note store with password-protected notes."""

from __future__ import annotations

__all__ = ["create_application"]


def create_application(*args, **kwargs):
    from .application import create_application as _create

    return _create(*args, **kwargs)
