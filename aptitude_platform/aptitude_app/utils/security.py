"""JWT token helpers."""

from __future__ import annotations

from typing import Any, Dict

from flask_jwt_extended import create_access_token


def generate_access_token(user) -> str:
    """Create a JWT access token embedding the user's ID, role and level."""

    claims: Dict[str, Any] = {"role": user.role, "level": user.level}
    return create_access_token(identity=str(user.id), additional_claims=claims)
