"""
Password hashing and signed bearer tokens.

Hashing is delegated to ``werkzeug.security`` (salted) and tokens to PyJWT
(HS256). Tokens embed the user id and expire after a fixed duration.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError
from werkzeug.security import check_password_hash, generate_password_hash

from mealcheck.errors import Unauthenticated

JWT_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
  return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
  if not password_hash:
    return False
  return check_password_hash(password_hash, password)


class TokenIssuer:
  """Issue and verify the signed tokens handed out at login."""

  def __init__(self, secret: str, expiration: timedelta = timedelta(hours=24)) -> None:
    if not secret:
      raise ValueError("Token signing secret must not be empty.")
    self._secret = secret
    self.expiration = expiration

  def issue(self, user_id: str) -> str:
    """Return a signed token for ``user_id``."""
    issued_at = datetime.now(timezone.utc)
    payload = {
      "id": user_id,
      "sub": user_id,
      "iat": issued_at,
      "exp": issued_at + self.expiration,
    }
    return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

  def decode(self, token: str) -> Dict[str, Any]:
    """Return the claims of ``token`` or raise :class:`Unauthenticated`."""
    try:
      claims = jwt.decode(
        token,
        self._secret,
        algorithms=[JWT_ALGORITHM],
        options={"require": ["exp", "sub"]},
      )
    except ExpiredSignatureError as exc:
      raise Unauthenticated("Token has expired") from exc
    except InvalidTokenError as exc:
      raise Unauthenticated("Token is not valid") from exc
    return claims

  def user_id_from(self, token: str) -> str:
    claims = self.decode(token)
    user_id = claims.get("id") or claims.get("sub")
    if not user_id:
      raise Unauthenticated("Token is not valid")
    return str(user_id)


__all__ = ["hash_password", "verify_password", "TokenIssuer", "JWT_ALGORITHM"]
