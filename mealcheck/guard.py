"""Request guard for routes that need an authenticated user."""

from __future__ import annotations

from functools import wraps
from typing import Callable, Optional

from flask import g, request

from mealcheck.errors import Unauthenticated
from mealcheck.security import TokenIssuer

TOKEN_HEADER = "x-auth-token"


def _read_token() -> Optional[str]:
  token = request.headers.get(TOKEN_HEADER, "").strip()
  if token:
    return token

  auth_header = request.headers.get("Authorization", "")
  if auth_header.startswith("Bearer "):
    return auth_header.split(" ", 1)[1].strip() or None
  return None


def make_auth_guard(tokens: TokenIssuer) -> Callable[[Callable], Callable]:
  """Return a view decorator that rejects requests without a valid token.

  The decoded user id is exposed to the view as ``flask.g.user_id``.
  """

  def auth_required(view: Callable) -> Callable:
    @wraps(view)
    def wrapper(*args, **kwargs):
      token = _read_token()
      if not token:
        raise Unauthenticated("No token, authorization denied")
      g.user_id = tokens.user_id_from(token)
      return view(*args, **kwargs)

    return wrapper

  return auth_required


__all__ = ["make_auth_guard", "TOKEN_HEADER"]
