"""
Registration and login on top of the configured record store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from mealcheck.errors import InvalidCredentials, NotFound, ValidationError
from mealcheck.models import User
from mealcheck.security import TokenIssuer, hash_password, verify_password
from mealcheck.stores.base import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
  token: str
  user: User

  def to_json(self) -> Dict[str, Any]:
    return {"token": self.token, "user": self.user.public()}


def _read_credentials(payload: Any) -> tuple[str, str]:
  if not isinstance(payload, dict):
    raise ValidationError("Username and password are required")
  username = payload.get("username")
  password = payload.get("password")
  if not isinstance(username, str) or not isinstance(password, str):
    raise ValidationError("Username and password are required")
  username = username.strip()
  if not username or not password:
    raise ValidationError("Username and password are required")
  return username, password


class AccountService:
  def __init__(self, store: RecordStore, tokens: TokenIssuer) -> None:
    self.store = store
    self.tokens = tokens

  def register(self, payload: Any) -> Session:
    """Create a user from a JSON body and hand back a fresh session.

    Raises :class:`ConflictError` when the username is already taken.
    """
    username, password = _read_credentials(payload)
    user = self.store.create_user(username, hash_password(password))
    logger.info("Registered user %s", user.id)
    return Session(token=self.tokens.issue(user.id), user=user)

  def login(self, payload: Any) -> Session:
    username, password = _read_credentials(payload)
    user = self.store.find_user_by_username(username)
    if user is None or not verify_password(user.password_hash, password):
      logger.info("Rejected login for username %r", username)
      raise InvalidCredentials()
    return Session(token=self.tokens.issue(user.id), user=user)

  def current_user(self, user_id: str) -> User:
    user = self.store.find_user_by_id(user_id)
    if user is None:
      raise NotFound("User not found")
    return user


__all__ = ["AccountService", "Session"]
