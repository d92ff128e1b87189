from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blocknotes.errors import InvalidCredentials, PersistenceFailure
from blocknotes.storage.database import get_db
from blocknotes.storage.users_store import UserRecord, UsersStore
from blocknotes.utils.auth_hash import DUMMY_HASH, hash_password, verify_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublicUser:
    """The part of a user record that may leave the server."""

    id: str
    email: str
    name: str
    created_at: datetime

    @classmethod
    def from_record(cls, rec: UserRecord) -> "PublicUser":
        return cls(id=rec.id, email=rec.email, name=rec.name, created_at=rec.created_at)

    def to_dict(self) -> dict[str, Any]:
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "created_at": created.isoformat(timespec="microseconds"),
        }


class UsersService:
    def __init__(self, store: UsersStore):
        self.store = store

    def register(self, email: str, password: str, name: str = "") -> PublicUser:
        hpw = hash_password(password)  # never store the plaintext
        try:
            rec = self.store.create(email=email, name=name or "", hashed_password=hpw)
        except SQLAlchemyError as exc:
            logger.error("Failed to register user: %s", exc)
            self.store.session.rollback()
            raise PersistenceFailure("Registration failed")
        return PublicUser.from_record(rec)

    def login(self, email: str, password: str) -> PublicUser:
        try:
            rec = self.store.get_by_email(email)
        except SQLAlchemyError as exc:
            logger.error("Failed to look up user: %s", exc)
            self.store.session.rollback()
            raise PersistenceFailure("Login failed")

        matched = verify_password(password, rec.hashed_password if rec is not None else DUMMY_HASH)
        if rec is None or not matched:
            logger.info("Rejected login attempt")
            raise InvalidCredentials("Invalid credentials")
        return PublicUser.from_record(rec)


def get_users_service(db: Session = Depends(get_db)) -> UsersService:
    return UsersService(UsersStore(db))
