from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blocknotes.errors import DuplicateEmail
from blocknotes.storage.database import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    # compared as-is: "A@x.io" and "a@x.io" are different accounts
    email = Column(String(254), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False)


@dataclass(frozen=True)
class UserRecord:
    id: str
    email: str
    name: str
    hashed_password: str
    created_at: datetime


def _to_record(row: UserRow) -> UserRecord:
    return UserRecord(
        id=row.id,
        email=row.email,
        name=row.name,
        hashed_password=row.password_hash,
        created_at=row.created_at,
    )


class UsersStore:
    def __init__(self, session: Session):
        self.session = session

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        row = self.session.execute(select(UserRow).where(UserRow.email == email)).scalars().first()
        if row is None:
            return None
        return _to_record(row)

    def get(self, user_id: str) -> Optional[UserRecord]:
        row = self.session.get(UserRow, user_id)
        if row is None:
            return None
        return _to_record(row)

    def create(self, email: str, name: str, hashed_password: str) -> UserRecord:
        if self.get_by_email(email) is not None:
            raise DuplicateEmail("User exists")

        row = UserRow(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            password_hash=hashed_password,
            created_at=_utc_now(),
        )
        self.session.add(row)
        try:
            self.session.commit()
        except IntegrityError:
            # lost a race against a concurrent registration
            self.session.rollback()
            raise DuplicateEmail("User exists")
        self.session.refresh(row)
        return _to_record(row)
