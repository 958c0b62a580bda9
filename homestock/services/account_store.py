"""Account persistence on top of a SQLAlchemy session"""
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from homestock.errors.exceptions import InternalFailureException
from homestock.models.user import User, normalize_email

logger = logging.getLogger(__name__)


class AccountStore:
    """
    Key-indexed record store for ``User`` rows.

    Every write commits immediately; on a database error the session is
    rolled back and InternalFailureException is raised, so callers never see
    a half-written account.
    """

    def __init__(self, db: Session):
        self.db = db

    # ── reads ─────────────────────────────────────────────────

    def find_by_email(self, email: str) -> Optional[User]:
        return self._query(lambda: self.db.query(User).filter(User.email == normalize_email(email)).first())

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._query(lambda: self.db.query(User).filter(User.id == user_id).first())

    def find_by_email_or_google_id(self, email: str, google_id: str) -> Optional[User]:
        """
        Single disjunctive lookup used by Google login. When the two keys hit
        different rows, the row owning *google_id* wins.
        """
        email = normalize_email(email)

        def run():
            rows = (
                self.db.query(User)
                .filter(or_(User.email == email, User.google_id == google_id))
                .all()
            )
            if not rows:
                return None
            for row in rows:
                if row.google_id == google_id:
                    return row
            return rows[0]

        return self._query(run)

    def list_all(self, limit: int = 500) -> List[User]:
        return self._query(lambda: self.db.query(User).order_by(User.created_at).limit(limit).all())

    def count(self) -> int:
        return self._query(lambda: self.db.query(User).count())

    # ── writes ────────────────────────────────────────────────

    def create(self, user: User) -> User:
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            return user
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Failed to create account {user.email}: {exc}")
            raise InternalFailureException(error="Could not create account") from exc

    def save(self, user: User) -> User:
        try:
            self.db.commit()
            self.db.refresh(user)
            return user
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Failed to save account {user.id}: {exc}")
            raise InternalFailureException(error="Could not save account") from exc

    def delete(self, user: User) -> None:
        try:
            self.db.delete(user)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Failed to delete account {user.id}: {exc}")
            raise InternalFailureException(error="Could not delete account") from exc

    def discard_changes(self) -> None:
        self.db.rollback()

    def _query(self, run):
        try:
            return run()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Account lookup failed: {exc}")
            raise InternalFailureException(error="Account lookup failed") from exc
