"""Admin panel users."""

import logging
from typing import Optional

import bcrypt

from smmadmin.models import User
from smmadmin.exceptions import DatabaseError, ValidationError
from smmadmin.managers.database import DatabaseManager


BCRYPT_ROUNDS = 10


class UserManager:
    """Registers users and checks their passwords."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def register(self, email: str, password: str, name: Optional[str] = None) -> User:
        """Create a user with a bcrypt-hashed password.

        Raises:
            ValidationError: If email or password is missing or the email is taken
        """
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")
        if self.db.get_user_by_email(email):
            raise ValidationError("Registration failed: email already registered")

        password_hash = bcrypt.hashpw(
            password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        ).decode("utf-8")
        try:
            user = self.db.create_user(email, password_hash, name or None)
        except DatabaseError as e:
            raise ValidationError(f"Registration failed: {e}")

        logging.info(f"👤 Registered user {email}")
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user if the credentials match, otherwise None."""
        user = self.db.get_user_by_email((email or "").strip().lower())
        if not user or not password:
            return None
        if not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            logging.debug(f"Invalid password for {user.email}")
            return None
        return user
