# billager/auth.py
"""Username/password accounts.

Users live in the ``users`` table with salted PBKDF2 hashes. A successful
sign-in opens a session token and, when a key-value store is attached, keeps
the signed-in user under ``@user`` so ``current_user`` survives restarts.
"""
import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from .errors import AuthError, PersistenceError
from .models import User, UserSession
from .schemas import UserOut
from .store import KeyValueStore
from .utils import logger

USER_KEY = "@user"
MIN_PASSWORD_LENGTH = 6


def _hash_password(password: str, salt: Optional[str] = None) -> Tuple[str, str]:
    """Hash password with salt."""
    if salt is None:
        salt = secrets.token_hex(16)
    hashed = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), 100000)
    return hashed.hex(), salt


class AuthService:
    def __init__(self, session_factory, store: Optional[KeyValueStore] = None):
        self.session_factory = session_factory
        self.store = store

    def sign_up(self, username: str, email: str, password: str, phone: str) -> UserOut:
        username, email, phone = username.strip(), email.strip(), phone.strip()
        if not (username and email and password and phone):
            raise AuthError("Please fill all fields")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        password_hash, salt = _hash_password(password)
        db = self.session_factory()
        try:
            if db.query(User.id).filter(User.email == email).first():
                raise AuthError("Email already registered. Please sign in.")
            user = User(
                id=uuid.uuid4().hex,
                username=username,
                email=email,
                password_hash=password_hash,
                password_salt=salt,
                phone=phone,
                created_at=datetime.now(timezone.utc),
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info("Registered user %s", user.id)
            return UserOut.model_validate(user)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Sign up failed: %s", e)
            raise PersistenceError(str(e)) from e
        finally:
            db.close()

    def sign_in(self, email: str, password: str) -> Tuple[str, UserOut]:
        email = email.strip()
        if not email or not password:
            raise AuthError("Please enter email and password")
        db = self.session_factory()
        try:
            user = db.query(User).filter(User.email == email).first()
            if user is None:
                raise AuthError("Invalid email or password")
            candidate, _ = _hash_password(password, user.password_salt)
            if not hmac.compare_digest(candidate, user.password_hash):
                raise AuthError("Invalid email or password")
            token = secrets.token_urlsafe(32)
            db.add(UserSession(token=token, user_id=user.id, created_at=datetime.now(timezone.utc)))
            db.commit()
            out = UserOut.model_validate(user)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Sign in failed: %s", e)
            raise PersistenceError(str(e)) from e
        finally:
            db.close()
        if self.store is not None:
            self.store.set_item(USER_KEY, out.model_dump_json())
        logger.info("User %s signed in", out.id)
        return token, out

    def resolve_token(self, token: Optional[str]) -> Optional[UserOut]:
        if not token:
            return None
        db = self.session_factory()
        try:
            user = (
                db.query(User)
                .join(UserSession, UserSession.user_id == User.id)
                .filter(UserSession.token == token)
                .first()
            )
            return UserOut.model_validate(user) if user else None
        finally:
            db.close()

    def current_user(self) -> Optional[UserOut]:
        if self.store is None:
            return None
        raw = self.store.get_item(USER_KEY)
        return UserOut.model_validate_json(raw) if raw else None

    def sign_out(self, token: Optional[str] = None) -> None:
        if token:
            db = self.session_factory()
            try:
                db.query(UserSession).filter(UserSession.token == token).delete()
                db.commit()
            finally:
                db.close()
        if self.store is not None:
            self.store.remove_item(USER_KEY)
