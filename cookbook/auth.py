"""
Identity provider for the single cookbook owner.

Identities are anonymous or bound to a custom token. The last signed-in
identity is remembered in the database and restored on the next start.
"""
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from . import models

logger = logging.getLogger(__name__)

# Custom tokens always map to the same uid
TOKEN_NAMESPACE = uuid.UUID("6f1c8d3e-2b4a-4f7e-9a51-3c0d7e8b9f21")

AuthListener = Callable[[Optional["User"]], None]


class AuthError(Exception):
    pass


@dataclass(frozen=True)
class User:
    uid: str
    is_anonymous: bool


class IdentityProvider:
    def __init__(self, session_factory, clock: Optional[Callable[[], datetime]] = None):
        self.session_factory = session_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._listeners: List[AuthListener] = []
        self._lock = threading.RLock()
        self.current_user: Optional[User] = self._restore()

    def _restore(self) -> Optional[User]:
        db = self.session_factory()
        try:
            account = (
                db.query(models.Account)
                .filter(models.Account.signed_in.is_(True))
                .order_by(models.Account.last_sign_in.desc())
                .first()
            )
            return _user(account) if account else None
        finally:
            db.close()

    def on_auth_state_changed(self, callback: AuthListener) -> Callable[[], None]:
        """Register a listener, call it with the current identity, return an unsubscribe."""
        with self._lock:
            self._listeners.append(callback)
        callback(self.current_user)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def sign_in_anonymously(self) -> User:
        db = self.session_factory()
        try:
            account = models.Account(
                uid=uuid.uuid4().hex,
                is_anonymous=True,
                created_at=self._clock(),
            )
            db.add(account)
            user = self._sign_in(db, account)
        finally:
            db.close()
        logger.info(f"Signed in anonymously as {user.uid}")
        self._emit(user)
        return user

    def sign_in_with_custom_token(self, token: str) -> User:
        if not token or not token.strip():
            raise AuthError("Custom token is empty")
        db = self.session_factory()
        try:
            account = (
                db.query(models.Account)
                .filter(models.Account.custom_token == token)
                .first()
            )
            if account is None:
                account = models.Account(
                    uid=uuid.uuid5(TOKEN_NAMESPACE, token).hex,
                    custom_token=token,
                    is_anonymous=False,
                    created_at=self._clock(),
                )
                db.add(account)
            user = self._sign_in(db, account)
        finally:
            db.close()
        logger.info(f"Signed in with custom token as {user.uid}")
        self._emit(user)
        return user

    def sign_out(self):
        db = self.session_factory()
        try:
            db.query(models.Account).update({models.Account.signed_in: False})
            db.commit()
        finally:
            db.close()
        self._emit(None)

    def _sign_in(self, db, account: models.Account) -> User:
        db.query(models.Account).filter(models.Account.uid != account.uid).update(
            {models.Account.signed_in: False}
        )
        account.signed_in = True
        account.last_sign_in = self._clock()
        db.commit()
        return _user(account)

    def _emit(self, user: Optional[User]):
        with self._lock:
            self.current_user = user
            listeners = list(self._listeners)
        for listener in listeners:
            listener(user)


def _user(account: models.Account) -> User:
    return User(uid=account.uid, is_anonymous=account.is_anonymous)
