import secrets
from datetime import timedelta
from functools import wraps
from typing import Optional

from flask import current_app, redirect, url_for
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from clickrank import db
from clickrank.models import User, UserSession, utcnow
from clickrank.errors import translate_storage_error


class SessionBinder:
    """Binds opaque tokens to user ids in the ``user_session`` table."""

    def _lifetime(self) -> timedelta:
        return timedelta(hours=int(current_app.config.get('SESSION_LIFETIME_HOURS', 24)))

    def bind(self, user: User) -> UserSession:
        now = utcnow()
        bound = UserSession(
            token=secrets.token_urlsafe(32),
            user_id=user.id,
            created_at=now,
            expires_at=now + self._lifetime(),
        )
        db.session.add(bound)
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise translate_storage_error(exc) from exc
        current_app.logger.info(f"[session] bound user={user.id}")
        return bound

    def lookup(self, token: Optional[str]) -> Optional[UserSession]:
        if not token:
            return None
        try:
            bound = db.session.get(UserSession, token)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise translate_storage_error(exc) from exc
        if bound is None or bound.is_expired():
            return None
        return bound

    def resolve(self, token: Optional[str]) -> Optional[int]:
        bound = self.lookup(token)
        return bound.user_id if bound else None

    def unbind(self, token: Optional[str]) -> None:
        """Destroy the binding; unknown or already-removed tokens are ignored."""
        if not token:
            return
        try:
            removed = UserSession.query.filter_by(token=token).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise translate_storage_error(exc) from exc
        if removed:
            current_app.logger.info("[session] unbound")

    def prune_expired(self) -> int:
        try:
            removed = UserSession.query.filter(UserSession.expires_at <= utcnow()).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise translate_storage_error(exc) from exc
        return removed


session_binder = SessionBinder()


def anonymous_required(view):
    """Send already-authenticated visitors to the landing route."""
    @wraps(view)
    def decorated(*args, **kwargs):
        if current_user.is_authenticated:
            return redirect(url_for('main.index'))
        return view(*args, **kwargs)
    return decorated
