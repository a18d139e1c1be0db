from abc import ABC, abstractmethod

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from clickrank import db, bcrypt
from clickrank.models import User
from clickrank.errors import (
    NoSuchUser,
    MissingPassword,
    CorruptAccount,
    WrongPassword,
    EmailAlreadyInUse,
    translate_storage_error,
)

# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class CredentialVerifier(ABC):
    """Checks a login submission and returns the matching user."""

    @abstractmethod
    def verify_credentials(self, email: str, password: str) -> User:
        """Return the user or raise an AuthFailure subclass."""


class PasswordCredentialVerifier(CredentialVerifier):
    """Email lookup followed by a bcrypt comparison against the stored hash."""

    def verify_credentials(self, email: str, password: str) -> User:
        try:
            user = User.query.filter_by(email=email).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise translate_storage_error(exc) from exc
        if user is None:
            raise NoSuchUser(email)

        # Never hand an empty password to the hash primitive
        if not password:
            raise MissingPassword(email)

        if not user.password_hash:
            raise CorruptAccount(email)

        # No stored password can be this long, see register()
        if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise WrongPassword(email)

        try:
            matched = bcrypt.check_password_hash(user.password_hash, password)
        except ValueError as exc:
            # Stored value is not a bcrypt digest
            raise CorruptAccount(email) from exc
        if not matched:
            raise WrongPassword(email)
        return user


default_verifier = PasswordCredentialVerifier()


def authenticate(email: str, password: str, verifier: CredentialVerifier = None) -> User:
    return (verifier or default_verifier).verify_credentials(email, password)


def register(name: str, email: str, password: str) -> User:
    """Create a user with a bcrypt-hashed password.

    Email uniqueness is left to the database constraint; a concurrent
    registration with the same address surfaces as EmailAlreadyInUse.
    """
    if not name or not email or not password:
        raise ValueError('Name, email and password are required')
    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes')

    hashed = bcrypt.generate_password_hash(password).decode('utf-8')
    user = User(name=name, email=email, password_hash=hashed)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise EmailAlreadyInUse(email) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc
    return user
