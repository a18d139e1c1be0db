"""Failure types raised by the clickrank services.

Routes translate these into HTTP answers; services never return error
payloads themselves.
"""

from sqlalchemy import exc as sa_exc


class AuthFailure(Exception):
    """Credentials were rejected. ``kind`` is for logs only, never for clients."""
    kind = 'auth_failure'


class NoSuchUser(AuthFailure):
    kind = 'no_such_user'


class MissingPassword(AuthFailure):
    kind = 'missing_password'


class CorruptAccount(AuthFailure):
    kind = 'corrupt_account'


class WrongPassword(AuthFailure):
    kind = 'wrong_password'


class RegistrationFailure(Exception):
    kind = 'registration_failure'


class EmailAlreadyInUse(RegistrationFailure):
    kind = 'email_already_in_use'

    def __init__(self, email):
        super().__init__(f"Email already in use: {email}")
        self.email = email


class StorageError(Exception):
    kind = 'storage_error'
    retryable = True


class ConnectionLost(StorageError):
    kind = 'connection_lost'


class ConstraintViolation(StorageError):
    kind = 'constraint_violation'
    retryable = False


class StorageTimeout(StorageError):
    kind = 'timeout'


def translate_storage_error(error):
    """Map a SQLAlchemy exception onto the StorageError family."""
    if isinstance(error, sa_exc.IntegrityError):
        return ConstraintViolation(str(error.orig))
    if isinstance(error, sa_exc.DataError):
        # Value rejected by the column type; resubmitting it cannot succeed
        return ConstraintViolation(str(error.orig))
    if isinstance(error, sa_exc.TimeoutError):
        # Pool exhausted: every connection stayed checked out past pool_timeout
        return StorageTimeout(str(error))
    if isinstance(error, (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.DisconnectionError)):
        return ConnectionLost(str(error))
    return StorageError(str(error))
