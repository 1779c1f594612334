"""
storage/errors.py -- Errors raised by persistence collaborators.

Any store the auth service talks to signals "not found" and "duplicate" with
these classes and wraps every other backend failure in StorageError. The
service relies on nothing else about the backend.
"""


class StorageError(Exception):
    """Backend failure other than not-found / duplicate."""


class UserNotFound(StorageError):
    pass


class UserExists(StorageError):
    pass


class AppNotFound(StorageError):
    pass


class AppExists(StorageError):
    pass
