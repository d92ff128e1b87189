from __future__ import annotations


class BlocknotesError(Exception):
    """Base class for errors raised by the stores and services."""


class Unauthorized(BlocknotesError):
    pass


class InvalidContent(BlocknotesError):
    pass


class NotFound(BlocknotesError):
    # raised for missing notes and for notes owned by someone else
    pass


class DuplicateEmail(BlocknotesError):
    pass


class InvalidCredentials(BlocknotesError):
    # same error for unknown email and wrong password
    pass


class PersistenceFailure(BlocknotesError):
    pass
