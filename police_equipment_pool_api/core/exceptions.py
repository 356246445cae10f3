"""
Module for custom exception classes.
"""


class DatabaseError(Exception):
    """
    Database related error.
    """


class DuplicateRecordError(DatabaseError):
    """
    The record being added to the database is a duplicate.
    """


class InvalidObjectIdError(DatabaseError):
    """
    The provided value is not a valid ObjectId.
    """


class MissingRecordError(DatabaseError):
    """
    A specific database record was requested but could not be found.
    """


class WriteConflictError(DatabaseError):
    """
    The pool document was modified by another writer between it being read and written back.
    """


class InvalidActionError(Exception):
    """
    The action is not permitted for the caller or is missing information it requires.
    """


class InvalidRequestStateError(Exception):
    """
    The request is not in a status that allows the attempted action e.g. approving a request that is not pending.
    """


class PoolLifecycleError(Exception):
    """
    Base class for the errors raised when a pool lifecycle operation cannot be applied to an item.
    """


class NoAvailableItemsError(PoolLifecycleError):
    """
    An item was requested from a pool that has no issuable items.
    """


class NotAuthorizedError(PoolLifecycleError):
    """
    The custodian's designation is not authorised to draw equipment from the pool.
    """


class ItemNotFoundError(PoolLifecycleError):
    """
    The unique ID does not belong to any item in the pool.
    """


class NotIssuedError(PoolLifecycleError):
    """
    The operation requires the item to be issued but it is not.
    """


class NotInMaintenanceError(PoolLifecycleError):
    """
    The operation requires the item to be under ordinary maintenance but it is not.
    """


class InvalidTransitionError(PoolLifecycleError):
    """
    The item is not in the state required for the requested transition.
    """
