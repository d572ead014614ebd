"""Exceptions raised by the shortlink core.

Every public service operation either returns a value or raises exactly one
of the exceptions below.

Classes:
    ShortlinkError:
        Base class for all shortlink exceptions.

    InvalidURLError:
        The URL submitted for shortening failed validation.

    CodeCollisionError:
        An insert hit a short code that is already persisted. Internal: the
        service always retries it with a fresh code.

    CodeTakenError:
        A caller-chosen custom code is already persisted.

    GenerationExhaustedError:
        No free code was found within the collision retry budget.

    MappingNotFoundError:
        No mapping is persisted under the given code.

    MappingExpiredError:
        The mapping exists but is past its expiry timestamp.

    StoreUnavailableError:
        The storage backend kept failing after bounded retries.

    OperationTimeoutError:
        An operation did not finish before its deadline.
"""


class ShortlinkError(Exception):
    """Base class for shortlink exceptions."""

    pass


class InvalidURLError(ShortlinkError, ValueError):
    """Raised when a URL is not an absolute http(s) URL."""

    pass


class InvalidShortCodeError(ShortlinkError, ValueError):
    """Raised when a custom short code has the wrong format or is reserved."""

    pass


class CodeCollisionError(ShortlinkError):
    """Raised by a store when an insert targets an existing short code."""

    pass


class CodeTakenError(ShortlinkError):
    """Raised when a requested custom code already exists."""

    pass


class GenerationExhaustedError(ShortlinkError):
    """Raised when every generated code collided.

    This is a strong signal of keyspace exhaustion or a broken generator,
    not a routine condition. Callers may retry later.
    """

    pass


class MappingNotFoundError(ShortlinkError):
    """Raised when no mapping exists for a short code."""

    pass


class MappingExpiredError(ShortlinkError):
    """Raised when a mapping exists but is no longer live."""

    pass


class StoreUnavailableError(ShortlinkError):
    """Raised when the storage backend cannot be reached.

    e.g. connection refused, pool exhaustion, dropped connections.
    """

    pass


class OperationTimeoutError(ShortlinkError):
    """Raised when an operation exceeds its deadline."""

    pass
