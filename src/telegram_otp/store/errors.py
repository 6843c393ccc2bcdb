"""Exceptions raised by the key/value store client."""


class StoreClientError(Exception):
    """Base class for every store interaction failure."""


class StoreConnectionError(StoreClientError, ConnectionError):
    """The store cannot be reached, or the peer dropped the connection."""


class NotConnectedError(StoreClientError):
    """A command was issued outside the connection's open/close lifetime."""


class StoreTimeoutError(StoreClientError, TimeoutError):
    """No reply arrived within the command timeout."""


class StoreError(StoreClientError):
    """The store answered with an error reply."""


class DecodeError(StoreClientError):
    """A stored payload could not be decoded into the expected record."""
