"""Exceptions raised by the context engine."""


class ContextError(Exception):
    """Base class for context assembly errors."""


class InvalidKeyError(ContextError, ValueError):
    """Raised when a string cannot be parsed into an owner/repo/number key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Invalid issue key: {key!r}")


class NoContextAvailableError(ContextError):
    """Raised when the root issue or pull request cannot be resolved."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No context available for {key}")
