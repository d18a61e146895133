"""Error taxonomy for secrets-browser."""


class SecretsBrowserError(Exception):
    """Base class for all secrets-browser errors."""
    pass


class UpstreamError(SecretsBrowserError):
    """A call to the secret store failed or returned unusable data."""
    pass


class TransportError(UpstreamError):
    """The secret store could not be reached (network, process or auth failure)."""
    pass


class NotFoundError(UpstreamError):
    """The requested secret id is unknown to the store."""

    def __init__(self, secret_id: str, detail: str = ""):
        self.secret_id = secret_id
        message = f"Secret '{secret_id}' not found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MalformedResponseError(UpstreamError):
    """The store answered, but without the fields we expected."""
    pass


class DecodeError(SecretsBrowserError):
    """Raw secret payload is not a structured record.

    Only used internally to classify a value as plain text, never raised to callers.
    """
    pass


class UnknownFieldError(SecretsBrowserError, KeyError):
    """A field key was referenced that the secret's value does not contain."""

    def __init__(self, secret_id: str, key: str, operation: str):
        self.secret_id = secret_id
        self.key = key
        self.operation = operation
        super().__init__(f"{operation}: secret '{secret_id}' has no field '{key}'")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]
