"""
Custom exceptions for code-migration.

Provides specific exception types for better error handling and user feedback.
"""


class CodeMigrationError(Exception):
    """Base exception for code-migration errors."""

    user_message: str = "An unexpected error occurred."
    recovery_hint: str = ""


class ConfigurationError(CodeMigrationError):
    """Error in configuration."""

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = f"Invalid configuration: {message}"
        self.recovery_hint = "Check the configuration file and environment variables."


class ValidationError(CodeMigrationError):
    """Requested n is outside the supported domain."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.user_message = message
        self.recovery_hint = "Use an integer between 0 and 10000."


class UnknownKindError(CodeMigrationError):
    """Requested computation kind is not supported."""

    def __init__(self, kind: str):
        super().__init__(f"Unknown kind: {kind}")
        self.kind = kind
        self.user_message = f"'{kind}' is not a supported computation."
        self.recovery_hint = "Use 'count' or 'fibonacci'."


# Transport Errors


class TransportError(CodeMigrationError):
    """Base exception for failures before code is received."""

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = message
        self.recovery_hint = "Retry the request."


class TransportTimeoutError(TransportError):
    """Server did not answer within the bounded wait."""

    def __init__(self, timeout: float):
        super().__init__(f"Could not reach the server (timed out after {timeout:g} seconds)")
        self.timeout = timeout
        self.recovery_hint = "Retry, or raise the client timeout."


class ServerUnreachableError(TransportError):
    """Connection could not be established."""

    def __init__(self, url: str):
        super().__init__(f"Could not connect to the server at {url}")
        self.url = url
        self.recovery_hint = "Check that the server is running."


class ServerUnavailableError(TransportError):
    """Load balancer reported the backend as unavailable (502/503)."""

    def __init__(self, status_code: int):
        super().__init__("The server is currently unavailable")
        self.status_code = status_code
        self.recovery_hint = "Please try again later."


class BadResponseError(TransportError):
    """Server answered with an unexpected status or malformed body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.recovery_hint = "Check the server logs."


# Protocol Errors


class ProtocolError(CodeMigrationError):
    """Cached response referenced source the client does not hold."""

    def __init__(self, kind: str, version: str):
        super().__init__(f"No cached source for kind={kind!r} version={version!r}")
        self.kind = kind
        self.version = version
        self.user_message = "The server sent a cached response but no local copy of the code exists."
        self.recovery_hint = "Clear the local cache and request the code again."


# Execution Errors


class ExecutionError(CodeMigrationError):
    """Failure while evaluating source or running the generated function."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.user_message = f"Execution Error: {message}"


class SandboxViolationError(ExecutionError):
    """Source or call expression uses syntax outside the allowed grammar."""

    def __init__(self, construct: str, lineno: int | None = None):
        where = f" (line {lineno})" if lineno else ""
        super().__init__(f"'{construct}' is not allowed in sandboxed code{where}")
        self.construct = construct
        self.lineno = lineno
