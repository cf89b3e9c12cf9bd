from typing import Optional


class FcCliError(RuntimeError):
    """Base class for errors that abort a single command. The command boundary
    catches these, reports them, and returns control to the shell."""
    pass


class NetworkError(FcCliError):
    """Raised on a transport-level failure (DNS, connection refused, etc.)."""
    pass


class AuthError(FcCliError):
    """Raised when the repository still refuses a request after one re-login
    attempt, or when the login itself fails."""
    pass


class NotFoundError(FcCliError):
    def __init__(self, path: str, *args):
        super().__init__(*args or (f'Not found: {path}',))
        self.path = path
        """The repository path that does not exist."""


class NotAContainerError(FcCliError):
    def __init__(self, path: str, *args):
        super().__init__(*args or (f'Location {path} is a binary file',))
        self.path = path


class ParseError(FcCliError):
    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        """1-based line number of the syntax error, if known."""

    def __str__(self):
        if self.line is not None:
            return f'Unable to parse RDF at line {self.line}: {self.message}'
        return f'Unable to parse RDF: {self.message}'


class CycleDetected(FcCliError):
    def __init__(self, path: str):
        super().__init__(f'Cycle detected while walking the repository: {path} was already visited')
        self.path = path


class ValidationError(FcCliError):
    """Raised when a required argument is missing, before any request is sent."""
    pass


class ConfigError(Exception):
    def __init__(self, message):
        self.message = message

    def __str__(self):
        return self.message
