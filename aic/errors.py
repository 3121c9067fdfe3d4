"""
Exception types raised across aic.

The CLI catches AicError, prints the message and exits non-zero. Anything
else reaching the top level is a bug.
"""


class AicError(Exception):
    """Base class for all aic specific errors."""


# --- Configuration ---


class ConfigError(AicError):
    """Raised when configuration cannot be read, resolved or written."""


class UnknownKeyError(ConfigError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f"Unknown configuration key: '{key}'. "
            "Valid keys: api_token, api_base_url, model, system_prompt, user_prompt"
        )


class ConfigParseError(ConfigError):
    def __init__(self, path, detail: str):
        self.path = path
        super().__init__(f"Failed to parse config file '{path}': {detail}")


class MissingKeyError(ConfigError):
    """Raised when a required key (the API token) has no value."""


class ConfigLocationError(ConfigError):
    """Raised when there is no writable location for a config file."""


# --- Git ---


class GitError(AicError):
    """Raised when a git operation fails."""


class NotARepositoryError(GitError):
    pass


class NoStagedChangesError(GitError):
    pass


class CommitFailedError(GitError):
    def __init__(self, stderr: str):
        self.stderr = stderr
        super().__init__(f"git commit failed: {stderr}")


class PushFailedError(GitError):
    def __init__(self, stderr: str):
        self.stderr = stderr
        super().__init__(f"git push failed: {stderr}")


# --- Completion API ---


class ApiError(AicError):
    """Raised when the chat-completion request fails."""


class NetworkError(ApiError):
    pass


class UnauthorizedError(ApiError):
    pass


class BadResponseError(ApiError):
    pass


# --- Editor ---


class EditorError(AicError):
    """Raised when the editor cannot be spawned or exits non-zero."""
