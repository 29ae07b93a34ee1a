class ChatServiceError(Exception):
    """Base exception for chat service errors"""

    pass


class AuthRequiredError(ChatServiceError):
    """Raised when an operation needs a signed-in user and there is none."""

    pass


class SessionCreateError(ChatServiceError):
    """Raised when a chat session row could not be inserted."""

    pass


class PersistenceError(ChatServiceError):
    """Raised when a database read or write fails."""

    pass


class ProviderError(ChatServiceError):
    """Raised by the generative / speech provider clients."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ChatBusyError(ChatServiceError):
    """Raised when a message is sent while another send is still running."""

    pass


class IdentityProviderError(ChatServiceError):
    """Raised when the identity provider rejects a request."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
