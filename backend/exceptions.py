class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

class NotFoundError(AppError):
    """Raised when a resource is not found (or is not visible to the requester)."""
    def __init__(self, message: str):
        super().__init__(message, status_code=404)

class ValidationError(AppError):
    """Raised when input validation fails."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)

class ConflictError(AppError):
    """Raised when a uniqueness constraint would be violated."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)

class AuthenticationError(AppError):
    """Raised when credentials are wrong or no token was supplied."""
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)

class AuthorizationError(AppError):
    """Raised when a supplied token is malformed, tampered with or expired."""
    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, status_code=403)

class ServerError(AppError):
    """Raised for storage or internal failures. The message is safe to show to clients."""
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)

##### ARTIFACT EXCEPTIONS #####

class ArtifactNotFoundError(NotFoundError):
    """Raised when an artifact does not exist or is not visible to the requester."""
    def __init__(self, message: str = "Artifact not found"):
        super().__init__(message)

class UserNotFoundError(NotFoundError):
    """Raised when a token's user no longer exists."""
    def __init__(self, message: str = "User not found"):
        super().__init__(message)
