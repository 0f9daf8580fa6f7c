class AuthError(Exception):
    """Base authentication error."""

    pass


class UserAlreadyExistsError(AuthError):
    """Raised when trying to register with an existing email."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"User with email {email} already exists")


class InvalidCredentialsError(AuthError):
    """Raised when login credentials are invalid."""

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class InvalidTokenError(AuthError):
    """Raised when token is invalid or expired."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class UserDeactivatedError(AuthError):
    """Raised when a deactivated account tries to sign in."""

    def __init__(self) -> None:
        super().__init__("Your account has been deactivated")
