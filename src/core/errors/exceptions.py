from typing import Any


class CoreException(Exception):
    def __init__(
        self, message: str | None = None, additional_info: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.additional_info = additional_info


class InfrastructureException(CoreException):
    pass


class DataIntegrityException(CoreException):
    pass


class UnauthorizedException(CoreException):
    pass


# ----- Refresh token lifecycle ----- #
class TokenNotFoundException(UnauthorizedException):
    """No record for the presented token: never issued, deleted or reaped."""


class TokenAlreadyInvalidatedException(UnauthorizedException):
    """The presented token was already rotated. Treated as a replay/theft signal."""


class TokenExpiredException(UnauthorizedException):
    """The record is still valid but its logical expiry has passed."""


class MintingFailureException(CoreException):
    """
    The presented token was burnt but no replacement could be issued.
    The session is terminated and the client has to sign in again.
    """


class StoreUnavailableException(InfrastructureException):
    """Transient token store failure. Nothing is known to have been mutated."""


class TokenRecordCorruptedException(DataIntegrityException):
    pass
