# app/core/exceptions.py
from fastapi import HTTPException, status


class ServiceError(HTTPException):
    """Base for every business error raised by the services layer."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message

    def __str__(self) -> str:
        return self.message


# ---------- kinds ----------
class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class UnauthorizedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str):
        super().__init__(message)
        self.headers = {"WWW-Authenticate": "Bearer"}


class DuplicateError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class InvalidStateError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class ValidationFailedError(ServiceError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ExceedsRemainingError(ServiceError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


# ---------- identity ----------
class InvalidCredentialsError(UnauthorizedError):
    pass


class InvalidTokenError(UnauthorizedError):
    pass


class DuplicateEmailError(DuplicateError):
    pass


# ---------- charity ----------
class DuplicateRegistrationError(DuplicateError):
    pass


class MissingBankDetailsError(ValidationFailedError):
    pass


class HasActiveCampaignsError(InvalidStateError):
    pass


class CharityNotVerifiedError(InvalidStateError):
    pass


# ---------- fundraising / donations ----------
class CharityMismatchError(InvalidStateError):
    pass


class AlreadyCompletedError(InvalidStateError):
    pass


class MissingReportError(InvalidStateError):
    pass


class NoGeneralFundError(NotFoundError):
    pass


class CampaignInactiveError(InvalidStateError):
    pass


# ---------- reports ----------
class AmountMismatchError(ValidationFailedError):
    pass
