class ServiceError(Exception):
    """Base exception for service-level errors. Routers map subclasses to HTTP codes."""


class ValidationError(ServiceError):
    pass


class RateLimitExceeded(ServiceError):
    """An OTP was issued to the same target within the cooldown window."""


class OTPInvalid(ServiceError):
    """Unknown, mismatched, malformed or already consumed code."""


class OTPExpired(ServiceError):
    """Only expired durable records match the submitted code."""


class ActivationFailed(ServiceError):
    """The code was consumed but the account could not be activated."""


class StorageUnavailable(ServiceError):
    """The cache or database needed for this step is unreachable."""


class DeadlineExceeded(ServiceError):
    """The caller's deadline passed before a state-changing step."""


class OTPDeliveryFailed(ServiceError):
    pass


class AuthenticationError(ServiceError):
    pass


class AuthorizationError(ServiceError):
    pass


class NotFoundError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass
