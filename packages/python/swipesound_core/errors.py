class DomainError(Exception):
    code: str = "domain_error"
    status: int = 400
    retryable: bool = False

    def __init__(self, message: str = "", *, code: str | None = None, status: int | None = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if code: self.code = code
        if status: self.status = status

class InvalidIdentity(DomainError):
    code = "invalid_identity"
    status = 400

class InvalidDecision(DomainError):
    code = "invalid_decision"
    status = 422

class UpstreamUnavailable(DomainError):
    code = "upstream_unavailable"
    status = 503
    retryable = True

class Conflict(DomainError):
    code = "conflict"
    status = 409

class Forbidden(DomainError):
    code = "forbidden"
    status = 403
