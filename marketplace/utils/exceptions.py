class ServiceError(Exception):
    status = 400

    def __init__(self, code="SERVICE_ERROR", message="Service error", details=None, status=None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status is not None:
            self.status = status
        super().__init__(message)


class ValidationError(ServiceError):
    status = 400

    def __init__(self, message, details=None, code="VALIDATION_ERROR"):
        super().__init__(code=code, message=message, details=details)


class InvalidTransition(ServiceError):
    status = 400

    def __init__(self, current, target, message=None):
        super().__init__(
            code="INVALID_TRANSITION",
            message=message or f"Invalid status transition from {current} to {target}",
            details={"from": current, "to": target},
        )


class AccessDenied(ServiceError):
    status = 403

    def __init__(self, message="Not authorized"):
        super().__init__(code="FORBIDDEN", message=message)


class NotFound(ServiceError):
    status = 404

    def __init__(self, message="Resource not found"):
        super().__init__(code="NOT_FOUND", message=message)
