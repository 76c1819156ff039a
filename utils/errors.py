class UploadServiceError(Exception):
    code = "INTERNAL_ERROR"
    status = 500

    def __init__(self, message: str, code: str | None = None, status: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status


class UploadValidationError(UploadServiceError):
    code = "VALIDATION_ERROR"
    status = 400


class UploadNotFoundError(UploadServiceError):
    code = "NOT_FOUND"
    status = 404

    def __init__(self, message: str = "File not found"):
        super().__init__(message)


class UploadForbiddenError(UploadServiceError):
    code = "FORBIDDEN"
    status = 403

    def __init__(self, message: str = "Invalid secret code"):
        super().__init__(message)


class StorageError(UploadServiceError):
    """Store or filesystem failure. The message is safe to show to clients."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
