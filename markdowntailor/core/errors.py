class TailorError(Exception):
    """Base class for errors raised by the resume store."""


class StorageUnavailable(TailorError):
    """The persistent key-value store cannot be reached or refused the operation."""


class ValidationError(TailorError, ValueError):
    """Caller-supplied data violates a precondition. Raised before any I/O."""


class ResumeNotFound(TailorError, LookupError):
    def __init__(self, resume_id: str):
        super().__init__(f"Resume {resume_id} not found")
        self.resume_id = resume_id
