class ExperienceServiceError(Exception):
    """Base class for errors raised by the experience service layer."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ResourceNotFoundError(ExperienceServiceError):
    """A referenced experience, category, property, user or review is absent."""
    status_code = 404


class DuplicatedResourceError(ExperienceServiceError):
    """A uniqueness rule was violated (title, id list, review)."""
    status_code = 409


class BadRequestError(ExperienceServiceError):
    status_code = 400


class InvalidArgumentError(BadRequestError):
    """Input could not be parsed or is outside its allowed values."""
    pass
