class CookbookError(Exception):
    """
    Base class for every failure the recipe core reports to its callers.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CookbookError):
    """A referenced recipe or ingredient does not exist."""


class ValidationError(CookbookError):
    """A field-level invariant is violated (empty name, non-positive amount, ...)."""


class DuplicateError(CookbookError):
    """A uniqueness invariant is violated, e.g. an ingredient name collision."""


class BadRequestError(CookbookError):
    """The request is semantically invalid, e.g. non-positive servings."""


class UnexpectedError(CookbookError):
    """The storage layer failed in a way the core does not classify."""
