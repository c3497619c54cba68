from pydantic import BaseModel


class DeleteResponse(BaseModel):
    """
    A generic response for delete operations
    """

    success: bool


class ErrorResponse(BaseModel):
    """
    Body returned for every typed failure of the recipe core
    """

    detail: str
