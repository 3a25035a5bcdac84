
from typing import List
from pydantic import BaseModel


# Error responses
class ErrorResponse(BaseModel):
    error: str
    message: str


class SeatsUnavailableError(ErrorResponse):
    unavailable_seats: List[str]
