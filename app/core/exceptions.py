from fastapi import HTTPException, status
from typing import Dict, List, Optional

class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )

class BadRequestError(HTTPException):
    """Malformed or missing input, optionally with field-level messages."""

    def __init__(self, detail: str = "Validation failed", errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )
        self.errors = errors or []
