from typing import Dict, Optional


class ApiError(Exception):
    """Base class for client errors"""

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}


class NetworkError(ApiError):
    """The server could not be reached or did not answer in time"""


class AuthenticationError(ApiError):
    """Login or registration was rejected"""
