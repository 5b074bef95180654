"""
Error handling for the HTTP surface
"""
from .error_handler import (
    GENERIC_ERROR_MESSAGE,
    generate_trace_id,
    secure_exception_handler,
    register_exception_handlers,
)

__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "generate_trace_id",
    "secure_exception_handler",
    "register_exception_handlers",
]
