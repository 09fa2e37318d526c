"""Validation and sanity checks for engine state."""

from .sanity_checks import SanityChecker, ValidationWarning, validate_controller

__all__ = [
    "SanityChecker",
    "ValidationWarning",
    "validate_controller"
]
