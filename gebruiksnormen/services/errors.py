"""
Exceptions raised by the norm engine.

None of these are recovered from inside the engine: a wrong or missing input
must never be turned into a guessed legal standard.
"""
from datetime import date
from typing import Optional


class GebruiksnormError(Exception):
    """Base class for all norm calculation failures."""
    pass


class DataIntegrityError(GebruiksnormError):
    """Raised when a referenced fertilizer, cultivation or soil analysis is missing."""
    pass


class GeospatialError(GebruiksnormError):
    """Raised when a raster layer returns a code that cannot be decoded."""
    pass


class RasterUnavailableError(GeospatialError):
    """Raised when a raster layer cannot be fetched or parsed."""
    pass


class ComplianceWindowError(GebruiksnormError):
    """Raised when grassland renewal or destruction falls outside its legal window."""

    def __init__(self, message: str, transition: str, transition_date: Optional[date] = None):
        super().__init__(message)
        self.transition = transition
        self.transition_date = transition_date


class LookupExhaustionError(GebruiksnormError):
    """Raised when no reference standard or norms object applies to a valid crop."""
    pass


class UnsupportedRegulationError(GebruiksnormError):
    """Raised when no functions exist for the requested region and year."""
    pass
