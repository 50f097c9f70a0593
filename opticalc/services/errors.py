"""
Failure kinds raised by the optical formula library and the completion service.

Each error carries a short ``kind`` so the HTTP layer can report which class of
problem occurred without parsing messages.
"""

from typing import Optional


class OpticalCalculationError(ValueError):
    """Base class for deterministic calculation failures."""
    kind = "calculation"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(OpticalCalculationError):
    """Input range or cross-field precondition violated."""
    kind = "validation"


class GeometryError(OpticalCalculationError):
    """Surface radius cannot span the requested lens aperture."""
    kind = "geometry"

    def __init__(self, message: str, power: float, meridian: Optional[float] = None):
        super().__init__(message)
        self.power = power
        self.meridian = meridian

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["power"] = self.power
        data["meridian"] = self.meridian
        return data


class DivisionSingularity(OpticalCalculationError):
    """Vergence transformation denominator is zero."""
    kind = "singularity"


class ServiceError(RuntimeError):
    """Text-completion service failed or returned unusable output."""
    kind = "service"

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider
