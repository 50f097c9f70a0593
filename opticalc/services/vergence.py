"""
Step-along vergence: image vergence and image distance through a refracting
surface, for one meridian or both principal meridians of an astigmatic system.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .calculations import SINGULARITY_EPSILON
from .errors import DivisionSingularity, ValidationError
from ..utils import check_finite, format_power


@dataclass
class MeridianVergence:
    surface_power: float  # D
    image_vergence: float  # D
    image_distance_cm: float  # cm, negative for a virtual image


@dataclass
class StepAlongResult:
    object_vergence: float  # D
    refractive_index: float
    meridians: List[MeridianVergence] = field(default_factory=list)


def _meridian(object_vergence: float, surface_power: float, refractive_index: float) -> MeridianVergence:
    image_vergence = object_vergence + surface_power
    if abs(image_vergence) < SINGULARITY_EPSILON:
        raise DivisionSingularity(
            f"Image vergence is zero for surface power {format_power(surface_power)}D: "
            f"the image is at infinity and has no finite distance."
        )
    return MeridianVergence(
        surface_power=surface_power,
        image_vergence=image_vergence,
        image_distance_cm=100.0 * refractive_index / image_vergence,
    )


def step_along_vergence(
    object_vergence: float,
    surface_power: float,
    refractive_index: float = 1.0,
    second_surface_power: Optional[float] = None,
) -> StepAlongResult:
    """
    L' = L + F and l' = n' / L' for each meridian.

    The optional second meridian uses the same object vergence.
    """
    check_finite(
        object_vergence=object_vergence,
        surface_power=surface_power,
        refractive_index=refractive_index,
        second_surface_power=second_surface_power,
    )
    if refractive_index < 1.0:
        raise ValidationError(f"Refractive index must be at least 1 (got {refractive_index}).")

    meridians = [_meridian(object_vergence, surface_power, refractive_index)]
    if second_surface_power is not None:
        meridians.append(_meridian(object_vergence, second_surface_power, refractive_index))

    return StepAlongResult(
        object_vergence=object_vergence,
        refractive_index=refractive_index,
        meridians=meridians,
    )


def step_along_focal_power(distance_cm: float, target_size: float, image_size: float) -> float:
    """
    Lens power (D) from a step-along magnification measurement.

    m = image / target, f = distance / (1/m - 1) in cm, F = 100 / f.
    Example: target 10, image 5 at 50 cm -> m = 0.5, f = 50 cm, F = +2.00 D.
    """
    check_finite(distance_cm=distance_cm, target_size=target_size, image_size=image_size)
    if distance_cm <= 0:
        raise ValidationError(f"Distance must be positive (got {distance_cm} cm).")
    if target_size <= 0 or image_size <= 0:
        raise ValidationError("Target and image sizes must be positive numbers.")

    magnification = image_size / target_size
    if abs(magnification - 1.0) < SINGULARITY_EPSILON:
        raise DivisionSingularity("Unit magnification: the lens has no measurable power at this distance.")

    focal_length_cm = distance_cm / (1.0 / magnification - 1.0)
    return 100.0 / focal_length_cm
