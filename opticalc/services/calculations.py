"""
Dispensing Calculation Service

Closed-form power and dispensing formulas:
- Prentice's rule (induced prism)
- Back vertex distance compensation
- Plus/minus cylinder transposition
- Spectacle to contact lens conversion
- Minimum blank size (frame based and effective-diameter based)
- Progressive lens effective add (linear corridor approximation)

Every function is pure and raises an OpticalCalculationError subclass instead
of returning NaN or infinity.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import DivisionSingularity, ValidationError
from ..utils import QUARTER_DIOPTER, check_finite, format_power, is_valid_axis, round_to_step

# Glazing/edging allowance added to every blank size (domain convention)
EDGING_ALLOWANCE_MM = 2.0

DEFAULT_CONTACT_LENS_BVD_MM = 12.0

SINGULARITY_EPSILON = 1e-9


@dataclass
class Prescription:
    """Sphero-cylindrical prescription."""
    sphere: float  # diopters
    cylinder: float  # diopters
    axis: Optional[float] = None  # degrees, (0, 180]


def _vertex_denominator(power: float, distance_m: float) -> float:
    denom = 1.0 - distance_m * power
    if abs(denom) < SINGULARITY_EPSILON:
        raise DivisionSingularity(
            f"Compensated power is undefined: a {format_power(power)}D lens moved "
            f"{distance_m * 1000:g}mm places its focal point at the new vertex plane."
        )
    return denom


def induced_prism(power: float, decentration_mm: float) -> float:
    """
    Prentice's rule: prism (prism diopters) = |F| x c, with c in centimetres.
    Example: 4.00 D decentred 3 mm -> 1.20 prism dioptres.
    """
    check_finite(power=power, decentration_mm=decentration_mm)
    return abs(power * (decentration_mm / 10.0))


def vertex_conversion(power: float, original_bvd_mm: float, new_bvd_mm: float) -> float:
    """
    Compensate lens power for a change of back vertex distance.
    Fc = F / (1 - d*F), d = (original - new) in metres.
    Example: +10.00 D moved from 12 mm to 10 mm -> +10.20 D.
    """
    check_finite(power=power, original_bvd_mm=original_bvd_mm, new_bvd_mm=new_bvd_mm)
    d = (original_bvd_mm - new_bvd_mm) / 1000.0
    return power / _vertex_denominator(power, d)


def transpose(sphere: float, cylinder: float, axis: float) -> Prescription:
    """Convert between plus and minus cylinder notation."""
    check_finite(sphere=sphere, cylinder=cylinder)
    if not is_valid_axis(axis):
        raise ValidationError(f"Axis must be between 1 and 180 degrees (got {axis}).")

    new_axis = axis + 90
    if new_axis > 180:
        new_axis -= 180

    return Prescription(sphere=sphere + cylinder, cylinder=-cylinder, axis=new_axis)


def contact_lens_conversion(
    sphere: float,
    cylinder: float = 0.0,
    axis: Optional[float] = None,
    bvd_mm: float = DEFAULT_CONTACT_LENS_BVD_MM,
) -> Prescription:
    """
    Spectacle Rx to contact lens Rx. Only the sphere is vertex compensated
    (rounded to the nearest 0.25 D); cylinder and axis pass through unchanged.
    """
    check_finite(sphere=sphere, cylinder=cylinder, axis=axis, bvd_mm=bvd_mm)
    if bvd_mm < 0:
        raise ValidationError(f"Vertex distance must not be negative (got {bvd_mm} mm).")
    if cylinder and not is_valid_axis(axis):
        raise ValidationError("Axis is required for cylindrical prescriptions (1-180 degrees).")

    d = bvd_mm / 1000.0
    compensated = sphere / _vertex_denominator(sphere, d)
    return Prescription(
        sphere=round_to_step(compensated, QUARTER_DIOPTER),
        cylinder=cylinder,
        axis=axis,
    )


def blank_size_frame(
    eye_size: float,
    bridge_size: float,
    patient_pd: float,
    allowance: float = EDGING_ALLOWANCE_MM,
) -> float:
    """Minimum blank size (mm) from the frame's boxed eye size and bridge."""
    check_finite(eye_size=eye_size, bridge_size=bridge_size, patient_pd=patient_pd, allowance=allowance)
    for name, value in (("Eye size", eye_size), ("Bridge size", bridge_size), ("Patient PD", patient_pd)):
        if value < 0:
            raise ValidationError(f"{name} must be a positive number (got {value}).")

    frame_pd = eye_size + bridge_size
    if frame_pd < patient_pd:
        raise ValidationError(
            f"Frame PD (Eye Size + Bridge Size = {frame_pd:g}mm) must be greater than "
            f"or equal to Patient PD ({patient_pd:g}mm)."
        )
    return frame_pd - patient_pd + eye_size + allowance


def blank_size_effective_diameter(
    effective_diameter: float,
    frame_pd: float,
    patient_pd: float,
    allowance: float = EDGING_ALLOWANCE_MM,
) -> float:
    """Minimum blank size (mm) from the frame's effective diameter."""
    check_finite(effective_diameter=effective_diameter, frame_pd=frame_pd, patient_pd=patient_pd, allowance=allowance)
    for name, value in (("Effective diameter", effective_diameter), ("Frame PD", frame_pd), ("Patient PD", patient_pd)):
        if value < 0:
            raise ValidationError(f"{name} must be a positive number (got {value}).")

    if frame_pd < patient_pd:
        raise ValidationError(
            f"Frame PD ({frame_pd:g}mm) must be greater than or equal to Patient PD ({patient_pd:g}mm)."
        )
    decentration = frame_pd - patient_pd
    return effective_diameter + decentration + allowance


def progressive_effective_add(add_power: float, corridor_length: float, distance_from_oc: float) -> float:
    """
    Effective add at ``distance_from_oc`` mm down the corridor.

    Linear approximation only; real progressive designs do not ramp linearly.
    """
    check_finite(add_power=add_power, corridor_length=corridor_length, distance_from_oc=distance_from_oc)
    if add_power < 0:
        raise ValidationError(f"Add power must be positive (got {add_power}).")
    if corridor_length <= 0:
        raise ValidationError(f"Corridor length must be positive (got {corridor_length} mm).")
    if not 0 <= distance_from_oc <= corridor_length:
        raise ValidationError(
            f"Distance from OC ({distance_from_oc:g}mm) must be between 0 and the "
            f"corridor length ({corridor_length:g}mm)."
        )
    return (distance_from_oc / corridor_length) * add_power
