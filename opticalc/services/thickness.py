"""
Lens Thickness Service

Sagitta-based thickness estimates for spectacle lenses:
- Spherical lenses: center thickness (plus) or edge thickness (minus)
- Toric lenses: thinnest/thickest edge and center for a two-meridian lens
- Toric meridian sweep: thickest point over every meridian in 1 degree steps

Each meridian is treated as a single refracting surface of radius
r = 1000 * (n - 1) / F (mm); the sag of that surface across the lens
diameter is the thickness added to the minimum (or reference) thickness.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import GeometryError, ValidationError
from ..utils import check_finite, format_power, is_valid_axis, perpendicular_axis

logger = logging.getLogger(__name__)

CENTER = "center"
EDGE = "edge"


@dataclass
class LensThickness:
    """Thickest point of a spherical lens."""
    thickness: float  # mm
    kind: str  # "center" for plus/plano, "edge" for minus


@dataclass
class ToricEdgeThickness:
    """Edge and center thickness of a two-meridian (toric) lens."""
    min_edge: float  # mm
    max_edge: float  # mm
    center: float  # mm
    min_edge_axis: Optional[float] = None  # degrees, thinnest edge meridian
    max_edge_axis: Optional[float] = None  # degrees, thickest edge meridian


@dataclass
class ToricLensThickness:
    """Result of the 0-179 degree meridian sweep."""
    max_thickness: float  # mm
    min_thickness: float  # mm
    thickest_meridian: float  # degrees
    kind: str


def _check_lens_inputs(index: float, diameter: float, thickness: float) -> None:
    check_finite(index=index, diameter=diameter, thickness=thickness)
    if not index > 1.0:
        raise ValidationError(f"Refractive index must be greater than 1 (got {index}).")
    if not diameter > 0:
        raise ValidationError(f"Lens diameter must be positive (got {diameter} mm).")
    if thickness < 0:
        raise ValidationError(f"Thickness must not be negative (got {thickness} mm).")


def surface_radius(power: float, index: float) -> float:
    """Radius of curvature (mm) of a surface of ``power`` D in a material of ``index``."""
    check_finite(power=power, index=index)
    if not index > 1.0:
        raise ValidationError(f"Refractive index must be greater than 1 (got {index}).")
    if power == 0:
        raise ValidationError("A plano surface has no finite radius of curvature.")
    return abs(1000.0 * (index - 1.0) / power)


def sagitta(power: float, index: float, diameter: float, meridian: Optional[float] = None) -> float:
    """
    Sag (mm) of a surface of ``power`` spanning a lens of ``diameter`` mm.

    Plano surfaces have zero sag. Raises GeometryError when the radius is not
    larger than the semi-diameter.
    """
    check_finite(power=power, diameter=diameter)
    if power == 0:
        return 0.0

    radius = surface_radius(power, index)
    semi_diameter = diameter / 2.0

    if radius <= semi_diameter:
        where = f" at meridian {meridian:g}" if meridian is not None else ""
        logger.debug(f"Geometry failure: r={radius:.2f}mm <= s={semi_diameter:.2f}mm{where}")
        raise GeometryError(
            f"Power ({format_power(power)}D){where} is too high for the {diameter:g}mm diameter: "
            f"surface radius {radius:.1f}mm is not larger than the {semi_diameter:g}mm semi-diameter.",
            power=power,
            meridian=meridian,
        )

    return radius - math.sqrt(radius ** 2 - semi_diameter ** 2)


def lens_thickness(sphere: float, index: float, diameter: float, min_thickness: float) -> LensThickness:
    """Center thickness of a plus lens, or edge thickness of a minus lens."""
    check_finite(sphere=sphere)
    _check_lens_inputs(index, diameter, min_thickness)

    if sphere == 0:
        return LensThickness(thickness=min_thickness, kind=CENTER)

    sag = sagitta(sphere, index, diameter)
    kind = CENTER if sphere > 0 else EDGE
    return LensThickness(thickness=sag + min_thickness, kind=kind)


def toric_edge_thickness(
    sphere: float,
    cylinder: float,
    axis: float,
    index: float,
    diameter: float,
    reference_thickness: float,
) -> ToricEdgeThickness:
    """
    Thinnest edge, thickest edge and center thickness of a toric lens.

    The sphere meridian lies along ``axis`` and the sphere + cylinder meridian
    along the perpendicular. For a plus form the reference thickness is the
    thinnest edge; otherwise it is the center thickness.
    """
    check_finite(sphere=sphere, cylinder=cylinder, axis=axis)
    _check_lens_inputs(index, diameter, reference_thickness)

    if cylinder == 0:
        spherical = lens_thickness(sphere, index, diameter, reference_thickness)
        if spherical.kind == CENTER:
            return ToricEdgeThickness(
                min_edge=reference_thickness,
                max_edge=reference_thickness,
                center=spherical.thickness,
            )
        return ToricEdgeThickness(
            min_edge=spherical.thickness,
            max_edge=spherical.thickness,
            center=reference_thickness,
        )

    if not is_valid_axis(axis):
        raise ValidationError(f"Axis must be between 1 and 180 degrees (got {axis}).")

    second_axis = perpendicular_axis(axis)
    second_power = sphere + cylinder

    sag1 = sagitta(sphere, index, diameter, meridian=axis)
    sag2 = sagitta(second_power, index, diameter, meridian=second_axis)

    min_sag = min(sag1, sag2)
    max_sag = max(sag1, sag2)
    max_sag_axis = axis if sag1 >= sag2 else second_axis
    min_sag_axis = second_axis if max_sag_axis == axis else axis

    if max(sphere, second_power) > 0:
        # plus form: edge is thinnest where the surface is steepest
        min_edge = reference_thickness
        center = max_sag + min_edge
        max_edge = center - min_sag
        return ToricEdgeThickness(
            min_edge=min_edge,
            max_edge=max_edge,
            center=center,
            min_edge_axis=max_sag_axis,
            max_edge_axis=min_sag_axis,
        )

    center = reference_thickness
    return ToricEdgeThickness(
        min_edge=min_sag + center,
        max_edge=max_sag + center,
        center=center,
        min_edge_axis=min_sag_axis,
        max_edge_axis=max_sag_axis,
    )


def meridian_power(sphere: float, cylinder: float, axis: float, theta):
    """Power along meridian ``theta`` (degrees): S + C * sin^2(theta - axis). Accepts arrays."""
    delta = np.radians(np.asarray(theta, dtype=float) - axis)
    power = sphere + cylinder * np.sin(delta) ** 2
    return power if np.ndim(power) else float(power)


def toric_lens_thickness(
    sphere: float,
    cylinder: float,
    axis: float,
    index: float,
    diameter: float,
    min_thickness: float,
) -> ToricLensThickness:
    """Sweep meridians 0-179 degrees and report the thickest point of the lens."""
    check_finite(sphere=sphere, cylinder=cylinder, axis=axis)
    _check_lens_inputs(index, diameter, min_thickness)
    if cylinder and not 0 <= axis <= 180:
        raise ValidationError(f"Axis must be between 0 and 180 degrees (got {axis}).")

    thetas = np.arange(0, 180, dtype=float)
    powers = meridian_power(sphere, cylinder, axis, thetas)
    semi_diameter = diameter / 2.0

    nonzero = powers != 0
    safe_powers = np.where(nonzero, powers, 1.0)
    radii = np.abs(1000.0 * (index - 1.0) / safe_powers)

    invalid = nonzero & (radii <= semi_diameter)
    if invalid.any():
        i = int(np.argmax(invalid))
        # re-run the scalar check to raise with the failing meridian
        sagitta(float(powers[i]), index, diameter, meridian=float(thetas[i]))

    sags = np.where(nonzero, radii - np.sqrt(np.clip(radii ** 2 - semi_diameter ** 2, 0.0, None)), 0.0)
    thicknesses = sags + min_thickness

    i = int(np.argmax(thicknesses))
    logger.debug(f"Toric sweep: thickest {thicknesses[i]:.2f}mm at {thetas[i]:.0f} deg")
    return ToricLensThickness(
        max_thickness=float(thicknesses[i]),
        min_thickness=float(min_thickness),
        thickest_meridian=float(thetas[i]),
        kind=CENTER if powers[i] >= 0 else EDGE,
    )
