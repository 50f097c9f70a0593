"""
Optical Calculation API Routes

One endpoint per formula. Inputs are range-checked by the request models;
cross-field and geometric failures raised by the services are turned into
422 responses by the application's exception handler.
"""

from fastapi import APIRouter

from ..config import settings
from ..models.schema import (
    BlankSizeEffectiveDiameterRequest,
    BlankSizeFrameRequest,
    BlankSizeResponse,
    CalculationErrorDetail,
    ContactLensRequest,
    EdgeThicknessRequest,
    EdgeThicknessResponse,
    InducedPrismRequest,
    LensThicknessRequest,
    LensThicknessResponse,
    MeridianVergenceResponse,
    PowerResponse,
    PrescriptionResponse,
    PrismResponse,
    ProgressiveAddRequest,
    StepAlongFocalPowerRequest,
    StepAlongVergenceRequest,
    StepAlongVergenceResponse,
    ToricLensThicknessRequest,
    ToricLensThicknessResponse,
    TransposeRequest,
    VertexConversionRequest,
)
from ..services import calculations, thickness, vergence
from ..utils import format_power, format_rx

router = APIRouter(responses={422: {"model": CalculationErrorDetail}})


def _r(value):
    return None if value is None else round(value, 2)


@router.post("/lens-thickness", response_model=LensThicknessResponse)
async def lens_thickness(req: LensThicknessRequest):
    result = thickness.lens_thickness(req.sphere, req.index, req.diameter, req.min_thickness)
    return LensThicknessResponse(thickness=_r(result.thickness), kind=result.kind)


@router.post("/toric-lens-thickness", response_model=ToricLensThicknessResponse)
async def toric_lens_thickness(req: ToricLensThicknessRequest):
    result = thickness.toric_lens_thickness(
        req.sphere, req.cylinder, req.axis, req.index, req.diameter, req.min_thickness
    )
    return ToricLensThicknessResponse(
        max_thickness=_r(result.max_thickness),
        min_thickness=_r(result.min_thickness),
        thickest_meridian=result.thickest_meridian,
        kind=result.kind,
    )


@router.post("/edge-thickness", response_model=EdgeThicknessResponse)
async def edge_thickness(req: EdgeThicknessRequest):
    result = thickness.toric_edge_thickness(
        req.sphere, req.cylinder, req.axis, req.index, req.diameter, req.reference_thickness
    )
    return EdgeThicknessResponse(
        min_edge=_r(result.min_edge),
        max_edge=_r(result.max_edge),
        center=_r(result.center),
        min_edge_axis=result.min_edge_axis,
        max_edge_axis=result.max_edge_axis,
        eye=req.eye,
    )


@router.post("/induced-prism", response_model=PrismResponse)
async def induced_prism(req: InducedPrismRequest):
    return PrismResponse(prism=_r(calculations.induced_prism(req.power, req.decentration_mm)))


@router.post("/vertex", response_model=PowerResponse)
async def vertex_conversion(req: VertexConversionRequest):
    power = calculations.vertex_conversion(req.power, req.original_bvd_mm, req.new_bvd_mm)
    return PowerResponse(power=_r(power), formatted=format_power(power))


@router.post("/transpose", response_model=PrescriptionResponse)
async def transpose(req: TransposeRequest):
    rx = calculations.transpose(req.sphere, req.cylinder, req.axis)
    return PrescriptionResponse(
        sphere=_r(rx.sphere),
        cylinder=_r(rx.cylinder),
        axis=rx.axis,
        formatted=format_rx(rx.sphere, rx.cylinder, rx.axis),
    )


@router.post("/contact-lens", response_model=PrescriptionResponse)
async def contact_lens(req: ContactLensRequest):
    rx = calculations.contact_lens_conversion(req.sphere, req.cylinder, req.axis, req.bvd_mm)
    return PrescriptionResponse(
        sphere=rx.sphere,
        cylinder=rx.cylinder,
        axis=rx.axis,
        formatted=format_rx(rx.sphere, rx.cylinder, rx.axis),
    )


@router.post("/blank-size/frame", response_model=BlankSizeResponse)
async def blank_size_frame(req: BlankSizeFrameRequest):
    size = calculations.blank_size_frame(
        req.eye_size, req.bridge_size, req.patient_pd, allowance=settings.edging_allowance_mm
    )
    return BlankSizeResponse(blank_size=_r(size))


@router.post("/blank-size/effective-diameter", response_model=BlankSizeResponse)
async def blank_size_effective_diameter(req: BlankSizeEffectiveDiameterRequest):
    size = calculations.blank_size_effective_diameter(
        req.effective_diameter, req.frame_pd, req.patient_pd, allowance=settings.edging_allowance_mm
    )
    return BlankSizeResponse(blank_size=_r(size))


@router.post("/progressive-add", response_model=PowerResponse)
async def progressive_add(req: ProgressiveAddRequest):
    add = calculations.progressive_effective_add(req.add_power, req.corridor_length, req.distance_from_oc)
    return PowerResponse(power=_r(add), formatted=format_power(add))


@router.post("/step-along/vergence", response_model=StepAlongVergenceResponse)
async def step_along_vergence(req: StepAlongVergenceRequest):
    result = vergence.step_along_vergence(
        req.object_vergence, req.surface_power, req.refractive_index, req.second_surface_power
    )
    return StepAlongVergenceResponse(
        object_vergence=result.object_vergence,
        refractive_index=result.refractive_index,
        meridians=[
            MeridianVergenceResponse(
                surface_power=m.surface_power,
                image_vergence=_r(m.image_vergence),
                image_distance_cm=_r(m.image_distance_cm),
            )
            for m in result.meridians
        ],
    )


@router.post("/step-along/focal-power", response_model=PowerResponse)
async def step_along_focal_power(req: StepAlongFocalPowerRequest):
    power = vergence.step_along_focal_power(req.distance_cm, req.target_size, req.image_size)
    return PowerResponse(power=_r(power), formatted=format_power(power))
