from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal, List

from ..config import settings

Eye = Literal["OD", "OS"]


# --- requests ---

class CalculationRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)


class LensThicknessRequest(CalculationRequest):
    sphere: float = Field(ge=-30, le=30, description="D")
    index: float = Field(1.586, ge=1.4, le=2.0, description="refractive index")
    diameter: float = Field(70, ge=30, le=90, description="mm")
    min_thickness: float = Field(1.0, ge=0.1, le=10, description="mm")


class ToricLensThicknessRequest(LensThicknessRequest):
    cylinder: float = Field(0.0, ge=-15, le=15, description="D")
    axis: float = Field(90, ge=0, le=180, description="degrees")


class EdgeThicknessRequest(CalculationRequest):
    sphere: float = Field(ge=-20, le=20, description="D")
    cylinder: float = Field(0.0, ge=-10, le=0, description="D (minus cylinder form)")
    axis: float = Field(90, ge=1, le=180, description="degrees")
    index: float = Field(1.586, ge=1.4, le=2.0, description="refractive index")
    diameter: float = Field(70, ge=30, le=90, description="mm")
    reference_thickness: float = Field(1.0, ge=0.1, le=10, description="mm")
    eye: Optional[Eye] = None


class InducedPrismRequest(CalculationRequest):
    power: float = Field(ge=-20, le=20, description="D")
    decentration_mm: float = Field(description="mm")


class VertexConversionRequest(CalculationRequest):
    power: float = Field(description="D")
    original_bvd_mm: float = Field(ge=0, description="mm")
    new_bvd_mm: float = Field(ge=0, description="mm")


class TransposeRequest(CalculationRequest):
    sphere: float = Field(ge=-25, le=25, description="D")
    cylinder: float = Field(ge=-15, le=15, description="D")
    axis: float = Field(ge=1, le=180, description="degrees")


class ContactLensRequest(CalculationRequest):
    sphere: float = Field(ge=-20, le=20, description="D")
    cylinder: float = Field(0.0, ge=-10, le=0, description="D")
    axis: Optional[float] = Field(None, ge=1, le=180, description="degrees")
    bvd_mm: float = Field(default_factory=lambda: settings.default_bvd_mm, ge=0, le=20, description="mm")


class BlankSizeFrameRequest(CalculationRequest):
    eye_size: float = Field(ge=0, description="mm")
    bridge_size: float = Field(ge=0, description="mm")
    patient_pd: float = Field(ge=0, description="mm")


class BlankSizeEffectiveDiameterRequest(CalculationRequest):
    effective_diameter: float = Field(ge=0, description="mm")
    frame_pd: float = Field(ge=0, description="mm")
    patient_pd: float = Field(ge=0, description="mm")


class ProgressiveAddRequest(CalculationRequest):
    add_power: float = Field(ge=0, description="D")
    corridor_length: float = Field(ge=5, description="mm")
    distance_from_oc: float = Field(ge=0, description="mm")


class StepAlongVergenceRequest(CalculationRequest):
    object_vergence: float = Field(description="D")
    surface_power: float = Field(description="D")
    refractive_index: float = Field(1.0, ge=1.0, le=2.0)
    second_surface_power: Optional[float] = Field(None, description="D, second principal meridian")


class StepAlongFocalPowerRequest(CalculationRequest):
    distance_cm: float = Field(gt=0, description="cm")
    target_size: float = Field(gt=0)
    image_size: float = Field(gt=0)


# --- responses ---

class CalculationErrorDetail(BaseModel):
    kind: str
    message: str
    power: Optional[float] = None
    meridian: Optional[float] = None


class LensThicknessResponse(BaseModel):
    thickness: float = Field(description="mm")
    kind: Literal["center", "edge"]


class ToricLensThicknessResponse(BaseModel):
    max_thickness: float
    min_thickness: float
    thickest_meridian: float
    kind: Literal["center", "edge"]


class EdgeThicknessResponse(BaseModel):
    min_edge: float
    max_edge: float
    center: float
    min_edge_axis: Optional[float] = None
    max_edge_axis: Optional[float] = None
    eye: Optional[Eye] = None


class PrismResponse(BaseModel):
    prism: float = Field(description="prism dioptres")


class PowerResponse(BaseModel):
    power: float = Field(description="D")
    formatted: str


class PrescriptionResponse(BaseModel):
    sphere: float
    cylinder: float
    axis: Optional[float] = None
    formatted: str


class BlankSizeResponse(BaseModel):
    blank_size: float = Field(description="mm")


class MeridianVergenceResponse(BaseModel):
    surface_power: float
    image_vergence: float
    image_distance_cm: float


class StepAlongVergenceResponse(BaseModel):
    object_vergence: float
    refractive_index: float
    meridians: List[MeridianVergenceResponse]
