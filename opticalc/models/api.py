from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List


class RxToleranceInput(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    sphere: float = Field(description="Sphere power of the lens in diopters (e.g., -2.50)")
    cylinder: float = Field(description="Cylinder power of the lens in diopters (e.g., -1.00)")
    axis: float = Field(ge=0, le=180, description="Axis of the cylinder in degrees (e.g., 180)")
    add: Optional[float] = Field(None, description="Addition power for multifocal lenses (e.g., 2.25)")
    prism: Optional[float] = Field(None, description="Prism power in prism diopters (e.g., 1.0)")
    base: Optional[str] = Field(None, description="Prism base direction (e.g., BU for base up)")


class RxToleranceOutput(BaseModel):
    is_in_tolerance: bool = Field(description="Whether the lens prescription is within tolerance limits")
    advice: str = Field(description="Advice on whether refabrication is needed")
    detailed_analysis: str = Field(description="Detailed analysis of the prescription and tolerance")


class RxDetails(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    sphere: Optional[float] = None
    cylinder: Optional[float] = None
    axis: Optional[float] = None
    add: Optional[str] = None
    prism: Optional[str] = None
    base: Optional[str] = None
    pd: Optional[str] = None
    hts: Optional[str] = None


class LensDetails(BaseModel):
    type: Optional[str] = Field(None, description="Lens design (e.g., Single Vision, Varifocal)")
    material: Optional[str] = Field(None, description="Lens material or refractive index")


class ProblemSolverInput(BaseModel):
    problem: str = Field(min_length=1, description="The primary complaint or issue the patient is experiencing")
    current_rx: Optional[RxDetails] = None
    previous_rx: Optional[RxDetails] = None
    lens: Optional[LensDetails] = None
    is_difficult_patient: bool = Field(False, description="User believes the patient is being difficult")


class ProblemSolverOutput(BaseModel):
    analysis: str = Field(description="Detailed analysis of the potential root causes of the problem")
    solution: str = Field(description="Step-by-step recommended solution, markdown list")
    considerations: str = Field(description="Other potential factors or further considerations")


class ImageTextAnalysis(BaseModel):
    description: str = Field(description="A general overview and description of the ocular image")
    optic_disc: str = Field(description="Optic disc: cup-to-disc ratio, margins, neuroretinal rim")
    macula: str = Field(description="Macula: foveal reflex, pigmentary changes or abnormalities")
    vessels: str = Field(description="Retinal vessels: artery-to-vein ratio, tortuosity or nipping")
    anomalies: str = Field(description="Summary of potential anomalies or noteworthy features")


class ImageAnalysisOutput(ImageTextAnalysis):
    annotated_image_data_uri: Optional[str] = None


class DrugInfoModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    uses: str
    side_effects: str


class DrugCategoryModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    drugs: List[DrugInfoModel]


class DrugSearchResponse(BaseModel):
    query: str
    results: List[DrugInfoModel]
