"""
AI-backed analysis flows.

Each flow formats a prompt template from its input model, forwards it to the
configured text-completion service and returns the validated structured output:
- Rx tolerance: is a fabricated lens within ANSI Z80.1 tolerance?
- Problem solver: root causes and remedies for a dispensing complaint
- Image analyzer: structured description of an ocular (fundus) image,
  plus an optional annotated copy of the image
"""

import logging
from typing import Optional

from ..config import settings
from ..models.api import (
    ImageAnalysisOutput,
    ImageTextAnalysis,
    ProblemSolverInput,
    ProblemSolverOutput,
    RxDetails,
    RxToleranceInput,
    RxToleranceOutput,
)
from ..utils import format_power, parse_data_uri
from .completion import TextCompletionService, get_completion_service
from .errors import ServiceError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/webp"}

IMAGE_ANNOTATION_INSTRUCTION = (
    "Analyze this ocular fundus image. Draw a clear, thin, yellow circle around the optic disc. "
    "Draw a clear, thin, light-blue circle around the macula. If you see any clear anomalies like "
    "hemorrhages or exudates, draw a thin red arrow pointing to one of them. The annotations should "
    "be precise and not obscure the underlying features. Return only the annotated image."
)


def build_rx_tolerance_prompt(rx: RxToleranceInput) -> str:
    lines = [
        "You are an experienced optician who checks fabricated lenses against industry-standard tolerance limits.",
        "",
        "Lens prescription:",
        f"- Sphere: {format_power(rx.sphere)} D",
        f"- Cylinder: {format_power(rx.cylinder)} D",
        f"- Axis: {rx.axis:g} degrees",
    ]
    if rx.add:
        lines.append(f"- Add: {format_power(rx.add)} D")
    if rx.prism:
        lines.append(f"- Prism: {rx.prism:g} prism dioptres")
        lines.append(f"- Base: {rx.base or 'not specified'}")
    lines += [
        "",
        "Determine whether this prescription is within tolerance according to ANSI Z80.1.",
        "Explain your determination in detailed_analysis, quoting the tolerance applied to each component,",
        "then give advice on whether refabrication is needed.",
        "Set is_in_tolerance to true only if every component is within tolerance.",
        "",
        "Example detailed_analysis: \"The sphere power is -2.50 D, which is within the tolerance of +/- 0.13 D "
        "for this power range. The cylinder power is -1.00 D, within +/- 0.13 D. The axis is 180 degrees, "
        "within +/- 2 degrees. Therefore, this prescription is within tolerance.\"",
    ]
    return "\n".join(lines)


def _format_rx_details(label: str, rx: Optional[RxDetails]) -> str:
    if rx is None:
        return f"{label}: not provided"
    parts = []
    for name, value in rx.model_dump().items():
        if value is None or value == "":
            continue
        parts.append(f"{name}={format_power(value) if name in ('sphere', 'cylinder') else value}")
    return f"{label}: {', '.join(parts) if parts else 'not provided'}"


def build_problem_solver_prompt(problem: ProblemSolverInput) -> str:
    lines = [
        "You are a senior dispensing optician helping a colleague resolve a patient's complaint with new spectacles.",
        "",
        f"Complaint: {problem.problem}",
        _format_rx_details("Current Rx", problem.current_rx),
        _format_rx_details("Previous Rx", problem.previous_rx),
    ]
    if problem.lens:
        lines.append(f"Lens: type={problem.lens.type or 'unknown'}, material={problem.lens.material or 'unknown'}")
    if problem.is_difficult_patient:
        lines.append("The colleague suspects the patient is being difficult; factor this in with a touch of wit.")
    lines += [
        "",
        "In analysis, explain the likely root causes considering all the data above, especially changes between",
        "the previous and current prescription. In solution, give step-by-step actions as a markdown list.",
        "In considerations, list other factors worth checking.",
    ]
    return "\n".join(lines)


IMAGE_ANALYSIS_PROMPT = "\n".join([
    "You are an expert ophthalmic image analyst. The attached image is an ocular image uploaded by a user.",
    "1. Provide a general description of the image.",
    "2. Analyze the optic disc, macula and vessels in detail.",
    "3. Identify and summarize any potential anomalies or noteworthy features.",
    "Be professional and educational. Do not provide a diagnosis.",
])


def analyze_rx_tolerance(rx: RxToleranceInput, service: TextCompletionService = None) -> RxToleranceOutput:
    service = service or get_completion_service()
    result = service.complete(build_rx_tolerance_prompt(rx), RxToleranceOutput)
    logger.info(f"Rx tolerance analysis: in_tolerance={result.is_in_tolerance}")
    return result


def placeholder_solution(problem: ProblemSolverInput) -> ProblemSolverOutput:
    """Canned response used when live problem solving is switched off."""
    sphere = problem.current_rx.sphere if problem.current_rx and problem.current_rx.sphere is not None else 0
    condition = "hyperopia" if sphere > 0 else "myopia"
    analysis = (
        f"This is a simulated analysis based on the input. The primary complaint is: \"{problem.problem}\". "
        f"The patient's new prescription appears to be for {condition}. A significant change in axis or "
        f"cylinder power between the new and old prescription is often a key factor in adaptation issues."
    )
    solution = "\n".join([
        "*   First, re-verify all measurements, including PD, heights, and back vertex distance.",
        "*   Next, check the base curve and lens design against the previous pair.",
        "*   Consider a trial frame demonstration to confirm the patient's subjective experience.",
        "*   If all measurements are correct, a non-adapt period of 1-2 weeks may be necessary.",
    ])
    considerations = (
        "Other factors could include frame fit, pantoscopic tilt, and wrap angle. Also consider the patient's "
        "visual needs and lifestyle."
    )
    if problem.is_difficult_patient:
        considerations += " With this patient, bedside manner and careful communication will be paramount to success."
    return ProblemSolverOutput(analysis=analysis, solution=solution, considerations=considerations)


def solve_problem(problem: ProblemSolverInput, service: TextCompletionService = None) -> ProblemSolverOutput:
    if not settings.problem_solver_live:
        logger.info("Problem solver is not live, returning placeholder analysis")
        return placeholder_solution(problem)
    service = service or get_completion_service()
    return service.complete(build_problem_solver_prompt(problem), ProblemSolverOutput)


def analyze_image(image_data_uri: str, service: TextCompletionService = None,
                  annotate: Optional[bool] = None) -> ImageAnalysisOutput:
    mime, _ = parse_data_uri(image_data_uri)
    if mime not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(f"Unsupported image type {mime}; expected one of {', '.join(sorted(ALLOWED_IMAGE_TYPES))}.")

    service = service or get_completion_service()
    text = service.complete(IMAGE_ANALYSIS_PROMPT, ImageTextAnalysis, image_data_uri=image_data_uri)
    if text is None:
        raise ServiceError("Text analysis failed to produce an output.", provider=service.provider)

    if annotate is None:
        annotate = settings.annotate_images

    annotated = None
    if annotate:
        annotated = service.annotate_image(image_data_uri, IMAGE_ANNOTATION_INSTRUCTION)

    return ImageAnalysisOutput(**text.model_dump(), annotated_image_data_uri=annotated)
