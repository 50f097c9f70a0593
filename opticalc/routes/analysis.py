"""
AI Analysis API Routes
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..models.api import (
    ImageAnalysisOutput,
    ProblemSolverInput,
    ProblemSolverOutput,
    RxToleranceInput,
    RxToleranceOutput,
)
from ..services import analysis
from ..services.completion import TextCompletionService, get_completion_service
from ..utils import to_data_uri

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/rx-tolerance", response_model=RxToleranceOutput)
def rx_tolerance(rx: RxToleranceInput, service: TextCompletionService = Depends(get_completion_service)):
    """Check a fabricated lens against ANSI Z80.1 tolerances."""
    return analysis.analyze_rx_tolerance(rx, service)


@router.post("/problem-solver", response_model=ProblemSolverOutput)
def problem_solver(problem: ProblemSolverInput,
                   service: TextCompletionService = Depends(get_completion_service)):
    return analysis.solve_problem(problem, service)


@router.post("/image", response_model=ImageAnalysisOutput)
async def image_analysis(file: UploadFile = File(...),
                         service: TextCompletionService = Depends(get_completion_service)):
    if file.content_type not in analysis.ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Only png|jpg|jpeg|webp images accepted")
    body = await file.read()
    mb = len(body) / (1024 * 1024)
    if mb > settings.max_upload_mb:
        raise HTTPException(status_code=413, detail=f"File too large: {mb:.1f} MB")
    if not body:
        raise HTTPException(status_code=400, detail="Empty file")

    logger.info(f"Analyzing image {file.filename} ({file.content_type}, {mb:.2f} MB)")
    return await run_in_threadpool(analysis.analyze_image, to_data_uri(file.content_type, body), service)
