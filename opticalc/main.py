from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import logging, uuid

from . import __version__
from .config import settings
from .logging_conf import configure_logging
from .services.errors import OpticalCalculationError, ServiceError

configure_logging()
log = logging.getLogger(__name__)

app = FastAPI(title="OptiCalc Optical Dispensing Tools", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.allow_origin] if settings.allow_origin != "*" else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

app.add_middleware(RequestIdMiddleware)


@app.exception_handler(OpticalCalculationError)
async def calculation_error_handler(request: Request, exc: OpticalCalculationError):
    log.info(f"{request.url.path}: {exc.kind} error: {exc.message}",
             extra={"request_id": getattr(request.state, "request_id", "-")})
    return JSONResponse(status_code=422, content={"detail": exc.to_dict()})


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    log.error(f"{request.url.path}: completion service error ({exc.provider}): {exc.message}",
              extra={"request_id": getattr(request.state, "request_id", "-")})
    return JSONResponse(status_code=502, content={"detail": {"kind": exc.kind, "message": exc.message}})


# Include routers
from .routes.calculate import router as calculate_router
from .routes.analysis import router as analysis_router
from .routes.reference import router as reference_router
app.include_router(calculate_router, prefix="/calculate", tags=["calculate"])
app.include_router(analysis_router, prefix="/analysis", tags=["analysis"])
app.include_router(reference_router, prefix="/reference", tags=["reference"])

@app.get("/")
def root():
    return {"ok": True, "service": "opticalc", "completion_provider": settings.completion_provider}

@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "opticalc", "version": __version__}
