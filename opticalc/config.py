import os
from pydantic import BaseModel


class Settings(BaseModel):
    allow_origin: str = os.getenv("ALLOW_ORIGIN", "*")
    max_upload_mb: int = int(os.getenv("MAX_UPLOAD_MB", "10"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # text-completion service
    completion_provider: str = os.getenv("COMPLETION_PROVIDER", "openai")
    completion_model: str = os.getenv("COMPLETION_MODEL", "gpt-4o-mini")
    completion_base_url: str = os.getenv("COMPLETION_BASE_URL", "http://localhost:8001")
    completion_timeout: int = int(os.getenv("COMPLETION_TIMEOUT", "120"))
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    image_model: str = os.getenv("IMAGE_MODEL", "gpt-image-1")
    annotate_images: bool = os.getenv("ANNOTATE_IMAGES", "true").lower() in ("1", "true", "yes")
    problem_solver_live: bool = os.getenv("PROBLEM_SOLVER_LIVE", "true").lower() in ("1", "true", "yes")
    # dispensing conventions
    edging_allowance_mm: float = float(os.getenv("EDGING_ALLOWANCE_MM", "2.0"))
    default_bvd_mm: float = float(os.getenv("DEFAULT_BVD_MM", "12.0"))
    drug_reference_path: str | None = os.getenv("DRUG_REFERENCE_PATH")


settings = Settings()
