import os
import logging
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()


class ScoringSettings(BaseModel):
    # Raw criterion scores are integers within [score_min, score_max]
    score_min: int = Field(default=int(os.getenv("SCORE_MIN", "1")))
    score_max: int = Field(default=int(os.getenv("SCORE_MAX", "5")))
    # Multiplier that maps a category mean onto the 0-100 scale (20 for 1-5)
    scale_factor: Decimal = Field(default=Decimal(os.getenv("SCORE_SCALE_FACTOR", "20")))
    # Allowed drift of the active weight sum around 100.00
    weight_tolerance: Decimal = Field(default=Decimal(os.getenv("WEIGHT_TOLERANCE", "0.01")))


class Config(BaseModel):
    app_name: str = "Performance Evaluation API"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./evaluations.db")

    # Scoring rules
    scoring: ScoringSettings = ScoringSettings()

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    # Seed departments, job roles and the default category set on startup
    seed_default_data: bool = os.getenv("SEED_DEFAULT_DATA", "true").lower() == "true"

settings = Config()

# --- Startup Validation ---
_logger = logging.getLogger(__name__)
if settings.scoring.score_min >= settings.scoring.score_max:
    raise RuntimeError(
        f"FATAL: SCORE_MIN ({settings.scoring.score_min}) must be lower than "
        f"SCORE_MAX ({settings.scoring.score_max})."
    )
if settings.scoring.score_max * settings.scoring.scale_factor > 100:
    _logger.warning(
        "⚠ SCORE_MAX x SCORE_SCALE_FACTOR exceeds 100; totals may leave the 0-100 range."
    )
