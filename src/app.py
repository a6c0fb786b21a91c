import logging
import os
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config import Settings
from src.exceptions import AnalysisError, BatchAnalysisError, ExtractionError
from src.extraction import extract_feedbacks
from src.openai_client import CompletionProvider, OpenAIClientError, OpenAIProvider
from src.pipeline import analyze_single, run_batch
from src.schemas import SAMPLE_FEEDBACKS, AnalyzeRequest, BatchAnalyzeRequest

# Load environment variables from .env file
load_dotenv()

# Set up logging
logging_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging_level
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Feedback Sentiment Analyzer", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------------
# Dependencies
# ------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def _build_provider(settings: Settings) -> OpenAIProvider:
    logger.info(
        "Configuring OpenAI provider (model=%s, base_url=%s)",
        settings.openai_model,
        settings.openai_base_url,
    )
    return OpenAIProvider.from_settings(settings)


def get_provider(settings: Settings = Depends(get_settings)) -> CompletionProvider:
    """Shared provider, built on first use so the app imports without a key."""
    return _build_provider(settings)


# ------------------------------------------------------------------
# Middleware & error handlers
# ------------------------------------------------------------------


@app.middleware("http")
async def log_request(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d - %dms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
    return response


def _error_body(error: str, code: str, message: str, **extra: Any) -> Dict[str, Any]:
    return {"error": error, "code": code, "message": message, **extra}


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=_error_body(
            "Invalid request",
            "validation_error",
            "The request body failed validation.",
            details=jsonable_encoder(exc.errors()),
        ),
    )


@app.exception_handler(AnalysisError)
async def analysis_error_handler(_request: Request, exc: AnalysisError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(ExtractionError)
async def extraction_error_handler(_request: Request, exc: ExtractionError):
    return JSONResponse(
        status_code=400, content=_error_body("Invalid file", "extraction_failed", str(exc))
    )


@app.exception_handler(OpenAIClientError)
async def client_config_error_handler(_request: Request, exc: OpenAIClientError):
    logger.error("Provider is not configured: %s", exc)
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "Service not configured",
            "configuration_error",
            "The analysis provider is not configured.",
        ),
    )


# ------------------------------------------------------------------
# Routes
# ------------------------------------------------------------------


@app.get("/api/health")
def health() -> Dict[str, str]:
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return {"status": "ok", "timestamp": timestamp.replace("+00:00", "Z")}


@app.get("/api/samples")
def samples() -> Dict[str, Any]:
    return {"feedbacks": SAMPLE_FEEDBACKS}


@app.post("/api/analyze")
def analyze(
    request: AnalyzeRequest,
    provider: CompletionProvider = Depends(get_provider),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Analyse a single feedback text."""
    try:
        result = analyze_single(request.feedback, provider, settings)
    except AnalysisError as exc:
        logger.error("Analysis error: %s", exc, exc_info=True)
        raise
    except Exception as exc:
        logger.exception("Unexpected analysis failure")
        raise AnalysisError() from exc
    return result.to_dict()


@app.post("/api/analyze/batch")
def analyze_batch(
    request: BatchAnalyzeRequest,
    provider: CompletionProvider = Depends(get_provider),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Analyse up to 100 feedbacks; per-item failures stay inside the payload."""
    try:
        report = run_batch(request.feedbacks, provider, settings)
    except Exception as exc:
        logger.exception("Batch analysis error")
        raise BatchAnalysisError() from exc
    return report.to_dict()


@app.post("/api/extract")
async def extract(file: UploadFile = File(...)) -> Dict[str, Any]:
    """Pull feedback strings out of an uploaded JSON, CSV or text file."""
    content = await file.read()
    extraction = extract_feedbacks(file.filename or "", content)
    logger.info(
        "Extracted %d feedback(s) from %s (truncated=%s)",
        len(extraction.feedbacks),
        file.filename,
        extraction.truncated,
    )
    return extraction.to_dict()
