"""
Main application file
"""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from trialops.api.routes.api.finances import router as finances_router
from trialops.api.routes.api.leads import router as leads_router
from trialops.api.routes.api.participants import router as participants_router
from trialops.api.routes.api.visits import router as visits_router
from trialops.api.routes.auth import router as auth_router
from trialops.api.routes.storage.storage import router as storage_router
from trialops.config import get_settings
from trialops.contracts.base import ErrorResponse
from trialops.core.errors import DuplicateIdentifierError, TrialOpsError

# Load environment variables from .env file
load_dotenv()

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="TrialOps")

allowed_origins = [
    "http://localhost:8080",
    "http://localhost:5173",
]

# Add FRONTEND_URL from settings if set
if settings.frontend_url and settings.frontend_url not in allowed_origins:
    allowed_origins.append(settings.frontend_url)

# Allow all origins from environment variable if set
if settings.allow_all_origins:
    allowed_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True if allowed_origins != ["*"] else False,
    allow_methods=["*"],  # Allow all methods including OPTIONS for preflight
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.exception_handler(TrialOpsError)
async def trialops_error_handler(request: Request, exc: TrialOpsError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.message, code=exc.code).model_dump(),
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=DuplicateIdentifierError.status_code,
        content=ErrorResponse(
            detail="A record with this identifier already exists",
            code=DuplicateIdentifierError.code,
        ).model_dump(),
    )


@app.get("/")
def root():
    return {"status": "ok"}


app.include_router(
    auth_router,
    prefix="/auth",
    tags=["auth"]
)

app.include_router(
    participants_router,
    prefix="/api/participants",
    tags=["participants"],
)

app.include_router(
    visits_router,
    prefix="/api/visits",
    tags=["visits"],
)

app.include_router(
    finances_router,
    prefix="/api/finances",
    tags=["finances"],
)

app.include_router(
    leads_router,
    prefix="/api/leads",
    tags=["leads"],
)

app.include_router(
    storage_router,
    prefix="/storage",
    tags=["storage"],
)
