"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cinda.config import settings
from cinda.api.routes.analyze import router as analyze_router
from cinda.services.catalogue_service import CatalogueService
from cinda.services.prose_generator import ProseGenerator
from cinda.services.recommendation_service import RecommendationService

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup: load the catalogue once and share it across requests
    if not hasattr(app.state, "catalogue"):
        app.state.catalogue = CatalogueService.from_settings(settings)
    if not hasattr(app.state, "recommendation_service"):
        app.state.recommendation_service = RecommendationService(
            app.state.catalogue,
            min_candidates=settings.min_candidates,
            max_candidates=settings.max_candidates,
        )
    if not hasattr(app.state, "prose_generator"):
        app.state.prose_generator = ProseGenerator(
            api_key=settings.llm_api_key,
            api_url=settings.llm_api_url,
            model=settings.llm_model,
            timeout=settings.llm_timeout,
            enabled=settings.enable_llm,
        )
    yield
    # Shutdown: close the prose generator's HTTP client
    await app.state.prose_generator.close()


app = FastAPI(
    title="Cinda",
    description="Running shoe rotation analysis and recommendations",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors (400), not 422."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "cinda"}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Cinda API",
        "version": "0.1.0",
        "docs": "/docs",
    }


# Register routers
app.include_router(analyze_router)
