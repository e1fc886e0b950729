from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import time
import logging

from app.config.settings import settings
from app.core.errors import EngineError
from app.shared.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

def setup_middleware(app: FastAPI):
    """Configure all middleware for the application"""

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

def setup_exception_handlers(app: FastAPI):
    """Traducir errores de dominio a respuestas HTTP"""

    @app.exception_handler(EngineError)
    async def engine_error_handler(request: Request, exc: EngineError):
        logger.info(
            f"{request.method} {request.url.path} rechazado: "
            f"{exc.error_code} - {exc.message}"
        )
        error = ErrorResponse(**exc.to_dict())
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(error))
