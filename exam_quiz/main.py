import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from exam_quiz.api import routes
from exam_quiz.utils.errors import (
    ErrorCode,
    build_error_payload,
    error_code_for_http_status,
)
from exam_quiz.utils.logging_setup import setup_file_logging, silence_noisy_loggers
from exam_quiz.utils.observability import get_request_id_from_headers
from exam_quiz.utils.settings import get_settings

logger = logging.getLogger(__name__)


def _session_id_from_request(request: Request) -> str | None:
    """Session id from the `/sessions/{id}` path, if any."""
    sid = (getattr(request, "path_params", None) or {}).get("session_id")
    if sid and str(sid).strip():
        return str(sid).strip()
    return None


def _request_id(request: Request) -> str | None:
    return getattr(
        getattr(request, "state", None), "request_id", None
    ) or get_request_id_from_headers(request.headers)


def _validate_cors(settings) -> None:
    env = str(settings.app_env or "dev").strip().lower()
    origins = [str(o or "").strip() for o in settings.allow_origins or []]
    origins = [o for o in origins if o]
    if env in {"prod", "production"}:
        if not origins or any(o == "*" for o in origins):
            raise RuntimeError(
                "CORS is not explicitly configured for production. "
                "Set ALLOW_ORIGINS to an explicit allowlist (no '*')."
            )


def create_app() -> FastAPI:
    settings = get_settings()
    _validate_cors(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: ARG001
        if settings.log_to_file:
            silence_noisy_loggers()
            setup_file_logging(settings)
        yield

    app = FastAPI(title="Exam Quiz", version="1.0.0", lifespan=lifespan)

    @app.middleware("http")
    async def _request_id_middleware(request: Request, call_next):
        request_id = get_request_id_from_headers(request.headers)
        if not request_id:
            request_id = f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = str(request_id)
        response = await call_next(request)
        response.headers["X-Request-Id"] = str(request_id)
        return response

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        code = error_code_for_http_status(int(exc.status_code))
        detail = exc.detail
        # Keep FastAPI's default `detail`, plus the canonical payload.
        if isinstance(detail, dict):
            message = str(detail.get("error") or detail.get("message") or detail)
            if detail.get("code") in {c.value for c in ErrorCode}:
                code = ErrorCode(detail["code"])
            details = detail
        else:
            message = str(detail)
            details = None
        payload = {"detail": detail}
        payload.update(
            build_error_payload(
                code=code,
                message=message,
                details=details,
                request_id=_request_id(request),
                session_id=_session_id_from_request(request),
            )
        )
        return JSONResponse(status_code=int(exc.status_code), content=payload)

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        errors = jsonable_encoder(exc.errors())
        payload = {"detail": errors}
        payload.update(
            build_error_payload(
                code=ErrorCode.VALIDATION_ERROR,
                message="Validation error",
                details={"errors": errors},
                request_id=_request_id(request),
                session_id=_session_id_from_request(request),
            )
        )
        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        payload = build_error_payload(
            code=ErrorCode.SERVICE_ERROR,
            message="Internal server error",
            request_id=_request_id(request),
            session_id=_session_id_from_request(request),
        )
        return JSONResponse(status_code=500, content=payload)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(routes.router, prefix="/api/v1")
    return app


app = create_app()
