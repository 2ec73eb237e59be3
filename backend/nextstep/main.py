from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .db.dynamodb.errors import DdbConflict, DdbError, DdbThrottled, DdbUnavailable, DdbValidation
from .errors import (
    DependencyError,
    EngineError,
    ForbiddenError,
    NotFoundError,
    StateError,
    ValidationError,
)
from .middleware.access_log import AccessLogMiddleware
from .middleware.auth import AuthMiddleware
from .middleware.cors import build_allowed_origins
from .middleware.request_context import RequestContextMiddleware
from .observability.logging import configure_logging, get_logger
from .problem_details import problem_response
from .routers.admin import router as admin_router
from .routers.applications import router as applications_router
from .routers.auth import router as auth_router
from .routers.businesses import router as businesses_router
from .routers.health import router as health_router
from .routers.opportunities import router as opportunities_router
from .routers.ratings import router as ratings_router
from .routers.students import router as students_router
from .settings import settings

# Most specific first; DuplicateApplicationError falls under ValidationError.
_ENGINE_STATUS: tuple[tuple[type[EngineError], int], ...] = (
    (ValidationError, 400),
    (ForbiddenError, 403),
    (NotFoundError, 404),
    (StateError, 409),
    (DependencyError, 503),
)


def create_app() -> FastAPI:
    configure_logging(level=str(settings.log_level or "INFO").upper())
    log = get_logger("startup")

    app = FastAPI(
        title="NextStep Backend",
        version="1.0.0",
        default_response_class=ORJSONResponse,
        redirect_slashes=False,
    )

    log.info("app_starting", settings=settings.to_log_safe_dict())

    # Last added is outermost.
    app.add_middleware(AuthMiddleware)
    app.add_middleware(AccessLogMiddleware, exclude_paths={"/"})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=build_allowed_origins(
            frontend_base_url=settings.frontend_base_url,
            frontend_urls=settings.frontend_urls,
        ),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-Id"],
        max_age=3000,
    )
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(EngineError, _engine_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DdbError, _ddb_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(auth_router, prefix="/api/auth")
    app.include_router(businesses_router, prefix="/api/businesses")
    app.include_router(students_router, prefix="/api/students")
    app.include_router(opportunities_router, prefix="/api/opportunities")
    app.include_router(applications_router, prefix="/api/applications")
    app.include_router(ratings_router, prefix="/api/ratings")
    app.include_router(admin_router, prefix="/api/admin")

    return app


def _engine_error_handler(request: Request, exc: EngineError) -> Response:
    status_code = 500
    for cls, code in _ENGINE_STATUS:
        if isinstance(exc, cls):
            status_code = code
            break

    if status_code >= 500:
        get_logger("errors").warning(
            "dependency_error",
            path=request.url.path,
            code=exc.code,
            error=exc.message,
        )

    extensions = dict(exc.details or {})
    if isinstance(exc, DependencyError):
        extensions["retryable"] = bool(exc.retryable)

    return problem_response(
        request=request,
        status_code=status_code,
        detail=exc.message,
        code=exc.code or exc.__class__.__name__,
        extensions=extensions or None,
    )


def _ddb_error_handler(request: Request, exc: DdbError) -> Response:
    # Storage errors that escaped the engine modules.
    status_code = 500
    title = "Storage Error"
    if isinstance(exc, DdbValidation):
        status_code = 400
        title = "Bad Request"
    elif isinstance(exc, DdbConflict):
        status_code = 409
        title = "Conflict"
    elif isinstance(exc, (DdbThrottled, DdbUnavailable)):
        status_code = 503
        title = "Service Unavailable"

    get_logger("errors").warning(
        "storage_error",
        path=request.url.path,
        operation=exc.operation,
        error_type=exc.__class__.__name__,
        retryable=bool(exc.retryable),
    )
    extensions = {
        "operation": exc.operation,
        "awsRequestId": exc.aws_request_id,
        "retryable": bool(exc.retryable),
    }
    return problem_response(
        request=request,
        status_code=status_code,
        title=title,
        detail=exc.message,
        extensions={k: v for k, v in extensions.items() if v is not None},
    )


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    status_code = int(getattr(exc, "status_code", 500) or 500)
    detail = getattr(exc, "detail", None)
    safe_detail = str(detail) if detail is not None else None
    if status_code == 404 and not safe_detail:
        safe_detail = "Route not found"
    return problem_response(request=request, status_code=status_code, detail=safe_detail)


def _validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    errors: list[dict[str, object]] = []
    for e in exc.errors():
        loc = e.get("loc") or ()
        errors.append(
            {
                "location": list(loc) if isinstance(loc, (list, tuple)) else [],
                "path": ".".join([str(x) for x in loc if x != "body"]),
                "message": e.get("msg", "Invalid value"),
                "type": e.get("type"),
            }
        )
    return problem_response(
        request=request,
        status_code=422,
        title="Validation Failed",
        detail="Request validation failed",
        errors=errors,
    )


def _unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    user = getattr(getattr(request, "state", None), "user", None)
    get_logger("unhandled").exception(
        "unhandled_exception",
        http_method=str(request.method or "").upper() or None,
        path=str(request.url.path or ""),
        user_sub=getattr(user, "sub", None),
    )
    return problem_response(
        request=request,
        status_code=500,
        title="Internal Server Error",
        detail=str(exc) or exc.__class__.__name__,
    )


app = create_app()
