import uuid
import time
import json
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.responses import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS, error_response, validation_error_response
from app.db.session import Database
from app.routers import admin, assets, health


def create_app(database: Database | None = None) -> FastAPI:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    app = FastAPI(title="Asset Service API", version="1.0.0")

    logger = logging.getLogger("assets")

    app.state.database = database or Database.from_settings()

    allow_origins = [o.strip() for o in str(settings.cors_allow_origins or "").split(",") if o.strip()] or ["*"]

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        t0 = time.perf_counter()
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = rid
        status_code: int | None = None
        try:
            response = await call_next(request)
            status_code = int(getattr(response, "status_code", 0) or 0)
        except Exception:
            status_code = 500
            raise
        finally:
            path = getattr(getattr(request, "url", None), "path", "")
            if not path.startswith("/health"):
                logger.info(
                    json.dumps(
                        {
                            "ts": datetime.now(timezone.utc).isoformat(),
                            "rid": rid,
                            "method": request.method,
                            "path": path,
                            "status": status_code,
                            "duration_ms": int((time.perf_counter() - t0) * 1000),
                        },
                        ensure_ascii=False,
                    )
                )
        response.headers["X-Request-ID"] = rid
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        status = int(exc.status_code)
        if status == 404:
            message = "Not found"
        elif status == 405:
            message = "Method not allowed"
        else:
            message = str(exc.detail or "Request failed")
        return error_response(message, status)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [str(p) for p in (first.get("loc") or []) if p not in ("body", "query", "path")]
        return validation_error_response(str(first.get("msg") or "Invalid request"), loc[-1] if loc else None)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        rid = getattr(getattr(request, "state", None), "request_id", None)
        logger.exception("unhandled exception", extra={"rid": rid})
        return error_response("Internal server error", 500)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )

    app.include_router(health.router)
    app.include_router(assets.router)
    app.include_router(admin.router)

    @app.on_event("shutdown")
    async def _close_database() -> None:
        app.state.database.close()

    return app


app = create_app()
