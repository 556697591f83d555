import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR
import uvicorn

from api.bootstrap import get_progress_sync
from api.config import create_db, settings
from api.routes.auth_routes import auth_routes
from api.routes.course_routes import course_routes
from api.routes.enrollment_routes import enrollment_routes
from api.routes.gamification_routes import gamification_routes
from api.routes.practice_routes import practice_routes
from api.routes.progress_routes import progress_routes
from api.routes.quiz_routes import quiz_routes
from api.routes.scorm_routes import scorm_routes
from api.utils.common import error_body
from api.utils.logger import clear_learner_context, clear_request_id, configure_logging, set_request_id
from progression.errors import ProgressError

logger = configure_logging()
create_db()

HTTP_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
}


async def flush_due_saves(interval: float) -> None:
    """Trailing flush for debounced ticks that no later event picks up."""
    while True:
        await asyncio.sleep(interval)
        try:
            written = await asyncio.to_thread(get_progress_sync().flush_due)
        except Exception:
            logger.exception("periodic progress flush failed")
            continue
        if written:
            logger.debug("periodic flush wrote %s progress snapshots", written)


@asynccontextmanager
async def lifespan(app: FastAPI):
    flusher = asyncio.create_task(flush_due_saves(max(settings.save_debounce_seconds, 0.5)))
    yield
    flusher.cancel()
    with suppress(asyncio.CancelledError):
        await flusher
    # write debounced saves that are still waiting
    if not get_progress_sync().flush():
        logger.warning("shutdown with unsaved progress snapshots")


app = FastAPI(title="Learnova", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logger(request: Request, call_next):
    rid = set_request_id(request.headers.get("x-request-id"))
    try:
        logger.info("request start method=%s path=%s client=%s", request.method, request.url.path, request.client)
        response: Response = await call_next(request)
        logger.info("request end status=%s method=%s path=%s", response.status_code, request.method, request.url.path)
        response.headers["x-request-id"] = rid
        return response
    except Exception:
        logger.exception("request error method=%s path=%s", request.method, request.url.path)
        raise
    finally:
        clear_request_id()
        clear_learner_context()


@app.exception_handler(ProgressError)
async def progress_error_handler(request: Request, exc: ProgressError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("progress error code=%s method=%s path=%s message=%s", exc.code, request.method, request.url.path, exc.message)
    else:
        logger.warning("progress error code=%s method=%s path=%s message=%s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.code, exc.details))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    # Log server-side errors with stack traces; client errors as warnings.
    if exc.status_code >= 500:
        logger.exception("http error status=%s method=%s path=%s detail=\n%s", exc.status_code, request.method, request.url.path, exc.detail)
    else:
        logger.warning("http error status=%s method=%s path=%s detail=\n%s", exc.status_code, request.method, request.url.path, exc.detail)
    code = HTTP_CODES.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail), code))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("validation error method=%s path=%s errors=\n%s", request.method, request.url.path, exc.errors())
    details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
    return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content=error_body("Invalid request", "VALIDATION_ERROR", details))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Never leak internal exception details to clients.
    logger.exception("unhandled error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal Server Error", "INTERNAL_ERROR"),
    )


@app.get("/")
def read_root():
    return {"message": "Learnova is Healthy"}


app.include_router(auth_routes, prefix="/auth")
app.include_router(course_routes, prefix="/api")
app.include_router(enrollment_routes, prefix="/api")
app.include_router(scorm_routes, prefix="/api")
app.include_router(progress_routes, prefix="/api")
app.include_router(quiz_routes, prefix="/api")
app.include_router(practice_routes, prefix="/api")
app.include_router(gamification_routes, prefix="/api")


if __name__ == "__main__":
    uvicorn.run("api.api:app", host="0.0.0.0", port=8000, reload=False)
