import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from docqa.api.routes_ask import router as ask_router
from docqa.core.config import settings
from docqa.core.errors import AppError
from docqa.core.observability import RequestLoggingMiddleware, configure_logging

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="docqa grounded document Q&A")
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"message": exc.message, "code": exc.code}},
    )


app.include_router(ask_router)
