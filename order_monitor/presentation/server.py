import logging
import time
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from order_monitor.application.container import ApplicationContainer
from order_monitor.presentation import api, live_updates

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        content={
            "error": "Invalid request data",
            "details": jsonable_encoder(exc.errors()),
        },
        status_code=HTTPStatus.BAD_REQUEST,
    )


async def log_api_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} "
            f"in {elapsed_ms:.0f}ms"
        )
    return response


def build_api(container: ApplicationContainer) -> FastAPI:
    app = FastAPI(title="Order Monitor")
    app.include_router(api.router)
    app.include_router(live_updates.router)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.middleware("http")(log_api_requests)
    container.wire(modules=[api, live_updates])
    app.container = container
    return app
