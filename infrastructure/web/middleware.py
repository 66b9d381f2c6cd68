import time

from fastapi import FastAPI, Request
from loguru import logger


def install_request_logging(app: FastAPI, verbose: bool = True) -> None:
    """Одна строка на запрос: метод, путь, статус, время."""
    level = "INFO" if verbose else "DEBUG"

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.log(
            level,
            f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms",
        )
        return response
