import json
import logging
import time
import uuid
from datetime import datetime, timezone

from fastapi import Request

from cantina.app.core.config import settings


logger = logging.getLogger("cantina.app.requests")

_EXTRA_FIELDS = ("request_id", "event", "processing_time", "status_code", "path", "method")


class JSONFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging() -> None:
    """Install a single console handler on the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL.upper())
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    if settings.LOG_JSON:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root_logger.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


async def log_requests(request: Request, call_next):
    """HTTP middleware: tag each request with an id and log its outcome."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    started = time.perf_counter()
    response = await call_next(request)
    processing_time = time.perf_counter() - started

    level = logging.WARNING if response.status_code >= 400 else logging.INFO
    if response.status_code >= 500:
        level = logging.ERROR
    logger.log(
        level,
        f"{request.method} {request.url.path} -> {response.status_code} ({processing_time:.3f}s)",
        extra={
            "request_id": request_id,
            "event": "request_completed",
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "processing_time": round(processing_time, 4),
        },
    )
    response.headers["X-Request-ID"] = request_id
    return response
