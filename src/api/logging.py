"""Per-request access logging for the API."""

import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

from fastapi import Request

from api.rate_limit import get_client_ip

logger = logging.getLogger("api.access")


@dataclass
class RequestLog:
    """Captured request/response data for logging."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    endpoint: str = ""
    method: str = ""
    client_ip: str | None = None
    status_code: int = 0
    error_message: str | None = None
    processing_time_ms: int = 0


def log_request(log: RequestLog) -> None:
    """Emit one structured access-log line."""
    message = f"{log.method} {log.endpoint} {log.status_code} - {log.processing_time_ms}ms"
    if log.status_code >= 500:
        logger.error(message, extra=asdict(log))
    elif log.status_code >= 400:
        logger.warning(message, extra=asdict(log))
    else:
        logger.info(message, extra=asdict(log))


async def request_logging_middleware(request: Request, call_next):
    """Time each request and log it once the response is ready."""
    start_time = time.time()
    request_log = RequestLog(
        endpoint=request.url.path,
        method=request.method,
        client_ip=get_client_ip(request),
    )

    try:
        response = await call_next(request)
        request_log.status_code = response.status_code
        response.headers["X-Request-ID"] = request_log.request_id
        return response
    except Exception as e:
        request_log.status_code = 500
        request_log.error_message = str(e)
        raise
    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        try:
            log_request(request_log)
        except Exception:
            # Don't fail the request if logging fails
            pass
