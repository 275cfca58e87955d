"""
Request hooks:
- per-client rate limiting (429 with the standard envelope)
- one structured log line per request after it completes
"""
import logging
import time

from flask import request, g

from utils.decorators import current_services
from utils.exceptions import RateLimitedError

logger = logging.getLogger("api.request")


def client_ip() -> str:
    # ProxyFix rewrites remote_addr when TRUSTED_PROXY_COUNT is set
    return request.remote_addr or "unknown"


def register_request_hooks(app):
    @app.before_request
    def start_timer_and_rate_limit():
        g.request_started = time.perf_counter()
        if not app.config.get("RATE_LIMIT_ENABLED", True):
            return None
        if not current_services().rate_limiter.allow(client_ip()):
            raise RateLimitedError()
        return None

    @app.after_request
    def log_request(response):
        started = g.get("request_started")
        latency_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        logger.info(
            "HTTP Request method=%s path=%s status=%s latency_ms=%.2f client_ip=%s user_agent=%s body_size=%s",
            request.method,
            request.path,
            response.status_code,
            latency_ms,
            client_ip(),
            request.user_agent.string,
            response.calculate_content_length(),
        )
        return response
