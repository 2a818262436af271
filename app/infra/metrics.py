import logging

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, generate_latest

logger = logging.getLogger(__name__)


class Metrics:
    def __init__(self, enabled: bool = False) -> None:
        self._configure(enabled)

    def _configure(self, enabled: bool) -> None:
        self.enabled = enabled
        self.registry = CollectorRegistry(auto_describe=True)
        if not enabled:
            self.chat_replies = None
            self.escalations = None
            self.ai_backend_errors = None
            self.http_5xx = None
            return

        self.chat_replies = Counter(
            "chat_replies_total",
            "Chat replies served per reply source.",
            ["source"],
            registry=self.registry,
        )
        self.escalations = Counter(
            "chat_escalations_total",
            "Replies that offered a human support handoff.",
            registry=self.registry,
        )
        self.ai_backend_errors = Counter(
            "ai_backend_errors_total",
            "Generative backend calls that produced no usable candidate.",
            ["reason"],
            registry=self.registry,
        )
        self.http_5xx = Counter(
            "http_5xx_total",
            "HTTP responses with status >= 500.",
            ["method", "path"],
            registry=self.registry,
        )

    def record_reply(self, source: str, escalation_offered: bool) -> None:
        if not self.enabled or self.chat_replies is None:
            return
        self.chat_replies.labels(source=source).inc()
        if escalation_offered and self.escalations is not None:
            self.escalations.inc()

    def record_ai_backend_error(self, reason: str) -> None:
        if not self.enabled or self.ai_backend_errors is None:
            return
        self.ai_backend_errors.labels(reason=reason).inc()

    def record_http_5xx(self, method: str, path: str) -> None:
        if not self.enabled or self.http_5xx is None:
            return
        self.http_5xx.labels(method=method, path=path).inc()

    def render(self) -> tuple[bytes, str]:
        if not self.enabled:
            return b"metrics_disabled 1\n", "text/plain; version=0.0.4"
        try:
            return generate_latest(self.registry), CONTENT_TYPE_LATEST
        except Exception:  # noqa: BLE001
            logger.exception("metrics_render_failed")
            return b"metrics_render_failed 1\n", "text/plain; version=0.0.4"

