import logging
import os
import re
import sys
import uuid

FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


# Build redaction patterns so secrets never reach the log stream.
def _build_redaction_patterns():
    patterns = []

    # redact specific env values if present
    for key in ("DB_PASSWORD", "DATABASE_URL"):
        val = os.getenv(key)
        if val:
            patterns.append((re.compile(re.escape(val)), f"[REDACTED_{key}]"))

    # credentials embedded in connection URLs
    patterns.append(
        (re.compile(r"(\w+(?:\+\w+)?://[^:/@\s]+):[^@\s]+@"), r"\1:[REDACTED]@")
    )
    # generic tokens in query strings/headers
    patterns.append(
        (re.compile(r"(?i)(token|sig|signature|key|pass|password)=([^\s&#]+)"),
         r"\1=[REDACTED]")
    )
    return patterns


class RedactingFormatter(logging.Formatter):
    def __init__(self, fmt: str = FORMAT):
        super().__init__(fmt)
        self._patterns = _build_redaction_patterns()

    def format(self, record: logging.LogRecord) -> str:
        out = super().format(record)
        for pat, repl in self._patterns:
            out = pat.sub(repl, out)
        return out


class RequestLogger(logging.LoggerAdapter):
    """Prefixes every line with the request id, method and path."""

    def process(self, msg, kwargs):
        return f"[{self.extra['request_id']} {self.extra['method']} {self.extra['path']}] {msg}", kwargs


def request_logger(logger: logging.Logger, method: str, path: str) -> RequestLogger:
    return RequestLogger(
        logger,
        {"request_id": uuid.uuid4().hex[:8], "method": method, "path": path},
    )


def configure_logging(app_name: str, level: str = "INFO") -> logging.Logger:
    """Send logs to stdout with secrets redacted; return the app logger."""
    level_value = getattr(logging, level.upper(), logging.INFO)

    stream = logging.StreamHandler(stream=sys.stdout)
    stream.setFormatter(RedactingFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(stream)
    root.setLevel(level_value)

    # keep gunicorn visible
    logging.getLogger("gunicorn.error").setLevel(level_value)
    logging.getLogger("gunicorn.access").setLevel(level_value)
    return logging.getLogger(app_name)
