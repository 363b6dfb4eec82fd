from __future__ import annotations

import logging

from spinner.core.redact import redact_any

_RECORD_FIELDS_SKIP = {"args", "exc_info", "exc_text", "stack_info"}


class RedactFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        try:
            record.msg = redact_any(record.getMessage())
            record.args = ()
            for key, value in list(record.__dict__.items()):
                if key.startswith("_") or key in _RECORD_FIELDS_SKIP:
                    continue
                if isinstance(value, str):
                    record.__dict__[key] = redact_any(value)
        except Exception:
            pass
        return True


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(levelname)s %(name)s %(message)s")
    root = logging.getLogger()
    if not any(isinstance(f, RedactFilter) for f in root.filters):
        root.addFilter(RedactFilter())
    for handler in root.handlers:
        if not any(isinstance(f, RedactFilter) for f in handler.filters):
            handler.addFilter(RedactFilter())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
