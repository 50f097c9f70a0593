import logging, sys

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"

# third-party clients that log every request at INFO
QUIET_LOGGERS = ("httpx", "openai", "urllib3")


class RequestIdFilter(logging.Filter):
    def filter(self, record):
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def configure_logging(level: str | None = None):
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    if any(isinstance(h.filters[0], RequestIdFilter) for h in root.handlers if h.filters):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
