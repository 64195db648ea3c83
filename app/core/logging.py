import logging
import sys
import json
from contextvars import ContextVar

from app.core.config import settings

request_id_var = ContextVar("request_id", default="system")

CONTEXT_FIELDS = ("order_id", "product_id", "purchase_order_id")

class RequestIdFilter(logging.Filter):
    def filter(self, record):
        record.request_id = request_id_var.get()
        return True

class JSONFormatter(logging.Formatter):
    """Custom formatter to ensure valid JSON and proper escaping."""
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "file": f"{record.module}.py:{record.lineno}",
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "system"),
        }
        # Order engine log lines bind these through `extra=`
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value

        # Include stack traces if an error occurred
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
            
        return json.dumps(log_record, default=str)

def setup_logging(level: str | None = None):
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level or settings.log_level)
    
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
        
    root_logger.addHandler(handler)
    
    # Keep Uvicorn's critical info but hide the spammy health checks
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    # SQL echo is controlled by the engine, not the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
