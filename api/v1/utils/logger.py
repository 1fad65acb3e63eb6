import logging
import sys
from pythonjsonlogger.json import JsonFormatter

_configured = False


def setup_logger(level: str = "INFO") -> None:
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())

    # uvicorn's access log duplicates the request middleware
    logging.getLogger("uvicorn.access").disabled = True

    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"credit_tracker.{name}")
