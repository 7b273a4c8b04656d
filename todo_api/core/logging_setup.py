import logging
import sys

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | int = logging.INFO) -> None:
    """
    Configure the ``todo_api`` logger tree with a single stderr handler.

    Safe to call more than once (each app instance calls it); the handler is
    only attached the first time. Records still propagate to the root logger
    so uvicorn and pytest can capture them.
    """
    logger = logging.getLogger("todo_api")
    logger.setLevel(level)

    if any(h.get_name() == "todo_api" for h in logger.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.set_name("todo_api")
    logger.addHandler(handler)
