# threadart_app/sse_logging.py

import logging


class SSELogHandler(logging.Handler):
    """
    Logging handler that writes log records into a per-run log list.
    """
    def __init__(self, run_id: str, run_logs: dict[str, list[str]]):
        super().__init__()
        self.run_id = run_id
        self.run_logs = run_logs

    def emit(self, record: logging.LogRecord) -> None:
        msg = self.format(record)
        self.run_logs.setdefault(self.run_id, []).append(msg)


def create_sse_logger(run_id: str,
                      run_logs: dict[str, list[str]],
                      level: int = logging.INFO,
                      fmt: str = "%(levelname)s %(message)s") -> logging.Logger:
    """
    Returns a logger configured with an SSELogHandler writing into run_logs[run_id].
    Records also propagate to the threadart_app logger.
    """
    logger = logging.getLogger(f"threadart_app.sse.{run_id}")
    logger.setLevel(level)
    logger.handlers.clear()  # avoid duplicates
    handler = SSELogHandler(run_id, run_logs)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    return logger


def release_sse_logger(run_id: str) -> None:
    """Detach the handlers of a finished run so its logger holds no references."""
    logger = logging.getLogger(f"threadart_app.sse.{run_id}")
    logger.handlers.clear()
