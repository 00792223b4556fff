import os
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(debug_mode: bool = False, log_dir: str = "logs", app_name: str = "unitsync"):
    """
    Configure loguru sinks for a unitsync process.

    Console output goes to stderr (DEBUG when ``debug_mode``, else INFO).
    With a ``log_dir``, a rotating DEBUG file sink is added as well; it is
    enqueued because watcher and executor threads log concurrently.
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug_mode else "INFO", format=CONSOLE_FORMAT)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logger.add(
            os.path.join(log_dir, f"{app_name}_{{time}}.log"),
            rotation="10 MB",
            retention="1 week",
            level="DEBUG",
            enqueue=True,
        )

    logger.debug(f"Logging initialized (debug={debug_mode}, log_dir={log_dir or '-'})")
