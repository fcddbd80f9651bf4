"""Logging configuration for healthtop."""

import logging

logger = logging.getLogger("healthtop")


def setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    """
    Configure the healthtop logger.

    The dashboard owns the terminal, so there is no console handler: records
    go to ``log_file`` when one is given and are discarded otherwise.

    Args:
        verbose: If True, set DEBUG level. Otherwise INFO.
        log_file: Optional path to a log file.
    """
    level = logging.DEBUG if verbose else logging.INFO

    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    handler: logging.Handler = logging.NullHandler()
    if log_file:
        try:
            handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            handler.setFormatter(
                logging.Formatter("%(asctime)s - [%(levelname)s] - %(name)s - %(message)s")
            )
        except OSError:
            handler = logging.NullHandler()

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    if verbose:
        logger.debug("Verbose logging enabled")
