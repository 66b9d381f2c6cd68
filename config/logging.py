import sys

from loguru import logger


def setup_logging(level: str = "INFO") -> None:
    """Один цветной sink в stdout вместо стандартного stderr."""
    logger.remove()
    logger.add(
        sys.stdout,
        level=level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
        backtrace=False,
        diagnose=False,
    )
