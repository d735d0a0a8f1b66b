import logging


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO))
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("apscheduler.scheduler").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
