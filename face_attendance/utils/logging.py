import logging
import sys

from face_attendance.config import settings

_configured = False


def configure_logging(level: int = logging.INFO) -> None:
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            # Log to console
            logging.StreamHandler(sys.stdout),
            # Log to file
            logging.FileHandler(settings.LOG_FILE, mode="a", encoding="utf-8"),
        ],
    )
    # SQL echo is noisy; only surface it in debug mode.
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )
    _configured = True


def get_logger(name: str):
    return logging.getLogger(name)


logger = get_logger("face_attendance")
