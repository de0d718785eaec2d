import logging.config
from typing import Optional

AUDIT_LOGGER = "audit_trail.services.audit"


def build_logging_config(
    level: str = "INFO",
    *,
    audit_level: Optional[str] = None,
    sql_level: str = "WARNING",
) -> dict:
    """
    Console logging for the API. The recorder's logger gets its own level so
    per-attempt summaries (INFO) and state transitions (DEBUG) can be turned
    up without flooding the rest of the app; SQLAlchemy's engine logger is
    kept at ``sql_level``.
    """
    level = level.upper()
    console = {"handlers": ["console"], "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s %(name)s - %(message)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            AUDIT_LOGGER: {"level": (audit_level or level).upper(), **console},
            "sqlalchemy.engine": {"level": sql_level.upper()},
            "uvicorn": {"level": level, **console},
            "uvicorn.access": {"level": level, **console},
        },
    }


def configure_logging(
    level: str = "INFO",
    *,
    audit_level: Optional[str] = None,
    sql_level: str = "WARNING",
) -> None:
    logging.config.dictConfig(
        build_logging_config(level, audit_level=audit_level, sql_level=sql_level)
    )
