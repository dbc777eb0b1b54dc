# src/falign/core/logging_config.py
from __future__ import annotations
import os, logging, logging.config
from dotenv import load_dotenv
from falign.core.paths import get_paths
from falign.core.utils import ensure_folder

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1","true","yes","y","on"}

def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default

def get_logging_config() -> dict:
    """
    Console + single-file logging at <repo>/.falign/logs/falign.log.
    Env:
      FALIGN_LOG_LEVEL=INFO|DEBUG|...
      FALIGN_LOG_JSON_CONSOLE=true|false
      FALIGN_LOGS_DIR=<abs or relative>   # optional; else <repo>/.falign/logs
      FALIGN_LOG_MAX_BYTES=52428800       # optional; 0 disables rotation
      FALIGN_LOG_BACKUPS=7                # optional; only used if rotation enabled
    """
    logs_dir = get_paths().logs

    level = os.getenv("FALIGN_LOG_LEVEL", "INFO").upper()
    json_console = _env_flag("FALIGN_LOG_JSON_CONSOLE")

    # Rotation knobs
    max_bytes = _env_int("FALIGN_LOG_MAX_BYTES", 0)
    backups = _env_int("FALIGN_LOG_BACKUPS", 7)
    use_rotating = max_bytes > 0

    json_cls = "pythonjsonlogger.json.JsonFormatter"
    json_fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"

    formatters = {
        "console_text": {
            "class": "logging.Formatter",
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%H:%M:%S",
        },
        "console_json": {"()": json_cls, "fmt": json_fmt},
        "json_file": {"()": json_cls, "fmt": json_fmt},
    }

    # Build the single file handler (rotating or plain)
    file_handler = {
        "level": level,
        "formatter": "json_file",
        "filename": str(logs_dir / "falign.log"),
        "encoding": "utf-8",
        "delay": True,  # create file on first write
    }
    if use_rotating:
        file_handler["class"] = "logging.handlers.RotatingFileHandler"
        file_handler["maxBytes"] = max_bytes
        file_handler["backupCount"] = backups
    else:
        file_handler["class"] = "logging.FileHandler"

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "console_json" if json_console else "console_text",
            # stdout carries the CLI's own output
            "stream": "ext://sys.stderr",
        },
        "falign_file": file_handler,
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "root": {
            "level": level,
            "handlers": ["console", "falign_file"],
        },
        "loggers": {
            # project loggers propagate to root -> single file + console
            "falign": {"level": level, "propagate": True},
        },
    }


def setup_logging() -> None:
    ensure_folder(get_paths().logs)
    logging.config.dictConfig(get_logging_config())
