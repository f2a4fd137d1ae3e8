# src/llmrelay/logging_config.py
"""
Logging setup for applications embedding LLMRelay.

The library itself only ever calls ``logging.getLogger(__name__)``; nothing
is configured on import. Applications that want the relay's standard setup
call configure_logging() once at startup:

- A console handler gated by DisplayFilter. With ``console_enabled=False``
  (the default) it only passes records logged with ``extra={"display": True}``,
  so operational messages ("Routing through 3 models...") stay visible while
  per-attempt chatter does not.
- An optional RotatingFileHandler.
- Per-component level overrides (``components`` mapping).

Usage:
    from llmrelay.config import load_relay_config
    from llmrelay.logging_config import configure_logging, log_display

    config = load_relay_config(Path("relay.toml"))
    configure_logging(app_name="relay", config=config.logging)

    logger = logging.getLogger("relay.startup")
    log_display(logger, logging.INFO, "Relay ready with %d models", len(catalog))
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config.relay_config import LoggingConfig


def _level(name: Union[str, int], default: int) -> int:
    """Resolve a level name like "info" to its numeric value."""
    if isinstance(name, int):
        return name
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


# ---------------------------------------------------------------------------
# DisplayFilter
# ---------------------------------------------------------------------------


class DisplayFilter(logging.Filter):
    """Controls which log records pass through to the console handler.

    When console output is globally enabled every record passes and the
    handler's own level does the filtering. Otherwise only records carrying
    ``display=True`` pass, and only at or above ``display_min_level``.
    """

    def __init__(
        self,
        console_globally_enabled: bool = False,
        display_min_level: int = logging.INFO,
    ) -> None:
        super().__init__()
        self.console_globally_enabled = console_globally_enabled
        self.display_min_level = display_min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if self.console_globally_enabled:
            return True
        if getattr(record, "display", False):
            return record.levelno >= self.display_min_level
        return False


# ---------------------------------------------------------------------------
# LoggingManager
# ---------------------------------------------------------------------------


class LoggingManager:
    """
    Singleton that applies a LoggingConfig to the root logger once.

    Repeated configure() calls are no-ops unless ``force_reconfigure`` is set.
    Only handlers installed by this manager are ever removed.
    """

    _instance: Optional["LoggingManager"] = None

    def __init__(self) -> None:
        self._configured = False
        self._console_handler: Optional[logging.Handler] = None
        self._file_handler: Optional[logging.Handler] = None
        self._log_file_path: Optional[Path] = None

    @classmethod
    def get_instance(cls) -> "LoggingManager":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Remove installed handlers and forget the singleton (tests)."""
        if cls._instance is not None:
            cls._instance._remove_handlers()
        cls._instance = None

    @property
    def is_configured(self) -> bool:
        return self._configured

    @property
    def log_file_path(self) -> Optional[Path]:
        return self._log_file_path

    @property
    def console_handler(self) -> Optional[logging.Handler]:
        return self._console_handler

    def configure(
        self,
        app_name: str = "llmrelay",
        config: Union[LoggingConfig, Dict[str, Any], None] = None,
        force_reconfigure: bool = False,
    ) -> Optional[Path]:
        """Install handlers and component levels; returns the log file path, if any."""
        if self._configured and not force_reconfigure:
            return self._log_file_path

        if config is None:
            log_config = LoggingConfig()
        elif isinstance(config, LoggingConfig):
            log_config = config
        else:
            log_config = LoggingConfig(**config)

        self._remove_handlers()
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)

        display_filter = DisplayFilter(
            console_globally_enabled=log_config.console_enabled,
            display_min_level=_level(log_config.display_min_level, logging.INFO),
        )
        console_handler = logging.StreamHandler(sys.stderr)
        if log_config.console_enabled:
            console_handler.setLevel(_level(log_config.console_level, logging.WARNING))
        else:
            # The filter is the only gate when the console is "off".
            console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(log_config.console_format))
        console_handler.addFilter(display_filter)
        root_logger.addHandler(console_handler)
        self._console_handler = console_handler

        if log_config.file_enabled:
            self._file_handler, self._log_file_path = self._create_file_handler(
                log_config, app_name
            )
            if self._file_handler is not None:
                root_logger.addHandler(self._file_handler)

        for component, level_name in log_config.components.items():
            logging.getLogger(component).setLevel(_level(level_name, logging.INFO))

        self._configured = True
        logging.getLogger(__name__).debug(
            f"Logging configured for {app_name}. Log file: {self._log_file_path}"
        )
        return self._log_file_path

    def _create_file_handler(
        self, config: LoggingConfig, app_name: str
    ) -> "tuple[Optional[logging.Handler], Optional[Path]]":
        log_dir = Path(config.file_directory).expanduser()
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            filename = config.file_name.format(app=app_name)
            log_file_path = log_dir / filename
            handler = RotatingFileHandler(
                log_file_path,
                maxBytes=config.rotation_max_bytes,
                backupCount=config.rotation_backup_count,
                encoding="utf-8",
            )
        except (OSError, KeyError, ValueError) as e:
            sys.stderr.write(f"Warning: Cannot set up log file in {log_dir}: {e}\n")
            return None, None

        handler.setLevel(_level(config.file_level, logging.DEBUG))
        handler.setFormatter(logging.Formatter(config.file_format))
        return handler, log_file_path

    def _remove_handlers(self) -> None:
        root_logger = logging.getLogger()
        for handler in (self._console_handler, self._file_handler):
            if handler is not None:
                root_logger.removeHandler(handler)
                handler.close()
        self._console_handler = None
        self._file_handler = None
        self._log_file_path = None
        self._configured = False


# ---------------------------------------------------------------------------
# Public module-level functions
# ---------------------------------------------------------------------------


def configure_logging(
    app_name: str = "llmrelay",
    config: Union[LoggingConfig, Dict[str, Any], None] = None,
    force_reconfigure: bool = False,
) -> Optional[Path]:
    """
    Configure logging for the application.

    Args:
        app_name: Used in the log file name.
        config: A LoggingConfig, a dict of its fields, or None for defaults.
        force_reconfigure: Reconfigure even if already configured.

    Returns:
        Path to the log file when file logging is enabled, else None.
    """
    return LoggingManager.get_instance().configure(
        app_name=app_name,
        config=config,
        force_reconfigure=force_reconfigure,
    )


def log_display(
    logger: logging.Logger,
    level: int,
    msg: str,
    *args: Any,
    **kwargs: Any,
) -> None:
    """Log a message that also reaches the console in silent mode.

    Sets ``extra={"display": True}``, merged with any ``extra`` the caller
    passes. ``display_min_level`` still applies.
    """
    extra = kwargs.pop("extra", None) or {}
    extra["display"] = True
    kwargs["extra"] = extra
    logger.log(level, msg, *args, **kwargs)


def get_log_file_path() -> Optional[Path]:
    """Get the current log file path."""
    return LoggingManager.get_instance().log_file_path


def set_component_level(component: str, level: Union[str, int]) -> None:
    """Change a specific component's log level at runtime."""
    logging.getLogger(component).setLevel(_level(level, logging.INFO))
