"""
Configuration for taskgraph.

Supports configuration via:
1. Environment variables (highest priority)
2. TOML config file (taskgraph.toml)
3. Default values (lowest priority)

Environment variables:
- TASKGRAPH_TASKS_FILE: Path to the tasks document
- TASKGRAPH_PROJECT_NAME: Project name written into new documents
- TASKGRAPH_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
- TASKGRAPH_STRUCTURED_LOGGING: Emit JSON-style log lines (true/false)
- TASKGRAPH_DEFAULT_SUBTASKS: Subtask count used by ``expand``
- TASKGRAPH_GENERATOR_URL: Base URL of the text-completion service
- TASKGRAPH_GENERATOR_MODEL: Model name sent to the service
- TASKGRAPH_GENERATOR_API_KEY: Bearer token for the service
- TASKGRAPH_GENERATOR_TIMEOUT: Per-request timeout in seconds
- TASKGRAPH_CONFIG_FILE: Path to TOML config file
"""

import os
import logging
import functools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Any, Callable, Dict, TypeVar

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback


logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_TASKS_FILE = Path("tasks") / "tasks.json"


def _table(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        logger.warning(f"Ignoring config section [{name}]: expected a table")
        return {}
    return section


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "1", "yes", "false", "0", "no"):
        return value.lower() in ("true", "1", "yes")
    raise ValueError(f"not a boolean: {value!r}")


@dataclass
class GeneratorConfig:
    """Settings for the external text-completion service."""

    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    timeout: float = 60.0
    max_retries: int = 2
    backoff_seconds: float = 5.0
    temperature: float = 0.7
    max_tokens: int = 4000


@dataclass
class TaskGraphConfig:
    """Engine configuration with support for env vars and TOML overrides."""

    # Store configuration
    tasks_file: Path = field(default_factory=lambda: DEFAULT_TASKS_FILE)
    project_name: str = "Task Graph Project"
    default_subtasks: int = 3

    # Logging configuration
    log_level: str = "WARNING"
    structured_logging: bool = False

    # Content generator
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "TaskGraphConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. TOML config file
        3. Default values
        """
        config = cls()

        # Load TOML config if available
        toml_path = config_file or os.environ.get("TASKGRAPH_CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            # Try default locations
            for default_path in ["taskgraph.toml", ".taskgraph.toml"]:
                if Path(default_path).exists():
                    config._load_toml(Path(default_path))
                    break

        # Override with environment variables
        config._load_env()

        return config

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            return

        # Store settings
        store = _table(data, "store")
        self._apply(store, "store", "tasks_file", self, "tasks_file", Path)
        self._apply(store, "store", "project_name", self, "project_name", str)
        self._apply(store, "store", "default_subtasks", self, "default_subtasks", int)

        # Logging settings
        log = _table(data, "logging")
        self._apply(log, "logging", "level", self, "log_level", lambda value: str(value).upper())
        self._apply(log, "logging", "structured", self, "structured_logging", _parse_bool)

        # Generator settings
        gen = _table(data, "generator")
        for key, convert in (
            ("base_url", str),
            ("model", str),
            ("api_key", str),
            ("timeout", float),
            ("max_retries", int),
            ("backoff_seconds", float),
            ("temperature", float),
            ("max_tokens", int),
        ):
            self._apply(gen, "generator", key, self.generator, key, convert)

    @staticmethod
    def _apply(
        table: Dict[str, Any],
        section: str,
        key: str,
        target: Any,
        attr: str,
        convert: Callable[[Any], Any],
    ) -> None:
        """Set ``target.attr`` from ``table[key]``, skipping values that do not convert."""
        if key not in table:
            return
        try:
            setattr(target, attr, convert(table[key]))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid config value [{section}] {key} = {table[key]!r}")

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if tasks_file := os.environ.get("TASKGRAPH_TASKS_FILE"):
            self.tasks_file = Path(tasks_file)

        if project := os.environ.get("TASKGRAPH_PROJECT_NAME"):
            self.project_name = project

        if level := os.environ.get("TASKGRAPH_LOG_LEVEL"):
            self.log_level = level.upper()

        if structured := os.environ.get("TASKGRAPH_STRUCTURED_LOGGING"):
            self.structured_logging = structured.lower() in ("true", "1", "yes")

        if subtasks := os.environ.get("TASKGRAPH_DEFAULT_SUBTASKS"):
            try:
                self.default_subtasks = int(subtasks)
            except ValueError:
                logger.warning(f"Ignoring non-integer TASKGRAPH_DEFAULT_SUBTASKS={subtasks!r}")

        if url := os.environ.get("TASKGRAPH_GENERATOR_URL"):
            self.generator.base_url = url

        if model := os.environ.get("TASKGRAPH_GENERATOR_MODEL"):
            self.generator.model = model

        if api_key := os.environ.get("TASKGRAPH_GENERATOR_API_KEY"):
            self.generator.api_key = api_key

        if timeout := os.environ.get("TASKGRAPH_GENERATOR_TIMEOUT"):
            try:
                self.generator.timeout = float(timeout)
            except ValueError:
                logger.warning(f"Ignoring non-numeric TASKGRAPH_GENERATOR_TIMEOUT={timeout!r}")

    def setup_logging(self) -> None:
        """Configure logging based on settings.

        Log lines go to stderr so command output on stdout stays parseable.
        """
        level = getattr(logging, self.log_level, logging.WARNING)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s",'
                '"logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        root_logger = logging.getLogger("taskgraph")
        root_logger.setLevel(level)
        for existing in list(root_logger.handlers):
            root_logger.removeHandler(existing)
        root_logger.addHandler(handler)


# Global configuration instance
_config: Optional[TaskGraphConfig] = None


def get_config() -> TaskGraphConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = TaskGraphConfig.from_env()
    return _config


def set_config(config: Optional[TaskGraphConfig]) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config


def log_call(logger_name: Optional[str] = None) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to log function calls with structured data.

    Args:
        logger_name: Optional logger name (defaults to function module)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        log = logging.getLogger(logger_name or func.__module__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            log.debug(f"Calling {func.__name__}", extra={
                "function": func.__name__,
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()),
            })
            try:
                result = func(*args, **kwargs)
                log.debug(f"Completed {func.__name__}", extra={
                    "function": func.__name__,
                    "success": True,
                })
                return result
            except Exception as e:
                log.error(f"Error in {func.__name__}: {e}", extra={
                    "function": func.__name__,
                    "error": str(e),
                    "error_type": type(e).__name__,
                })
                raise

        return wrapper
    return decorator
