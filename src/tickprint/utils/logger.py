import dataclasses
import json
import logging
import logging.config
import time
from collections.abc import Mapping
from dataclasses import asdict
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from logging import Logger
from pathlib import Path
from typing import Any, Optional, cast

_DEFAULT_LEVEL = logging.INFO
_DEBUG_ENABLED = False
_DEBUG_MODULES: set[str] = set()
_CONFIGURED = False
_RUN_ID: str | None = None
_MODE: str | None = None

# Bundled with the package; used when no explicit path is given.
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "logging.json"

# ---------------------------------------------------------------------
# Canonical log categories
# ---------------------------------------------------------------------

CATEGORY_LIFECYCLE = "runtime_lifecycle"
CATEGORY_PACING = "timer_pacing"


def _merge_profile(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k] = _merge_profile(merged[k], v)
        else:
            merged[k] = v
    return merged


def _build_dict_config(profile: dict[str, Any], *, run_id: str | None, mode: str | None) -> dict[str, Any]:
    level_name = str(profile.get("level", "INFO")).upper()

    format_cfg = profile.get("format", {}) if isinstance(profile.get("format"), dict) else {}
    use_json = bool(format_cfg.get("json", True))
    formatter_name = "json" if use_json else "standard"

    handlers_cfg = profile.get("handlers", {}) if isinstance(profile.get("handlers"), dict) else {}
    console_cfg = handlers_cfg.get("console", {}) if isinstance(handlers_cfg.get("console"), dict) else {}
    file_cfg = handlers_cfg.get("file", {}) if isinstance(handlers_cfg.get("file"), dict) else {}

    handlers: dict[str, Any] = {}
    root_handlers: list[str] = []

    # stdout belongs to the tick lines; diagnostics go to stderr.
    if bool(console_cfg.get("enabled", True)):
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": str(console_cfg.get("level", level_name)).upper(),
            "formatter": formatter_name,
            "filters": ["context"],
            "stream": str(console_cfg.get("stream", "ext://sys.stderr")),
        }
        root_handlers.append("console")

    if bool(file_cfg.get("enabled", False)):
        path_template = str(file_cfg.get("path", "logs/{mode}-{run_id}.jsonl"))
        path = Path(path_template.format(
            run_id=run_id or "run",
            mode=mode or "default",
        ))
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "level": str(file_cfg.get("level", level_name)).upper(),
            "formatter": formatter_name,
            "filters": ["context"],
            "filename": str(path),
            "encoding": "utf-8",
        }
        root_handlers.append("file")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "context": {"()": "tickprint.utils.logger.ContextFilter"},
        },
        "formatters": {
            "json": {"()": "tickprint.utils.logger.JsonFormatter"},
            "standard": {
                "()": "tickprint.utils.logger.UtcFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s %(context)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
            },
        },
        "handlers": handlers,
        "root": {
            "level": level_name,
            "handlers": root_handlers,
        },
    }


def init_logging(
    config_path: str | Path | None = None,
    *,
    run_id: str | None = None,
    mode: str | None = None,
) -> None:
    global _DEFAULT_LEVEL, _DEBUG_ENABLED, _DEBUG_MODULES, _CONFIGURED, _RUN_ID, _MODE

    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.is_absolute():
        path = Path.cwd() / path
    with path.open("r", encoding="utf-8") as f:
        cfg = json.load(f)

    profiles = cfg.get("profiles", {})
    if not isinstance(profiles, dict):
        raise TypeError("logging.json 'profiles' must be a dict")

    profile_name = str(mode or cfg.get("active_profile") or "default")
    if profile_name not in profiles:
        raise KeyError(f"logging profile not found: {profile_name}")

    base_profile = profiles.get("default", {})
    if not isinstance(base_profile, dict):
        base_profile = {}

    profile = _merge_profile(base_profile, profiles.get(profile_name, {}))

    level_name = str(profile.get("level", "INFO")).upper()
    _DEFAULT_LEVEL = getattr(logging, level_name, logging.INFO)

    debug_cfg = profile.get("debug", {})
    if not isinstance(debug_cfg, dict):
        debug_cfg = {}
    _DEBUG_ENABLED = bool(debug_cfg.get("enabled", False))
    _DEBUG_MODULES = {str(x) for x in debug_cfg.get("modules", [])}

    _RUN_ID = run_id
    _MODE = profile_name

    dict_cfg = _build_dict_config(profile, run_id=run_id, mode=profile_name)
    logging.config.dictConfig(dict_cfg)

    _CONFIGURED = True
    get_logger.cache_clear()
    for logger in logging.root.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.level != logging.NOTSET:
            logger.setLevel(logging.NOTSET)


class ContextFilter(logging.Filter):
    """
    Guarantees LogRecord has a `context` attribute and injects run_id / mode.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = getattr(record, "context", None)

        if not _CONFIGURED:
            if not hasattr(record, "context"):
                setattr(record, "context", None)
            return True

        if ctx is None:
            ctx = {}
            setattr(record, "context", ctx)
        elif not isinstance(ctx, dict):
            ctx = {"_context": safe_jsonable(ctx)}
            setattr(record, "context", ctx)

        if _RUN_ID is not None and "run_id" not in ctx:
            ctx["run_id"] = _RUN_ID
        if _MODE is not None and "mode" not in ctx:
            ctx["mode"] = _MODE

        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": dt.isoformat(timespec="milliseconds"),
            "ts_ms": int(record.created * 1000),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }

        context = cast(Optional[dict[str, Any]], getattr(record, "context", None))

        if isinstance(context, dict) and context:
            if "category" in context:
                payload["category"] = safe_jsonable(context["category"])
                context = dict(context)
                context.pop("category", None)
            payload["context"] = safe_jsonable(context)

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        try:
            return json.dumps(payload, ensure_ascii=False)
        except Exception as exc:
            fallback = {
                "ts": payload.get("ts"),
                "ts_ms": payload.get("ts_ms"),
                "level": payload.get("level"),
                "logger": payload.get("logger"),
                "event": payload.get("event"),
                "context": repr(payload.get("context")),
                "format_error": repr(exc),
            }
            return json.dumps(fallback, ensure_ascii=False)


class UtcFormatter(logging.Formatter):
    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, "context", None) is None:
            record.context = ""
        return super().format(record)


@lru_cache(None)
def get_logger(name: str = "tickprint") -> Logger:
    logger = logging.getLogger(name)
    if not _CONFIGURED:
        logger.setLevel(logging.NOTSET)
    return logger


def safe_jsonable(x: Any) -> Any:
    if x is None or isinstance(x, (str, int, float, bool)):
        return x
    if isinstance(x, datetime):
        if x.tzinfo is None:
            return x.replace(tzinfo=timezone.utc).isoformat()
        return x.astimezone(timezone.utc).isoformat()
    if isinstance(x, Path):
        return str(x)
    if isinstance(x, Enum):
        value = safe_jsonable(getattr(x, "value", None))
        return value if value is not None else str(x)
    if dataclasses.is_dataclass(x) and not isinstance(x, type):
        try:
            return safe_jsonable(asdict(cast(Any, x)))
        except Exception:
            return repr(x)
    if isinstance(x, Mapping):
        out: dict[str, Any] = {}
        for k, v in x.items():
            key = safe_jsonable(k)
            if not isinstance(key, str):
                key = repr(key)
            out[key] = safe_jsonable(v)
        return out
    if isinstance(x, (list, tuple, set)):
        return [safe_jsonable(v) for v in x]
    try:
        return str(x)
    except Exception:
        return repr(x)


def _sanitize_context(context: dict[str, Any]) -> dict[str, Any]:
    cleaned = safe_jsonable(context)
    if isinstance(cleaned, dict):
        return cleaned
    return {"_context": cleaned}


def _debug_module_matches(logger_name: str, module: str) -> bool:
    module = module.strip()
    if not module:
        return False
    if logger_name == module or logger_name.startswith(module + "."):
        return True
    parts = logger_name.split(".")
    return module in parts


def log_debug(logger: Logger, msg: str, **context):
    if not _DEBUG_ENABLED:
        return
    if _DEBUG_MODULES:
        if not any(_debug_module_matches(logger.name, m) for m in _DEBUG_MODULES):
            return
    logger.debug(msg, extra={"context": _sanitize_context(context)})


def log_error(logger: Logger, msg: str, **context):
    logger.error(msg, extra={"context": _sanitize_context(context)})


# ---------------------------------------------------------------------
# Domain-specific logging helpers
# ---------------------------------------------------------------------

def log_lifecycle(logger: Logger, msg: str, **context):
    """
    Runtime phase changes: start, stop, signal received.
    Expected context: phase, rate, interval_ms, ticks
    """
    context["category"] = CATEGORY_LIFECYCLE
    logger.info(msg, extra={"context": _sanitize_context(context)})


def log_pacing(logger: Logger, msg: str, **context):
    """
    Timer drift: overruns and skipped deadlines.
    Expected context: seq, late_ms, skipped, interval_ms
    """
    context["category"] = CATEGORY_PACING
    logger.warning(msg, extra={"context": _sanitize_context(context)})
