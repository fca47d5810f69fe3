# src/litup/wire_config.py
from __future__ import annotations

import importlib
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from litup.core import log

l = log.get("litup.config")

_TRUE = ("1", "true", "yes", "on")

# keys of the `app` section that name importable objects
_REF_KEYS = ("model", "view", "render", "updates", "bootstrap")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE


@dataclass
class AppSettings:
    log_level: str = "INFO"
    log_json: bool = False
    logger: bool = False
    cancel_on_error: bool = True

    @classmethod
    def from_env(cls) -> "AppSettings":
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_json=_env_flag("LOG_JSON", False),
            logger=_env_flag("LITUP_LOGGER", False),
            cancel_on_error=_env_flag("LITUP_CANCEL_ON_ERROR", True),
        )

    def apply_logging(self, *, force: bool = False) -> None:
        log.setup(self.log_level, self.log_json, force=force)


def import_ref(ref: str) -> Any:
    """Import "package.module:attr.sub" and return the attribute."""
    if not isinstance(ref, str) or ":" not in ref:
        raise ValueError(f"expected 'module:attribute', got {ref!r}")
    module, _, attr = ref.partition(":")
    obj: Any = importlib.import_module(module)
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ValueError(f"{module} has no attribute {attr!r}") from e
    return obj


def build_from_yaml(yaml_path: str, settings: Optional[AppSettings] = None) -> Dict[str, Any]:
    """
    Read an app YAML file and return keyword arguments for litup.app.app().

        app:
          model: myapp.state:make_model      # called if callable
          view: myapp.views:root
          render: litup.adapters.text_surface:render_text
          updates: myapp.updates:Updates     # classes are instantiated
          logger: true
          cancel_on_error: false
    """
    data = yaml.safe_load(Path(yaml_path).read_text(encoding="utf-8")) or {}
    section = data.get("app")
    if not isinstance(section, dict):
        raise ValueError(f"{yaml_path}: missing 'app' section")
    settings = settings or AppSettings.from_env()

    kwargs: Dict[str, Any] = {
        "logger": bool(section.get("logger", settings.logger)),
        "cancel_on_error": bool(section.get("cancel_on_error", settings.cancel_on_error)),
    }
    for key in _REF_KEYS:
        ref = section.get(key)
        if ref is None:
            continue
        obj = import_ref(ref)
        if key == "updates" and isinstance(obj, type):
            obj = obj()
        elif key == "model" and callable(obj):
            obj = obj()
        kwargs[key] = obj
    if "element" in section:
        kwargs["element"] = section["element"]

    l.info("wired app from %s keys=%s", yaml_path, sorted(kwargs))
    return kwargs
