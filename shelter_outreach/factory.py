"""Factory helpers for constructing the send capability from configuration."""
from __future__ import annotations

import importlib
from typing import Any, Dict

from .config import ConfigurationError, DEFAULT_SENDER_CLASS
from .senders.base import SendCapability


def _load_class(path: str):
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Invalid sender class path '{path}'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Could not import sender module '{module_name}': {exc}") from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ConfigurationError(f"Module '{module_name}' does not define '{attr}'") from exc


def build_sender(sender_cfg: Dict[str, Any]) -> SendCapability:
    """Instantiate the sender class named in the ``sender`` configuration section."""

    class_path = sender_cfg.get("class") or DEFAULT_SENDER_CLASS
    options = dict(sender_cfg.get("options") or {})
    sender_cls = _load_class(class_path)
    try:
        sender = sender_cls(**options)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid options for sender '{class_path}': {exc}") from exc
    if not callable(getattr(sender, "send", None)):
        raise ConfigurationError(f"Sender '{class_path}' does not provide a send() method")
    return sender
