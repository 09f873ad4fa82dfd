"""LLM-backed classification with a deterministic fallback.

Every place that asks the model to label something goes through
``classify_with_fallback`` so the try/except-and-fall-back logic lives once.
"""
import re
from typing import Callable, Optional, TypeVar

from ..utils.logger import get_logger

logger = get_logger("router")

T = TypeVar("T")


def classify_with_fallback(gateway, prompt: str, parser: Callable[[str], Optional[T]],
                           fallback: Callable[[], T], label: str = "classify") -> T:
    """
    Ask the model, parse its reply, fall back deterministically.

    Args:
        gateway: object exposing ``generate_text(prompt) -> str``
        prompt: prompt sent to the model
        parser: maps raw model text to a value, or None when unparseable
        fallback: zero-argument callable producing the heuristic value
        label: short name used in log lines

    Returns:
        The parsed model value, or the fallback value
    """
    if gateway is None:
        return fallback()
    try:
        raw = gateway.generate_text(prompt)
        parsed = parser(raw) if raw else None
        if parsed is not None:
            logger.debug(f"[ROUTER] {label}: model -> {parsed!r}")
            return parsed
        logger.info(f"[ROUTER] {label}: unparseable model reply {raw!r}, using fallback")
    except Exception as e:
        logger.warning(f"[ROUTER] {label}: model call failed ({e}), using fallback")
    return fallback()


def first_word(raw: str) -> str:
    """Lowercased first alphanumeric token of a model reply."""
    m = re.search(r"[a-z_]+", (raw or "").lower())
    return m.group(0) if m else ""


def parse_yes_no(raw: str) -> Optional[bool]:
    word = first_word(raw)
    if word in ("yes", "true"):
        return True
    if word in ("no", "false"):
        return False
    return None


def parse_choice(choices):
    """Parser accepting the first token only if it is one of ``choices``."""
    def _parse(raw: str) -> Optional[str]:
        word = first_word(raw)
        return word if word in choices else None
    return _parse


def parse_score(raw: str) -> Optional[float]:
    """First number in the reply, clamped to [0, 1]."""
    m = re.search(r"\d+(?:\.\d+)?", raw or "")
    if not m:
        return None
    value = float(m.group(0))
    if value > 1.0:
        # Some replies use a 0-10 or percentage scale
        value = value / 100.0 if value > 10 else value / 10.0
    return max(0.0, min(1.0, value))
