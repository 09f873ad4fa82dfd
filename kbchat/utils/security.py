"""Security helpers: PII masking for safe logging (minimal)."""
import re

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.]+")
PHONE_RE = re.compile(r"\+?\d[\d\s-]{8,}\d")


def mask_pii(text: str) -> str:
    if not text:
        return ""
    masked = EMAIL_RE.sub("[EMAIL]", text)
    masked = PHONE_RE.sub("[REDACTED]", masked)
    return masked


def preview(text: str, limit: int = 80) -> str:
    """Masked, truncated text for log lines."""
    masked = mask_pii(text or "")
    return masked if len(masked) <= limit else masked[:limit] + "..."
