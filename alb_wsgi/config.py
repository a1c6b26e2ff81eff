import os
from dataclasses import dataclass
from typing import Optional

# --- Defaults ------------------------------------------------------------------
DEFAULT_URL_SCHEME = "https"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class AdapterConfig:
    # ALB hands us path and query values already percent-escaped. When this is
    # on they are concatenated as-is, otherwise every pair is unescaped and
    # re-encoded.
    trust_upstream_escaping: bool = True
    # Used when the load balancer did not send X-Forwarded-Proto.
    url_scheme: str = DEFAULT_URL_SCHEME
    # Level for the alb_wsgi loggers; None leaves it to the host application.
    log_level: Optional[str] = None

    @classmethod
    def from_env(cls) -> "AdapterConfig":
        return cls(
            trust_upstream_escaping=_env_bool("ALB_WSGI_TRUST_ESCAPING", True),
            url_scheme=os.environ.get("ALB_WSGI_URL_SCHEME", DEFAULT_URL_SCHEME).lower(),
            log_level=(os.environ.get("ALB_WSGI_LOG_LEVEL") or "").strip().upper() or None,
        )
