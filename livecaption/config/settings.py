"""
Session Settings

Single source of truth for live caption configuration.
Every value can be overridden with a LIVECAPTION_* environment variable.

Keying policies:
- speaker: captions keyed by (M:SS bucket, speaker label), final entries frozen
- offset: captions keyed by the raw start offset, last write wins
"""

import os
from dataclasses import dataclass, field
from typing import Any

# ============== Key provisioning ==============
KEY_SERVICE_URL = os.getenv("LIVECAPTION_KEY_URL", "http://localhost:3000/api")
KEY_SERVICE_TIMEOUT = float(os.getenv("LIVECAPTION_KEY_TIMEOUT", "10.0"))

# ============== Live transcription ==============
LISTEN_URL = os.getenv("LIVECAPTION_LISTEN_URL", "wss://api.deepgram.com/v1/listen")
MODEL = os.getenv("LIVECAPTION_MODEL", "nova-2")
LANGUAGE = os.getenv("LIVECAPTION_LANGUAGE", "es-419")

# Query options sent with every listen request
LISTEN_OPTIONS: dict[str, Any] = {
    "interim_results": True,
    "smart_format": True,
    "vad_events": True,
    "diarize": True,
}

# ============== Pacing ==============
RELAY_COOLDOWN_MS = int(os.getenv("LIVECAPTION_RELAY_COOLDOWN_MS", "250"))
CAPTURE_INTERVAL_MS = int(os.getenv("LIVECAPTION_CAPTURE_INTERVAL_MS", "500"))

# ============== Keying policy ==============
KEYING_POLICIES: dict[str, str] = {
    "speaker": "One caption per (M:SS bucket, speaker); final captions ignore interim updates",
    "offset": "One caption per raw start offset; the latest event always wins",
}

# ========== SWITCH POLICY HERE ==========
KEYING_POLICY = os.getenv("LIVECAPTION_KEYING_POLICY", "speaker")
# ========================================


def get_policy_name(name: str | None = None) -> str:
    """
    Validate a keying policy name.

    Args:
        name: Policy name ('speaker' or 'offset'). Uses default if None.

    Returns:
        The normalized policy name.

    Raises:
        ValueError: If the policy name is not known.
    """
    key = (name or KEYING_POLICY).strip().lower()
    if key not in KEYING_POLICIES:
        raise ValueError(f"Unknown keying policy: {key}. Available: {list(KEYING_POLICIES)}")
    return key


@dataclass
class SessionConfig:
    """Configuration for one caption session."""

    key_url: str = KEY_SERVICE_URL
    key_timeout: float = KEY_SERVICE_TIMEOUT
    listen_url: str = LISTEN_URL
    model: str = MODEL
    language: str = LANGUAGE
    keying_policy: str = KEYING_POLICY
    relay_cooldown_ms: int = RELAY_COOLDOWN_MS
    capture_interval_ms: int = CAPTURE_INTERVAL_MS
    listen_options: dict[str, Any] = field(default_factory=lambda: dict(LISTEN_OPTIONS))

    def __post_init__(self):
        self.keying_policy = get_policy_name(self.keying_policy)
        if self.relay_cooldown_ms < 0:
            raise ValueError(f"relay_cooldown_ms must be >= 0, got {self.relay_cooldown_ms}")
        if self.capture_interval_ms <= 0:
            raise ValueError(f"capture_interval_ms must be > 0, got {self.capture_interval_ms}")

    @property
    def relay_cooldown(self) -> float:
        """Relay cooldown in seconds."""
        return self.relay_cooldown_ms / 1000.0

    @property
    def query_params(self) -> dict[str, str]:
        """Listen request query parameters, booleans lowered to 'true'/'false'."""
        params: dict[str, Any] = {"model": self.model, "language": self.language}
        params.update(self.listen_options)
        return {
            name: str(value).lower() if isinstance(value, bool) else str(value)
            for name, value in params.items()
        }
