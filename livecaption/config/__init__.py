"""
Live Caption Configuration Module

Environment-driven settings and the SessionConfig data class.
"""

from .settings import (
    CAPTURE_INTERVAL_MS,
    KEY_SERVICE_TIMEOUT,
    KEY_SERVICE_URL,
    KEYING_POLICIES,
    KEYING_POLICY,
    LANGUAGE,
    LISTEN_OPTIONS,
    LISTEN_URL,
    MODEL,
    RELAY_COOLDOWN_MS,
    SessionConfig,
    get_policy_name,
)

__all__ = [
    "CAPTURE_INTERVAL_MS",
    "KEYING_POLICIES",
    "KEYING_POLICY",
    "KEY_SERVICE_TIMEOUT",
    "KEY_SERVICE_URL",
    "LANGUAGE",
    "LISTEN_OPTIONS",
    "LISTEN_URL",
    "MODEL",
    "RELAY_COOLDOWN_MS",
    "SessionConfig",
    "get_policy_name",
]
