"""Service layer helpers (settings)."""

from .settings import Settings, apply_env_overrides, check_for_errors

__all__ = ["Settings", "apply_env_overrides", "check_for_errors"]
