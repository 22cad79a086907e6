"""Application settings via Pydantic BaseSettings."""

from __future__ import annotations

import ipaddress
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings

from safedial.constants import DEFAULT_DENIED_CIDRS, DEFAULT_DIAL_TIMEOUT_S, RESERVED_CIDRS
from safedial.types import SelectionPolicy


class Settings(BaseSettings):
    model_config = {"env_prefix": "SAFEDIAL_", "env_file": ".env", "env_file_encoding": "utf-8"}

    # Policy
    denied_cidrs: list[str] = list(DEFAULT_DENIED_CIDRS)
    extra_denied_cidrs: list[str] = []
    deny_reserved: bool = True

    # Dialing
    selection_policy: SelectionPolicy = SelectionPolicy.FALLBACK
    dial_timeout: float | None = DEFAULT_DIAL_TIMEOUT_S

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("denied_cidrs", "extra_denied_cidrs")
    @classmethod
    def _check_cidrs(cls, value: list[str]) -> list[str]:
        for cidr in value:
            try:
                ipaddress.ip_network(cidr.strip(), strict=False)
            except ValueError as exc:
                msg = f"invalid CIDR range {cidr!r}"
                raise ValueError(msg) from exc
        return value

    def policy_cidrs(self) -> list[str]:
        """Return every CIDR the guard should deny, in table order."""
        cidrs = [*self.denied_cidrs, *self.extra_denied_cidrs]
        if self.deny_reserved:
            cidrs.extend(RESERVED_CIDRS)
        return cidrs


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
