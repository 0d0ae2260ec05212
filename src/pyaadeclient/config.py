"""Configuration for the AADE integration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .const import BASE_URLS
from .exceptions import ConfigError
from .models import Credentials, Environment

ENV_USER_ID = "AADE_USER_ID"
ENV_SUBSCRIPTION_KEY = "AADE_SUBSCRIPTION_KEY"
ENV_ENVIRONMENT = "AADE_ENVIRONMENT"
ENV_ENTITY_VAT_NUMBER = "AADE_ENTITY_VAT_NUMBER"

_REQUIRED_FIELDS = ("user_id", "subscription_key", "environment", "entity_vat_number")


def parse_environment(value: str | Environment | None) -> Environment:
    if isinstance(value, Environment):
        return value
    if value is None or not str(value).strip():
        return Environment.DEVELOPMENT
    try:
        return Environment(str(value).strip().lower())
    except ValueError as exc:
        raise ConfigError(
            f"Unsupported AADE environment {value!r}; "
            f"expected one of: {', '.join(env.value for env in Environment)}."
        ) from exc


@dataclass(frozen=True, slots=True)
class AADEConfig:
    """Credentials and company details for the digital client API.

    The integration counts as configured only when all four values are set;
    an incomplete configuration degrades submissions to an advisory no-op.
    """

    user_id: str = ""
    subscription_key: str = ""
    environment: Environment | None = Environment.DEVELOPMENT
    entity_vat_number: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AADEConfig:
        source = os.environ if environ is None else environ
        return cls(
            user_id=source.get(ENV_USER_ID, "").strip(),
            subscription_key=source.get(ENV_SUBSCRIPTION_KEY, "").strip(),
            environment=parse_environment(source.get(ENV_ENVIRONMENT)),
            entity_vat_number=source.get(ENV_ENTITY_VAT_NUMBER, "").strip(),
        )

    def missing_fields(self) -> list[str]:
        return [name for name in _REQUIRED_FIELDS if not getattr(self, name)]

    @property
    def is_configured(self) -> bool:
        return not self.missing_fields()

    @property
    def credentials(self) -> Credentials | None:
        if not self.user_id or not self.subscription_key:
            return None
        return Credentials(user_id=self.user_id, subscription_key=self.subscription_key)

    @property
    def base_url(self) -> str:
        if self.environment is None:
            raise ConfigError("AADE environment is not configured.")
        return BASE_URLS[parse_environment(self.environment)]

    def require_entity_vat_number(self) -> str:
        if not self.entity_vat_number:
            raise ConfigError("Company VAT number not configured.")
        return self.entity_vat_number
