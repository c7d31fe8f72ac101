"""Request/response models for the Platform API."""

import re
from collections.abc import Iterable
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# RFC 1123 label, which is what Kubernetes requires for namespace names
NAMESPACE_NAME_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
NAMESPACE_NAME_MAX_LENGTH = 63

# 1-24h or 1-7d
TTL_RE = re.compile(r"^(1([hd]|[0-9]h)|2([hd]|[0-4]h)|[3-7][hd]|[89]h)$")
DEFAULT_TTL = "24h"


def parse_ttl(value: str) -> timedelta:
    """Parse a TTL such as ``7d`` or ``12h`` into a timedelta."""
    if not TTL_RE.match(value):
        raise ValueError("Valid TTLs are 1-24h or 1-7d")
    amount, unit = int(value[:-1]), value[-1]
    if unit == "d":
        return timedelta(days=amount)
    return timedelta(hours=amount)


def namespace_name(productkey: str, suffix: str) -> str:
    return f"{productkey}-{suffix}"


class Credentials(BaseModel):
    """OAuth client credentials, read once at startup."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str = Field(repr=False)
    scope: str
    tenant: str

    def form_data(self) -> dict[str, str]:
        return {
            "client_id": self.client_id,
            "scope": self.scope,
            "client_secret": self.client_secret,
            "grant_type": "client_credentials",
        }


class Token(BaseModel):
    """Access token returned by the OAuth endpoint."""

    token_type: str
    access_token: str = Field(repr=False)
    expires_in: int | None = None

    @property
    def is_bearer(self) -> bool:
        return self.token_type.lower() == "bearer"

    def __str__(self) -> str:
        return self.access_token


class VaultServiceAccounts(BaseModel):
    """Service accounts granted access to the secret store.

    ``default`` is tracked as a flag rather than a list entry so it always
    comes first on the wire and is never duplicated.
    """

    include_default: bool = True
    service_accounts: list[str] = Field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: str) -> "VaultServiceAccounts":
        """Build from a comma-separated list; no implicit ``default``."""
        accounts = cls(include_default=False)
        accounts.extend(v.strip() for v in raw.split(",") if v.strip())
        return accounts

    def extend(self, accounts: Iterable[str]) -> None:
        for account in accounts:
            if account == "default":
                self.include_default = True
            else:
                self.service_accounts.append(account)

    @property
    def is_empty(self) -> bool:
        return not self.service_accounts

    def service_accounts_string(self) -> str:
        names = list(self.service_accounts)
        if self.include_default:
            names.insert(0, "default")
        return ",".join(names)

    def to_payload(self) -> dict[str, str]:
        return {"service_account_name": self.service_accounts_string()}


class NamespaceRequest(BaseModel):
    """Body of the namespace create-or-update call."""

    productkey: str = Field(min_length=1)
    namespace: str = Field(min_length=1)
    cluster: str = Field(min_length=1)
    ttl: str = DEFAULT_TTL
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    vault_service_accounts: VaultServiceAccounts = Field(default_factory=VaultServiceAccounts)
    extra_properties: dict[str, Any] = Field(default_factory=dict)

    @field_validator("ttl")
    @classmethod
    def _check_ttl(cls, v: str) -> str:
        parse_ttl(v)
        return v

    @model_validator(mode="after")
    def _check_name(self) -> "NamespaceRequest":
        name = self.full_name
        if len(name) > NAMESPACE_NAME_MAX_LENGTH:
            raise ValueError(
                f"namespace name '{name}' is longer than {NAMESPACE_NAME_MAX_LENGTH} characters"
            )
        if not NAMESPACE_NAME_RE.match(name):
            raise ValueError(
                f"namespace name '{name}' must consist of lowercase alphanumerics or '-', "
                "and start and end with an alphanumeric"
            )
        return self

    @property
    def full_name(self) -> str:
        return namespace_name(self.productkey, self.namespace)

    @property
    def ttl_delta(self) -> timedelta:
        return parse_ttl(self.ttl)

    def to_payload(self) -> dict[str, Any]:
        """Serialize into the JSON body the Platform API expects."""
        payload: dict[str, Any] = {
            "productkey": self.productkey,
            "ttl": self.ttl,
            "cluster": self.cluster,
            "namespace": self.namespace,
        }
        if self.labels:
            payload["labels"] = [{"key": k, "value": v} for k, v in self.labels.items()]
        if self.annotations:
            payload["annotations"] = [{"key": k, "value": v} for k, v in self.annotations.items()]
        if not self.vault_service_accounts.is_empty:
            payload["vault_config"] = self.vault_service_accounts.to_payload()

        # Extra properties never override the fields above
        for key, value in self.extra_properties.items():
            payload.setdefault(key, value)
        return payload


class NamespaceResponse(BaseModel):
    """Successful answer from the namespace endpoint."""

    message: str
    namespace: str
    expiry: str

    def __str__(self) -> str:
        return f"message: {self.message}\nnamespace: {self.namespace}\nexpiry: {self.expiry}"
