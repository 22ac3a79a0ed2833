"""Domain models (Pydantic v2).

These models describe *what* travels between the session and the conversion
engine, not *how* it gets there. Field names of the wire models are the
engine's contract and must not be renamed.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic.config import ConfigDict


DEFAULT_TIMEOUT_SECS = 30


class Options(BaseModel):
    """Mutable option state owned by a UI session.

    Text fields use `""` for "not set"; the request builder turns that into an
    absent field. Only the regex fields and the subscription are ever checked.
    """

    model_config = ConfigDict(validate_assignment=True)

    subscription: str = Field(
        default="",
        description="Subscription URL(s) or raw proxy links, one per line.",
    )
    selected_preset: str | None = Field(
        default=None,
        description="Name of the selected preset; takes precedence over `custom_ini_url`.",
    )
    custom_ini_url: str = Field(default="", description="Free-typed remote config URL.")

    include_regex: str = Field(default="", description="Keep only nodes whose name matches.")
    exclude_regex: str = Field(default="", description="Drop nodes whose name matches.")
    rename_pattern: str = Field(default="", description="Regex applied to node names.")
    rename_replacement: str = Field(default="", description="Replacement for `rename_pattern`.")

    enable_tun: bool = False
    enable_udp: bool = True
    enable_tfo: bool = False
    skip_cert_verify: bool = False
    custom_user_agent: str = ""
    vless_reality_short_id_override: str = ""
    api_listen_lan: bool = False

    rule_provider_proxy: str = ""
    rule_provider_header: str = ""
    rule_provider_size_limit: int | None = Field(default=None, ge=0)
    rule_provider_path_omit: bool = False
    rule_provider_path_template: str = ""


class PresetConfig(BaseModel):
    """A named remote-config URL registered on the engine."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., min_length=1)
    url: str
    description: str = ""


class SubscriptionInfo(BaseModel):
    """Traffic/expiry snapshot from the provider's `subscription-userinfo` header.

    `expire` is Unix seconds; `0` means the subscription never expires.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    upload: int | None = Field(default=None, ge=0)
    download: int | None = Field(default=None, ge=0)
    total: int | None = Field(default=None, ge=0)
    expire: int | None = None


class ConvertResult(BaseModel):
    """Outcome of a full conversion."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    yaml: str
    node_count: int = Field(..., ge=0)
    filtered_count: int = Field(..., ge=0)
    group_count: int = Field(..., ge=0)
    rule_count: int = Field(..., ge=0)
    warnings: list[str] = Field(default_factory=list)
    subscription_info: SubscriptionInfo | None = None


class NodePreviewItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    protocol: str
    server: str
    port: int = Field(..., ge=0, le=65535)


class ParseNodesResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    nodes: list[NodePreviewItem] = Field(default_factory=list)
    subscription_info: SubscriptionInfo | None = None


class _WireRequest(BaseModel):
    """Base for requests sent to the engine.

    Optional text fields are either a value or absent; an empty string is
    normalised to `None` so it can never reach the wire.
    """

    model_config = ConfigDict(frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def _empty_to_absent(cls, value: Any, info: ValidationInfo) -> Any:
        if value == "" and info.field_name not in cls._required_text_fields():
            return None
        return value

    @classmethod
    def _required_text_fields(cls) -> frozenset[str]:
        return frozenset()

    def to_payload(self) -> dict[str, Any]:
        """Serialise for the wire, dropping absent fields."""

        return self.model_dump(mode="json", exclude_none=True)


class ConvertRequest(_WireRequest):
    """Snapshot of `Options` for `convert_subscription`."""

    subscription: str
    ini_url: str | None = None
    include_regex: str | None = None
    exclude_regex: str | None = None
    rename_pattern: str | None = None
    rename_replacement: str | None = None
    timeout_secs: int = DEFAULT_TIMEOUT_SECS
    enable_tun: bool = False
    custom_user_agent: str | None = None
    enable_udp: bool = True
    enable_tfo: bool = False
    skip_cert_verify: bool = False
    vless_reality_short_id_override: str | None = None
    api_listen_lan: bool = False
    rule_provider_proxy: str | None = None
    rule_provider_header: str | None = None
    rule_provider_size_limit: int | None = None
    rule_provider_path_omit: bool = False
    rule_provider_path_template: str | None = None

    @classmethod
    def _required_text_fields(cls) -> frozenset[str]:
        return frozenset({"subscription"})


class ParseNodesRequest(_WireRequest):
    """Preview slice: only the fields that influence parsing and filtering."""

    content: str
    include_regex: str | None = None
    exclude_regex: str | None = None
    custom_user_agent: str | None = None
    timeout_secs: int | None = None

    @classmethod
    def _required_text_fields(cls) -> frozenset[str]:
        return frozenset({"content"})
