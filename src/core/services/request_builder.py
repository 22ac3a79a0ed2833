"""Request assembly from session options.

Both builders are pure and total over any `Options` value. Empty text
becomes an absent field; booleans are always sent.
"""

from __future__ import annotations

from typing import Sequence

from core.domain.models import (
    DEFAULT_TIMEOUT_SECS,
    ConvertRequest,
    Options,
    ParseNodesRequest,
    PresetConfig,
)
from core.services.preset_resolver import resolve_ini_url


def _optional(value: str) -> str | None:
    return value or None


def build_convert_request(
    options: Options,
    presets: Sequence[PresetConfig] = (),
    *,
    timeout_secs: int = DEFAULT_TIMEOUT_SECS,
) -> ConvertRequest:
    """Snapshot `options` into a `convert_subscription` request."""

    ini_url = resolve_ini_url(options.selected_preset, options.custom_ini_url, presets)
    return ConvertRequest(
        subscription=options.subscription,
        ini_url=_optional(ini_url),
        include_regex=_optional(options.include_regex),
        exclude_regex=_optional(options.exclude_regex),
        rename_pattern=_optional(options.rename_pattern),
        rename_replacement=_optional(options.rename_replacement),
        timeout_secs=timeout_secs,
        enable_tun=options.enable_tun,
        custom_user_agent=_optional(options.custom_user_agent),
        enable_udp=options.enable_udp,
        enable_tfo=options.enable_tfo,
        skip_cert_verify=options.skip_cert_verify,
        vless_reality_short_id_override=_optional(options.vless_reality_short_id_override),
        api_listen_lan=options.api_listen_lan,
        rule_provider_proxy=_optional(options.rule_provider_proxy),
        rule_provider_header=_optional(options.rule_provider_header),
        rule_provider_size_limit=options.rule_provider_size_limit,
        rule_provider_path_omit=options.rule_provider_path_omit,
        rule_provider_path_template=_optional(options.rule_provider_path_template),
    )


def build_parse_nodes_request(
    options: Options,
    *,
    timeout_secs: int = DEFAULT_TIMEOUT_SECS,
) -> ParseNodesRequest:
    """Preview slice of `options`.

    Rename, TUN and rule-provider settings only affect the generated config,
    so they are never forwarded here.
    """

    return ParseNodesRequest(
        content=options.subscription,
        include_regex=_optional(options.include_regex),
        exclude_regex=_optional(options.exclude_regex),
        custom_user_agent=_optional(options.custom_user_agent),
        timeout_secs=timeout_secs,
    )
