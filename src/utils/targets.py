"""Target-key profiles for gas.js tags.

A target key (usually a site) maps to the accounts, domains and extra calls
its tag should carry. Profiles are sourced from YAML or an environment variable
so the same settings can be shared between the CLI and other callers.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml

from managers.tag_builder import TrackingTagBuilder

DEFAULT_TARGETS_CONFIG = "config/trackers.yaml"
TARGETS_ENV_VAR = "GAS_TARGETS_JSON"

_PROFILE_FIELDS = {"accounts", "domains", "script_url", "calls", "defaults"}


def load_target_mapping(config_path: str | None) -> dict[str, dict[str, Any]]:
    """Load the target-key -> tag profile mapping.

    The mapping can be supplied from:
    - a YAML file (preferred), or
    - a JSON payload in `GAS_TARGETS_JSON`.

    The file can either be a raw mapping or contain a top-level `targets` key.
    Grouped entries are supported, e.g.:

    ```yaml
    targets:
      shop:
        de: { accounts: "UA-1-1", domains: ".shop.de" }
        fr: { accounts: "UA-1-2", domains: ".shop.fr" }
    ```

    which is flattened to keys like `shop_de` / `shop_fr`.

    Args:
        config_path: Optional explicit YAML path.

    Returns:
        Normalized mapping keyed by target key. Each profile has `accounts`,
        `domains`, `script_url`, `calls` and `defaults`.

    Raises:
        FileNotFoundError: If neither file nor env mapping is available.
        ValueError: If the mapping is malformed.
    """
    mapping = _load_mapping_from_file(config_path)
    if mapping is None:
        mapping = _load_mapping_from_env()

    if mapping is None:
        source_hint = config_path or DEFAULT_TARGETS_CONFIG
        raise FileNotFoundError(
            "No target mapping found. Provide --config-path, create "
            f"{source_hint}, or export JSON via {TARGETS_ENV_VAR}.",
        )

    if not isinstance(mapping, dict):
        raise ValueError("Target entries must be provided as a mapping.")

    return _normalize_mapping(mapping)


def resolve_target_profile(
    accounts: list[str] | dict[Any, str] | None,
    domains: str | list[str] | None,
    target_key: str | None,
    config_path: str | None,
) -> dict[str, Any]:
    """Resolve a tag profile directly or via target-key mapping.

    Accounts and domains passed directly take precedence over the profile's.

    Args:
        accounts: Account ids given on the command line (list or name -> id mapping).
        domains: Domains given on the command line.
        target_key: Lookup key in mapping to fill missing settings.
        config_path: Optional mapping YAML path.

    Returns:
        A profile dict (same shape as entries of `load_target_mapping`).

    Raises:
        ValueError: If no account or no domain can be resolved.
    """
    profile: dict[str, Any] = _empty_profile()

    if target_key:
        mapping = load_target_mapping(config_path)
        entry = mapping.get(target_key)
        if not entry:
            available = ", ".join(sorted(mapping.keys()))
            raise ValueError(
                f"Target key '{target_key}' not found. Available entries: {available or 'none'}",
            )
        profile.update(entry)

    if accounts:
        profile["accounts"] = accounts
    if domains:
        profile["domains"] = domains

    if not profile["accounts"] or not profile["domains"]:
        raise ValueError(
            "Provide --account and --domain or specify --target-key with a valid mapping.",
        )

    return profile


def build_tag_from_profile(profile: dict[str, Any]) -> TrackingTagBuilder:
    """Create a builder carrying the settings of a profile."""
    if profile.get("defaults"):
        builder = TrackingTagBuilder.defaults_builder(profile["accounts"], profile["domains"])
    else:
        builder = TrackingTagBuilder()
        builder.add_account(profile["accounts"])
        builder.add_domain(profile["domains"])

    if profile.get("script_url"):
        builder.set_script_url(profile["script_url"])
    if profile.get("calls"):
        builder.register_calls(profile["calls"])
    return builder


def _empty_profile() -> dict[str, Any]:
    return {"accounts": None, "domains": None, "script_url": None, "calls": None, "defaults": False}


def _load_mapping_from_file(config_path: str | None) -> dict[str, Any] | None:
    path = Path(config_path or DEFAULT_TARGETS_CONFIG)
    if not path.exists():
        return None

    raw_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    raw_mapping = raw_data.get("targets", raw_data) if isinstance(raw_data, dict) else None
    if not isinstance(raw_mapping, dict):
        raise ValueError(f"Target config {path} must be a mapping.")
    return raw_mapping


def _load_mapping_from_env() -> dict[str, Any] | None:
    env_payload = os.getenv(TARGETS_ENV_VAR)
    if not env_payload:
        return None
    try:
        return json.loads(env_payload)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{TARGETS_ENV_VAR} is not valid JSON.") from exc


def _is_profile(value: dict[str, Any]) -> bool:
    return {"accounts", "domains"} <= set(value.keys())


def _clean_profile(key: str, value: dict[str, Any]) -> dict[str, Any]:
    unknown = set(value.keys()) - _PROFILE_FIELDS
    if unknown:
        raise ValueError(
            f"Target key '{key}' has unknown fields: {', '.join(sorted(unknown))}.",
        )
    profile = _empty_profile()
    profile.update(value)
    profile["defaults"] = bool(profile["defaults"])
    return profile


def _normalize_mapping(mapping: dict[str, Any]) -> dict[str, dict[str, Any]]:
    cleaned: dict[str, dict[str, Any]] = {}

    for key, value in mapping.items():
        if not isinstance(value, dict):
            raise ValueError(f"Target key '{key}' configuration must be a mapping.")

        if _is_profile(value):
            cleaned[key] = _clean_profile(key, value)
            continue

        # Allow grouping keys (e.g., shop: { de: {...}, fr: {...} })
        subgroup_added = False
        for sub_key, sub_value in value.items():
            if not isinstance(sub_value, dict):
                continue
            if _is_profile(sub_value):
                cleaned_key = f"{key}_{sub_key}"
                cleaned[cleaned_key] = _clean_profile(cleaned_key, sub_value)
                subgroup_added = True
        if subgroup_added:
            continue

        raise ValueError(
            f"Target key '{key}' configuration is missing 'accounts'/'domains' "
            "and does not contain sub-entries with those fields.",
        )

    return cleaned
