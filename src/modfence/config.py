"""Configuration: parse modfence.yml into a merged restriction set."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import yaml

from modfence.policy.merge import merge_restrictions
from modfence.policy.restrictions import PRESETS, Restriction, RuleKind

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "modfence.yml"
SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})
DEFAULT_PRESET = "default"
DEFAULT_INCLUDE: tuple[str, ...] = ("**/*.{ts,tsx,mts,cts,js,jsx,mjs,cjs}",)
DEFAULT_EXCLUDE: tuple[str, ...] = ("**/node_modules/**", "**/dist/**", "**/*.d.ts")


@dataclass(frozen=True)
class ModfenceConfig:
    """Effective configuration for one project."""

    restrictions: tuple[Restriction, ...]
    include: tuple[str, ...] = DEFAULT_INCLUDE
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE
    preset: str = DEFAULT_PRESET


def default_config() -> ModfenceConfig:
    """Return the configuration used when no modfence.yml exists."""
    return ModfenceConfig(restrictions=PRESETS[DEFAULT_PRESET])


# ---------------------------------------------------------------------------
# YAML parsing
# ---------------------------------------------------------------------------


def _parse_globs(value: object, context: str) -> tuple[str, ...]:
    """Parse a glob string or list of glob strings into a tuple."""
    if isinstance(value, str):
        if not value.strip():
            msg = f"{context} must be a non-empty string"
            raise ValueError(msg)
        return (value,)
    if isinstance(value, list):
        if not value:
            msg = f"{context} must not be an empty list"
            raise ValueError(msg)
        for item in value:
            if not isinstance(item, str) or not item.strip():
                msg = f"{context} must contain only non-empty strings"
                raise ValueError(msg)
        return tuple(value)
    msg = f"{context} must be a string or a list of strings"
    raise ValueError(msg)


def _parse_restriction(data: object, idx: int) -> Restriction:
    """Parse one entry of the ``restrictions`` list."""
    if not isinstance(data, dict):
        msg = f"modfence.yml: restriction at index {idx} must be a mapping"
        raise ValueError(msg)

    context = f"modfence.yml: restriction at index {idx}"

    if "pattern" not in data:
        msg = f"{context} missing required 'pattern' field"
        raise ValueError(msg)
    globs = _parse_globs(data["pattern"], f"{context}: 'pattern'")
    pattern: str | tuple[str, ...] = globs[0] if isinstance(data["pattern"], str) else globs

    rule_raw = data.get("rule")
    if rule_raw is None or not isinstance(rule_raw, str) or not rule_raw.strip():
        msg = f"{context} missing required 'rule' field"
        raise ValueError(msg)
    rule = RuleKind(rule_raw)
    if rule is RuleKind.UNRECOGNIZED:
        logger.warning("%s: unknown rule '%s' will never report violations", context, rule_raw)

    message_raw = data.get("message")
    message: str | None = str(message_raw) if message_raw is not None else None

    importers_raw = data.get("allowed_importers", data.get("allowedImporters"))
    allowed_importers: tuple[str, ...] | None = None
    if importers_raw is not None:
        if not isinstance(importers_raw, list):
            msg = f"{context}: 'allowed_importers' must be a list"
            raise ValueError(msg)
        # An empty list is meaningful: nobody may import the module.
        allowed_importers = (
            _parse_globs(importers_raw, f"{context}: 'allowed_importers'")
            if importers_raw
            else ()
        )
        if rule is not RuleKind.CUSTOM:
            logger.warning("%s: 'allowed_importers' is ignored for rule '%s'", context, rule_raw)

    return Restriction(
        pattern=pattern,
        rule=rule,
        message=message,
        allowed_importers=allowed_importers,
    )


def parse_config(data: object) -> ModfenceConfig:
    """Validate already-loaded YAML data and build a :class:`ModfenceConfig`.

    Raises ``ValueError`` on schema errors.
    """
    if data is None:
        return default_config()

    if not isinstance(data, dict):
        msg = "modfence.yml must be a YAML mapping"
        raise ValueError(msg)

    version = data.get("version")
    if version is None:
        msg = "modfence.yml: missing required 'version' field"
        raise ValueError(msg)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"modfence.yml: unsupported version {version}, expected one of {expected}"
        raise ValueError(msg)

    preset = str(data.get("preset", DEFAULT_PRESET))
    if preset not in PRESETS:
        msg = f"modfence.yml: unknown preset '{preset}', must be one of {sorted(PRESETS)}"
        raise ValueError(msg)

    restrictions_data = data.get("restrictions", [])
    if not isinstance(restrictions_data, list):
        msg = "modfence.yml: 'restrictions' must be a list"
        raise ValueError(msg)

    overrides = [_parse_restriction(entry, idx) for idx, entry in enumerate(restrictions_data)]

    include = DEFAULT_INCLUDE
    if "include" in data:
        include = _parse_globs(data["include"], "modfence.yml: 'include'")
    exclude_raw = data.get("exclude")
    exclude = DEFAULT_EXCLUDE
    if exclude_raw == []:
        exclude = ()
    elif exclude_raw is not None:
        exclude = _parse_globs(exclude_raw, "modfence.yml: 'exclude'")

    return ModfenceConfig(
        restrictions=merge_restrictions(PRESETS[preset], overrides),
        include=include,
        exclude=exclude,
        preset=preset,
    )


def load_config(config_path: Path) -> ModfenceConfig:
    """Parse a modfence.yml file; a missing file yields :func:`default_config`.

    Raises ``ValueError`` on YAML syntax or schema errors.
    """
    if not config_path.is_file():
        logger.debug("No config at %s, using defaults", config_path)
        return default_config()

    with config_path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            msg = f"modfence.yml: invalid YAML: {exc}"
            raise ValueError(msg) from exc

    return parse_config(data)
