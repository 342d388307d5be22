"""
Device manifest — JSON description of the sensors and controllers on this node.

Path: {base_dir}/data/device.json

    {
      "sensors": {
        "temp": {"entrypoint": "pkg.mod:TempSensor", "unit": "C", "options": {...}}
      },
      "controllers": {
        "fan": {"entrypoint": "pkg.mod:Fan", "unit": "%", "enabled": true}
      }
    }
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any

from node_agent_core.paths import get_paths

logger = logging.getLogger(__name__)

SECTIONS = ("sensors", "controllers")


class ManifestError(RuntimeError):
    """Raised when the manifest cannot be read at all."""


def _now_ts() -> str:
    return time.strftime("%Y%m%dT%H%M%SZ", time.gmtime())


def _empty() -> dict[str, dict[str, dict[str, Any]]]:
    return {s: {} for s in SECTIONS}


def validate_manifest_shape(data: Any) -> dict[str, dict[str, dict[str, Any]]]:
    """Keep only {section: {name: dict}} entries; anything else is dropped."""
    out = _empty()
    if not isinstance(data, dict):
        return out
    for section in SECTIONS:
        entries = data.get(section)
        if not isinstance(entries, dict):
            continue
        for name, meta in entries.items():
            if not isinstance(name, str) or not name or not isinstance(meta, dict):
                logger.warning("Dropping malformed %s manifest entry: %r", section, name)
                continue
            out[section][name] = meta
    return out


def load_manifest() -> dict[str, dict[str, dict[str, Any]]]:
    manifest_path = get_paths().manifest_path

    if not manifest_path.exists():
        logger.info("Manifest not found, no local capabilities: %s", manifest_path)
        return _empty()

    try:
        with manifest_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return validate_manifest_shape(data)
    except json.JSONDecodeError:
        # Preserve corrupted file for debugging instead of silently hiding it.
        corrupt = manifest_path.with_suffix(f".corrupt.{_now_ts()}.json")
        logger.error("Manifest is corrupted, moved to %s", corrupt)
        try:
            manifest_path.replace(corrupt)
        except OSError:
            logger.warning("Could not move corrupted manifest aside")
        return _empty()
    except OSError as exc:
        raise ManifestError(f"failed to read manifest: {exc}") from exc
