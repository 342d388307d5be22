"""
Central path configuration for Node Agent Core.

All filesystem paths are derived from a single base directory.

Path Structure:
    /var/lib/node-agent/
    └── data/
        └── device.json     (sensor/controller manifest)

Usage:
    from node_agent_core.paths import get_paths

    paths = get_paths()
    manifest_path = paths.manifest_path
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_BASE_DIR = "/var/lib/node-agent"


@dataclass(frozen=True, slots=True)
class Paths:
    """
    Immutable container for all filesystem paths used by the agent.
    """

    base_dir: Path
    data_dir: Path
    manifest_path: Path


def build_paths(base_dir: Optional[Path] = None) -> Paths:
    """
    Build Paths object from base directory.

    Args:
        base_dir: Base directory for all agent files.
                  Defaults to /var/lib/node-agent.
                  Can be overridden via NODE_AGENT_BASE_DIR env var.

    Returns:
        Immutable Paths object with all filesystem paths.
    """
    if base_dir is None:
        base_dir = Path(os.environ.get("NODE_AGENT_BASE_DIR", DEFAULT_BASE_DIR))

    return Paths(
        base_dir=base_dir,
        data_dir=base_dir / "data",
        manifest_path=base_dir / "data" / "device.json",
    )


# Global instance (lazy-initialized)
_paths: Optional[Paths] = None


def get_paths() -> Paths:
    """
    Get the global Paths instance, building it from defaults on first call.
    """
    global _paths
    if _paths is None:
        _paths = build_paths()
    return _paths


def set_paths(paths: Paths) -> None:
    """Set the global Paths instance (tests, custom layouts)."""
    global _paths
    _paths = paths


def reset_paths() -> None:
    """Force get_paths() to rebuild from defaults on next call."""
    global _paths
    _paths = None
