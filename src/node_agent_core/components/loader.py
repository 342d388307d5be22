from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any

from node_agent_core.components.base import Capability, Controller, Sensor
from node_agent_core.components.context import CapabilityContext
from node_agent_core.components.manifest import load_manifest

logger = logging.getLogger(__name__)

_KIND_BASE: dict[str, type[Capability]] = {"sensor": Sensor, "controller": Controller}
_SECTION_KIND = {"sensors": "sensor", "controllers": "controller"}


@dataclass(frozen=True, slots=True)
class CapabilityLoadResult:
    kind: str
    name: str
    ok: bool
    entrypoint: str | None = None
    error: str | None = None
    loaded: bool = False


def _parse_entrypoint(entrypoint: str) -> tuple[str, str]:
    if ":" not in entrypoint:
        raise ValueError("entrypoint must be in format 'module.path:ClassName'")
    module_path, class_name = entrypoint.split(":", 1)
    if not module_path or not class_name:
        raise ValueError("entrypoint must include both module and class")
    return module_path, class_name


def load_capabilities(
    device_id: str,
    manifest: dict[str, dict[str, dict[str, Any]]] | None = None,
    *,
    run_setup: bool = True,
) -> tuple[list[Sensor], list[Controller], list[CapabilityLoadResult]]:
    """
    Instantiate sensors and controllers from the manifest.

    Policy:
    - enabled: default True (skip if False)
    - setup() is called once per capability when run_setup is True

    A failing entry is recorded and skipped; the others still load. Order
    follows the manifest, which is the order readings are reported in.
    """
    sensors: list[Sensor] = []
    controllers: list[Controller] = []
    results: list[CapabilityLoadResult] = []

    mf = manifest if manifest is not None else load_manifest()

    for section, kind in _SECTION_KIND.items():
        for name, meta in (mf.get(section) or {}).items():
            entrypoint = meta.get("entrypoint")
            if not isinstance(entrypoint, str) or not entrypoint:
                msg = "missing/invalid entrypoint"
                logger.error("%s %s: %s", kind, name, msg)
                results.append(CapabilityLoadResult(kind=kind, name=name, ok=False, error=msg))
                continue

            if meta.get("enabled", True) is False:
                logger.info("%s %s disabled (not loaded)", kind, name)
                results.append(
                    CapabilityLoadResult(kind=kind, name=name, ok=True, entrypoint=entrypoint)
                )
                continue

            try:
                context = CapabilityContext.create(
                    device_id=device_id,
                    kind=kind,
                    name=name,
                    unit=meta.get("unit"),
                    options=meta.get("options"),
                )
                module_path, class_name = _parse_entrypoint(entrypoint)
                module = importlib.import_module(module_path)
                cls = getattr(module, class_name)

                base = _KIND_BASE[kind]
                if not isinstance(cls, type) or not issubclass(cls, base):
                    raise TypeError(f"entrypoint class is not a {base.__name__} subclass: {entrypoint}")

                capability = cls(context)
                if run_setup:
                    capability.setup()

                if kind == "sensor":
                    sensors.append(capability)
                else:
                    controllers.append(capability)
                results.append(
                    CapabilityLoadResult(
                        kind=kind, name=name, ok=True, entrypoint=entrypoint, loaded=True
                    )
                )
                context.logger().info("loaded (unit=%s, setup=%s)", context.unit, run_setup)

            except Exception as exc:
                logger.exception("%s %s failed to load (entrypoint=%s)", kind, name, entrypoint)
                results.append(
                    CapabilityLoadResult(
                        kind=kind, name=name, ok=False, entrypoint=entrypoint, error=str(exc)
                    )
                )

    return sensors, controllers, results
