"""
Terraform state snapshot model.

Raw state documents fetched by a backend are decoded into StateModule
records, which are then indexed into a StateSnapshot keyed by
`<module_path>.<output_name>` and `<module_path>.<resource_address>`.

Both the legacy module-list layout (state versions 1-3) and the current
flat resource-list layout (version 4) are decoded. Version 4 attributes
are flattened into the legacy flat-map encoding so that lookups such as
`versioning.0.enabled` behave the same for either layout.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import BackendError

logger = logging.getLogger(__name__)

ROOT_MODULE = "root"

_LEGACY_VERSIONS = (1, 2, 3)
_CURRENT_VERSION = 4

# module.<name> optionally followed by an instance key: module.a["x"], module.b[0]
_MODULE_STEP_RE = re.compile(r'module\.([^.\[]+)(\[[^\]]*\])?')


@dataclass
class ResourceState:
    """Primary instance of a resource: its id and flat string attributes."""
    id: str
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class StateModule:
    """
    One module of a Terraform state.

    Attributes:
        path: Module path components, starting with "root"
        outputs: Output name -> decoded output value
        resources: Resource address (type.name) -> ResourceState
    """
    path: List[str]
    outputs: Dict[str, Any] = field(default_factory=dict)
    resources: Dict[str, ResourceState] = field(default_factory=dict)

    @property
    def dotted_path(self) -> str:
        return ".".join(self.path)


class StateSnapshot:
    """
    Read-only index over all modules of a workspace snapshot.

    Outputs and resources live in separate namespaces, each keyed by
    `<dotted module path>.<name>`.
    """

    def __init__(self):
        self.outputs: Dict[str, Any] = {}
        self.resources: Dict[str, ResourceState] = {}

    @classmethod
    def from_modules(cls, modules: List[StateModule]) -> "StateSnapshot":
        snapshot = cls()
        for module in modules:
            prefix = module.dotted_path
            for name, value in module.outputs.items():
                snapshot.outputs[f"{prefix}.{name}"] = value
            for address, resource in module.resources.items():
                snapshot.resources[f"{prefix}.{address}"] = resource
        logger.debug(
            f"Indexed {len(snapshot.outputs)} outputs and "
            f"{len(snapshot.resources)} resources from {len(modules)} modules"
        )
        return snapshot

    def __repr__(self) -> str:
        return (
            f"StateSnapshot(outputs={len(self.outputs)}, "
            f"resources={len(self.resources)})"
        )


def decode_state(document: Optional[Dict[str, Any]]) -> List[StateModule]:
    """
    Decode a raw Terraform state document into modules.

    Args:
        document: Parsed JSON state, or None when the workspace has no state

    Returns:
        List of StateModule (empty for an empty workspace)

    Raises:
        BackendError: If the state version is not supported
    """
    if not document:
        return []

    version = document.get("version")
    if version in _LEGACY_VERSIONS or (version is None and "modules" in document):
        return _decode_legacy(document)
    if version == _CURRENT_VERSION:
        return _decode_current(document)

    raise BackendError(f"Unsupported state file version '{version}'.")


def decode_state_bytes(data: Optional[bytes]) -> List[StateModule]:
    """Decode state from raw bytes as stored by a backend."""
    if data is None or not data.strip():
        return []
    try:
        document = json.loads(data)
    except ValueError as e:
        raise BackendError(f"State is not valid JSON. Reason: '{e}'.")
    if not isinstance(document, dict):
        raise BackendError("State is not a JSON object.")
    return decode_state(document)


def _decode_legacy(document: Dict[str, Any]) -> List[StateModule]:
    modules = []
    for raw in document.get("modules") or []:
        module = StateModule(path=list(raw.get("path") or [ROOT_MODULE]))

        for name, output in (raw.get("outputs") or {}).items():
            # version 1 stored outputs as bare strings
            if isinstance(output, dict) and "value" in output:
                module.outputs[name] = output["value"]
            else:
                module.outputs[name] = output

        for address, resource in (raw.get("resources") or {}).items():
            primary = resource.get("primary") or {}
            module.resources[address] = ResourceState(
                id=primary.get("id", ""),
                attributes={
                    k: _stringify(v) for k, v in (primary.get("attributes") or {}).items()
                },
            )

        modules.append(module)
    return modules


def _decode_current(document: Dict[str, Any]) -> List[StateModule]:
    root = StateModule(path=[ROOT_MODULE])
    by_path: Dict[str, StateModule] = {ROOT_MODULE: root}

    for name, output in (document.get("outputs") or {}).items():
        root.outputs[name] = output.get("value") if isinstance(output, dict) else output

    for resource in document.get("resources") or []:
        path = module_address_to_path(resource.get("module", ""))
        module = by_path.setdefault(".".join(path), StateModule(path=path))

        base = f"{resource.get('type', '')}.{resource.get('name', '')}"
        if resource.get("mode") == "data":
            base = f"data.{base}"

        for instance in resource.get("instances") or []:
            if instance.get("deposed"):
                continue
            address = base + _index_suffix(instance.get("index_key"))
            if "attributes_flat" in instance and "attributes" not in instance:
                attributes = {
                    k: _stringify(v) for k, v in (instance["attributes_flat"] or {}).items()
                }
            else:
                attributes = flatten_attributes(instance.get("attributes") or {})
            module.resources[address] = ResourceState(
                id=attributes.get("id", ""),
                attributes=attributes,
            )

    return list(by_path.values())


def module_address_to_path(address: str) -> List[str]:
    """
    Convert a module address to a module path.

    "" -> ["root"]; "module.a.module.b" -> ["root", "a", "b"];
    instance keys stay attached: "module.a[0]" -> ["root", "a[0]"].
    """
    path = [ROOT_MODULE]
    for name, key in _MODULE_STEP_RE.findall(address or ""):
        path.append(name + key)
    return path


def _index_suffix(index_key: Any) -> str:
    if index_key is None:
        return ""
    if isinstance(index_key, int) and not isinstance(index_key, bool):
        return f".{index_key}"
    return f'["{index_key}"]'


def flatten_attributes(attributes: Dict[str, Any]) -> Dict[str, str]:
    """
    Flatten nested attribute values into Terraform's legacy flat-map form.

    Lists get a `<key>.#` count and `<key>.<i>` entries, maps get a
    `<key>.%` count and `<key>.<name>` entries. Nulls are dropped.
    """
    flat: Dict[str, str] = {}
    for key, value in attributes.items():
        _flatten_into(flat, key, value)
    return flat


def _flatten_into(flat: Dict[str, str], prefix: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, list):
        flat[f"{prefix}.#"] = str(len(value))
        for i, item in enumerate(value):
            _flatten_into(flat, f"{prefix}.{i}", item)
    elif isinstance(value, dict):
        flat[f"{prefix}.%"] = str(len(value))
        for key, item in value.items():
            _flatten_into(flat, f"{prefix}.{key}", item)
    else:
        flat[prefix] = _stringify(value)


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return json.dumps(value)
