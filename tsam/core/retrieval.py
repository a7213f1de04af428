"""
Lookup of requested values in a state snapshot.

For each retrieve the engine builds the snapshot lookup key
(`<module_path>.<name>`), the response key (same, minus a leading
"root."), resolves the value and applies the require_all policy.
"""

import logging
from typing import Any, Dict, Iterable

from ..config.defaults import DEFAULT_MODULE_PATH
from .arguments import ModuleArgs, Retrieve
from .errors import RetrievalError
from .lookup import parse_retrieve
from .shaper import fold_response_items
from .state import StateSnapshot

logger = logging.getLogger(__name__)

_ROOT_PREFIX = f"{DEFAULT_MODULE_PATH}."


def strip_root(key: str) -> str:
    """Remove a single leading "root." so the root module is invisible in the output."""
    if key.startswith(_ROOT_PREFIX):
        return key[len(_ROOT_PREFIX):]
    return key


class RetrievalEngine:
    """
    Resolves retrieves against one snapshot.

    In strict mode (require_all) the first miss raises RetrievalError;
    otherwise misses are skipped.
    """

    def __init__(self, snapshot: StateSnapshot, require_all: bool = False):
        self.snapshot = snapshot
        self.require_all = require_all

    def collect(self, retrieves: Iterable[Retrieve]) -> Dict[str, Any]:
        """
        Resolve retrieves in order into flat response items.

        Returns:
            Mapping of dotted response key -> value; later duplicates overwrite
        """
        items: Dict[str, Any] = {}
        for item in retrieves:
            self._resolve(item, items)
        return items

    def _resolve(self, item: Retrieve, items: Dict[str, Any]) -> None:
        lookup = item.lookup or parse_retrieve(item.retrieve)
        module_path = item.module_path or DEFAULT_MODULE_PATH
        lookup_key = f"{module_path}.{lookup.name}"
        response_key = strip_root(lookup_key)

        if lookup.is_output:
            if lookup_key in self.snapshot.outputs:
                items[response_key] = self.snapshot.outputs[lookup_key]
            else:
                self._miss(f"Output '{lookup_key}' not found.")
            return

        resource = self.snapshot.resources.get(lookup_key)
        if resource is None:
            self._miss(f"Resource '{lookup_key}' not found.")
        elif lookup.attribute not in resource.attributes:
            self._miss(f"Resource attribute '{lookup.attribute}' not found.")
        else:
            items[f"{response_key}.{lookup.attribute}"] = resource.attributes[lookup.attribute]

    def _miss(self, message: str) -> None:
        if self.require_all:
            raise RetrievalError(message)
        logger.debug(f"Skipping: {message}")


def process_state(snapshot: StateSnapshot, module_args: ModuleArgs) -> Dict[str, Any]:
    """
    Resolve all retrieves of module_args and fold them into the nested response.

    Raises:
        RetrievalError: On the first miss when require_all is set
        ResponseShapeError: If two response keys collide as value and object
    """
    engine = RetrievalEngine(snapshot, require_all=module_args.require_all)
    items = engine.collect(module_args.retrieves)
    return fold_response_items(items.items())
