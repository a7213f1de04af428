"""
Argument file loading.

The automation driver passes a single JSON file path on the command line.
That file names the Terraform configuration, the workspace and the values
to retrieve.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..config.defaults import DEFAULT_MODULE_PATH, DEFAULT_STATE, VARIABLES_FILE_NAME
from .errors import ArgumentError
from .lookup import LookupExpression, parse_retrieve

logger = logging.getLogger(__name__)


@dataclass
class Retrieve:
    """
    One requested value.

    Attributes:
        retrieve: Raw retrieve expression (o/<name> or r/<resource>/<attribute>)
        module_path: Dotted module path, "root" when not given
        lookup: Parsed expression, set once validated
    """
    retrieve: str
    module_path: str = DEFAULT_MODULE_PATH
    lookup: Optional[LookupExpression] = None


@dataclass
class ModuleArgs:
    """
    Validated contents of the argument file.

    Attributes:
        terraform_config_path: Terraform configuration file or directory
        state: Workspace name
        require_all: Treat any missing value as fatal
        retrieves: Requested values, in input order
    """
    terraform_config_path: str
    state: str = DEFAULT_STATE
    require_all: bool = False
    retrieves: List[Retrieve] = field(default_factory=list)

    @property
    def handles_variables(self) -> bool:
        """True when the configuration path points at a vars.tf file."""
        return os.path.basename(self.terraform_config_path) == VARIABLES_FILE_NAME


def load_arguments(argv: Sequence[str]) -> ModuleArgs:
    """
    Read, validate and normalise the argument file named in argv.

    Args:
        argv: Full command line, program name first

    Returns:
        ModuleArgs with defaults applied and every retrieve parsed

    Raises:
        ArgumentError: On invocation or schema problems
        LookupFormatError: If a retrieve expression is malformed
    """
    if len(argv) != 2:
        raise ArgumentError("No argument file provided.")
    args_file = argv[1]

    try:
        with open(args_file, "rb") as f:
            text = f.read()
    except OSError as e:
        raise ArgumentError(
            f"Could not read configuration file: '{args_file}'. Reason: '{e}'."
        )

    try:
        raw = json.loads(text)
        module_args = _build_module_args(raw)
    except (ValueError, TypeError) as e:
        raise ArgumentError(
            f"Configuration file not valid JSON: '{args_file}'. Reason: '{e}'."
        )

    validate_module_args(module_args)
    logger.debug(
        f"Loaded {len(module_args.retrieves)} retrieves for workspace "
        f"'{module_args.state}' from {args_file}"
    )
    return module_args


def validate_module_args(module_args: ModuleArgs) -> None:
    """
    Check required fields and parse every retrieve expression.

    Parsing happens here, before any backend is touched, so the first
    malformed expression aborts the run.
    """
    if not module_args.terraform_config_path:
        raise ArgumentError(
            "Terraform configuration file not given. Missing terraform_config_path?"
        )

    if module_args.handles_variables:
        return

    if not module_args.retrieves:
        raise ArgumentError("Nothing to retrieve.")

    for item in module_args.retrieves:
        item.lookup = parse_retrieve(item.retrieve)
        if not item.module_path:
            item.module_path = DEFAULT_MODULE_PATH


def _build_module_args(raw: Any) -> ModuleArgs:
    if not isinstance(raw, dict):
        raise TypeError("expected a JSON object")

    # terraform_file_path is the older name of the same field
    config_path = raw.get("terraform_config_path")
    if config_path is None:
        config_path = raw.get("terraform_file_path")

    retrieves = []
    for entry in _typed(raw, "retrieves", list, []):
        if not isinstance(entry, dict):
            raise TypeError("each entry of 'retrieves' must be an object")
        retrieves.append(Retrieve(
            retrieve=_typed(entry, "retrieve", str, ""),
            module_path=_typed(entry, "module_path", str, ""),
        ))

    return ModuleArgs(
        terraform_config_path=_check_type("terraform_config_path", config_path, str, ""),
        state=_typed(raw, "state", str, "") or DEFAULT_STATE,
        require_all=_typed(raw, "require_all", bool, False),
        retrieves=retrieves,
    )


def _typed(raw: Dict[str, Any], key: str, expected: type, default: Any) -> Any:
    return _check_type(key, raw.get(key), expected, default)


def _check_type(key: str, value: Any, expected: type, default: Any) -> Any:
    if value is None:
        return default
    if not isinstance(value, expected):
        raise TypeError(f"'{key}' must be of type {expected.__name__}")
    return value
