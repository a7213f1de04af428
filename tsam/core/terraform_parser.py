"""
Terraform configuration parser.

Reads Terraform HCL with python-hcl2 to find the declared backend block
and, for vars.tf files, the declared variables.
"""

import glob
import os
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import hcl2

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_VARIABLE_TYPES = (
    "string", "number", "bool", "list", "map", "set", "object", "tuple", "any",
)

# markers python-hcl2 adds to parsed blocks
_META_KEYS = ("__start_line__", "__end_line__", "__is_block__")


@dataclass
class BackendConfig:
    """
    The backend declared in a terraform block.

    Attributes:
        type: Backend type label, e.g. "s3" or "local"
        raw_config: Attributes of the backend block, uninterpreted
        source: File the block was found in
    """
    type: str
    raw_config: Dict[str, Any] = field(default_factory=dict)
    source: str = ""


@dataclass
class TerraformVariable:
    """
    Represents a Terraform variable definition.

    Attributes:
        name: Variable name
        type: Declared type, "" when the declaration has none
        default: Default value (None if no default)
        description: Human-readable description
    """
    name: str
    type: str = ""
    default: Optional[Any] = None
    description: str = ""

    @property
    def base_type(self) -> str:
        """Type constructor name: "list(string)" -> "list"."""
        return self.type.split("(", 1)[0].strip()


class TerraformParser:
    """
    Parser for a Terraform configuration file or directory.

    A directory is read the way Terraform reads a module: every *.tf
    file in it is parsed.
    """

    def __init__(self, config_path: str):
        """
        Initialize parser for a Terraform configuration.

        Args:
            config_path: Path to a .tf file or a directory of .tf files
        """
        self.config_path = config_path
        self._parsed: Optional[List[tuple]] = None

    def _files(self) -> List[str]:
        if os.path.isdir(self.config_path):
            return sorted(glob.glob(os.path.join(self.config_path, "*.tf")))
        if os.path.exists(self.config_path):
            return [self.config_path]
        raise ConfigurationError(
            f"Terraform configuration file not found at: '{self.config_path}'."
        )

    def _load(self) -> List[tuple]:
        """
        Parse every configuration file once.

        Returns:
            List of (file path, parsed dict)

        Raises:
            ConfigurationError: If a file is missing, unreadable or not valid HCL
        """
        if self._parsed is not None:
            return self._parsed

        parsed = []
        for tf_file in self._files():
            try:
                with open(tf_file, 'r', encoding='utf-8') as f:
                    parsed.append((tf_file, hcl2.load(f)))
            except Exception as e:
                raise ConfigurationError(
                    f"Could not load Terraform configuration: '{tf_file}'. Reason: '{e}'."
                )
        logger.info(f"Parsed {len(parsed)} Terraform files from {self.config_path}")

        self._parsed = parsed
        return self._parsed

    def load_backend(self) -> BackendConfig:
        """
        Find the single backend block of the configuration.

        Returns:
            BackendConfig

        Raises:
            ConfigurationError: If there is no backend block or more than one
        """
        backends = []
        for tf_file, parsed in self._load():
            for terraform_block in parsed.get('terraform', []):
                for backend_block in _as_list(terraform_block.get('backend')):
                    for label, body in backend_block.items():
                        if label in _META_KEYS:
                            continue
                        backends.append(BackendConfig(
                            type=_unquote(label),
                            raw_config=_normalize(_first_block(body)),
                            source=tf_file,
                        ))

        if not backends:
            raise ConfigurationError(
                f"No backend declared in Terraform configuration: '{self.config_path}'."
            )
        if len(backends) > 1:
            raise ConfigurationError(
                "Terraform configuration declares more than one backend block: "
                f"'{self.config_path}'."
            )

        logger.info(f"Found '{backends[0].type}' backend in {backends[0].source}")
        return backends[0]

    def parse_variables(self) -> List[TerraformVariable]:
        """
        Collect variable blocks from all configuration files.

        Returns:
            List of TerraformVariable objects, in file order
        """
        variables = []
        for _, parsed in self._load():
            for var_block in parsed.get('variable', []):
                for var_name, var_config in var_block.items():
                    if var_name in _META_KEYS:
                        continue
                    variables.append(self._create_variable(_unquote(var_name), var_config))
        logger.info(f"Parsed {len(variables)} variables")
        return variables

    def _create_variable(self, name: str, config: dict) -> TerraformVariable:
        config = _normalize(_first_block(config))
        return TerraformVariable(
            name=name,
            type=self._extract_type(config.get('type', '')),
            default=config.get('default'),
            description=config.get('description', '') or '',
        )

    @staticmethod
    def _extract_type(type_value: Any) -> str:
        """
        Normalize a declared type.

        python-hcl2 renders type expressions as "${string}" or "${list(string)}".
        """
        if isinstance(type_value, list) and len(type_value) > 0:
            type_value = type_value[0]
        type_str = str(type_value).strip()
        if type_str.startswith("${") and type_str.endswith("}"):
            type_str = type_str[2:-1].strip()
        return type_str


def process_variables(variables: List[TerraformVariable]) -> Dict[str, Any]:
    """
    Build the variables response: {name: {"default": value}}.

    Raises:
        ConfigurationError: If a variable declares an unsupported type
    """
    response = {}
    for variable in variables:
        if variable.type and variable.base_type not in SUPPORTED_VARIABLE_TYPES:
            raise ConfigurationError(
                f"Unsupported Terraform variable type '{variable.type}' "
                f"for variable '{variable.name}'."
            )
        response[variable.name] = {"default": variable.default}
    return response


def _as_list(value: Any) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _first_block(body: Any) -> Any:
    # older python-hcl2 releases wrap block bodies in a single-element list
    if isinstance(body, list) and len(body) == 1 and isinstance(body[0], dict):
        return body[0]
    return body


def _unquote(value: Any) -> Any:
    if isinstance(value, str) and len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def _normalize(value: Any) -> Any:
    """Strip parser metadata and surrounding quotes from a parsed HCL value."""
    if isinstance(value, dict):
        return {
            _unquote(k): _normalize(v) for k, v in value.items() if k not in _META_KEYS
        }
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    return _unquote(value)
