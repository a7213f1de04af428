"""
Core retrieval logic for tsam.

This module provides:
- Argument file loading and retrieve expression parsing
- Terraform configuration parsing (backend block, variables)
- State snapshot decoding and value retrieval
- Folding of retrieved values into the nested response
"""

from .arguments import ModuleArgs, Retrieve, load_arguments
from .errors import (
    ArgumentError,
    BackendError,
    ConfigurationError,
    LookupFormatError,
    ResponseShapeError,
    RetrievalError,
    SerializationError,
    TsamError,
)
from .lookup import LookupExpression, LookupKind, parse_retrieve
from .response import ModuleResponse, emit_response
from .retrieval import RetrievalEngine, process_state
from .shaper import fold_response_items, reduce_to_map, serialize_response
from .state import ResourceState, StateModule, StateSnapshot, decode_state
from .terraform_parser import BackendConfig, TerraformParser, TerraformVariable, process_variables

__all__ = [
    "ModuleArgs",
    "Retrieve",
    "load_arguments",
    "ArgumentError",
    "BackendError",
    "ConfigurationError",
    "LookupFormatError",
    "ResponseShapeError",
    "RetrievalError",
    "SerializationError",
    "TsamError",
    "LookupExpression",
    "LookupKind",
    "parse_retrieve",
    "ModuleResponse",
    "emit_response",
    "RetrievalEngine",
    "process_state",
    "fold_response_items",
    "reduce_to_map",
    "serialize_response",
    "ResourceState",
    "StateModule",
    "StateSnapshot",
    "decode_state",
    "BackendConfig",
    "TerraformParser",
    "TerraformVariable",
    "process_variables",
]
