"""
tsam entry point.

Invoked by an automation driver as `tsam <argument-file>`. Writes exactly
one JSON envelope line to stdout and exits 0 on success, 1 on failure.
"""

import logging
import os
import sys
from typing import Optional, Sequence

from . import __version__
from .backends import configure_backend, fetch_snapshot, get_backend
from .config import Settings
from .core import (
    ModuleResponse,
    TerraformParser,
    TsamError,
    emit_response,
    load_arguments,
    process_state,
    process_variables,
    serialize_response,
)
from .utils import setup_logging

logger = logging.getLogger(__name__)


def run(argv: Sequence[str], settings: Optional[Settings] = None) -> ModuleResponse:
    """
    Execute one retrieval.

    Args:
        argv: Full command line, program name first
        settings: Tool settings; loaded from the user config when omitted

    Returns:
        Success envelope carrying the serialized response data

    Raises:
        TsamError: On the first failure of any stage
    """
    settings = settings or Settings()
    module_args = load_arguments(argv)
    parser = TerraformParser(module_args.terraform_config_path)

    if module_args.handles_variables:
        data = process_variables(parser.parse_variables())
    else:
        backend_config = parser.load_backend()
        backend = get_backend(
            backend_config.type,
            settings=settings,
            working_dir=os.path.dirname(os.path.abspath(backend_config.source)),
        )
        configure_backend(backend, backend_config.raw_config)
        snapshot = fetch_snapshot(backend, module_args.state)
        data = process_state(snapshot, module_args)

    return ModuleResponse.success(serialize_response(data))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for tsam."""
    argv = sys.argv if argv is None else argv

    try:
        settings = Settings()
        setup_logging(
            log_level=settings.get("log_level", "WARNING"),
            log_file=settings.get("log_file", False),
        )
        logger.debug(f"tsam v{__version__} starting")
        response = run(argv, settings)
    except TsamError as e:
        logger.debug(f"Run failed: {e}")
        response = ModuleResponse.failure(str(e))
    except Exception as e:
        # stdout must still carry exactly one envelope
        logger.debug("Unexpected failure", exc_info=True)
        response = ModuleResponse.failure(f"Unexpected error: {e}")

    return emit_response(response)


if __name__ == "__main__":
    sys.exit(main())
