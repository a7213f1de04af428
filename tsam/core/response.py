"""
Response envelope written to stdout.

The automation driver reads exactly one JSON object per run:
    {"msg": "...", "changed": false}                  on success
    {"msg": "...", "changed": false, "failed": true}  on failure
"""

import json
import sys
from dataclasses import dataclass
from typing import Optional, TextIO

INVALID_RESPONSE_MSG = "Invalid response object"


@dataclass
class ModuleResponse:
    """
    Result of one tsam run.

    Attributes:
        msg: Serialized response data on success, reason on failure
        changed: Always False; tsam never mutates state
        failed: True when the run failed
    """
    msg: Optional[str] = None
    changed: bool = False
    failed: bool = False

    @classmethod
    def success(cls, msg: str) -> "ModuleResponse":
        return cls(msg=msg)

    @classmethod
    def failure(cls, msg: str) -> "ModuleResponse":
        return cls(msg=msg, failed=True)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def to_dict(self) -> dict:
        """
        Build the envelope mapping.

        `msg` is left out when empty and `failed` only appears on failure.
        """
        body = {}
        if self.msg:
            body["msg"] = self.msg
        body["changed"] = False
        if self.failed:
            body["failed"] = True
        return body

    def to_json(self) -> str:
        """
        Serialize the envelope to a single line of JSON.

        Falls back to a minimal envelope if the message cannot be encoded.
        """
        try:
            return json.dumps(self.to_dict(), separators=(",", ":"))
        except (TypeError, ValueError):
            return json.dumps({"msg": INVALID_RESPONSE_MSG})


def emit_response(response: ModuleResponse, stream: Optional[TextIO] = None) -> int:
    """
    Write the envelope as one line and return the process exit code.

    Args:
        response: Envelope to write
        stream: Output stream (defaults to sys.stdout)

    Returns:
        0 on success, 1 on failure
    """
    stream = stream if stream is not None else sys.stdout
    stream.write(response.to_json() + "\n")
    stream.flush()
    return response.exit_code
