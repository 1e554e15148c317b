# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Structured JSON responses for command-line output.

Every response follows the same top-level structure:

  Success:
    {
      "status": "ok",
      "command": "<command>",
      "data": { ... }
    }

  Error:
    {
      "status": "error",
      "command": "<command>",
      "error_code": "<ERROR_CODE>",
      "message": "Human-readable error description"
    }
"""

import json
from typing import Any


def success_response(command: str, data: dict[str, Any]) -> str:
    """Build a structured success response.

    Args:
        command: The command producing this response.
        data: The command-specific payload.

    Returns:
        JSON string with consistent top-level structure.
    """
    return json.dumps({
        "status": "ok",
        "command": command,
        "data": data,
    })


def error_response(command: str, error_code: str, message: str) -> str:
    """Build a structured error response.

    Args:
        command: The command producing this response.
        error_code: Machine-readable error code (e.g., GAME_ALREADY_FINISHED).
        message: Human-readable error description.

    Returns:
        JSON string with consistent error structure.
    """
    return json.dumps({
        "status": "error",
        "command": command,
        "error_code": error_code,
        "message": message,
    })
