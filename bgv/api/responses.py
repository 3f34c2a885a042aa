"""
Response envelope shared by every endpoint: {"success": true, "message": ..., "data"?: ...}
"""
from typing import Any, Dict


def success_response(message: str, data: Any = None) -> Dict[str, Any]:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body
