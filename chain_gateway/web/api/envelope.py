from typing import Any, Dict


def success(data: Any) -> Dict[str, Any]:
    """Wraps a payload in the ``{success: true, data}`` response envelope."""
    return {"success": True, "data": data}
