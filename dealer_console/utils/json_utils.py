"""
JSON helpers that understand the types the console persists and logs.

Decimals become floats, dates become ISO strings, and pydantic models or
plain objects are serialized through their fields.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any


class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder with support for Decimal, datetime and pydantic models."""

    def default(self, o: Any) -> Any:
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if hasattr(o, "model_dump"):
            return o.model_dump()
        if hasattr(o, "__dict__"):
            return o.__dict__
        return super().default(o)


def dumps(obj: Any, **kwargs: Any) -> str:
    """Serialize ``obj`` to a JSON string."""
    kwargs.setdefault("cls", EnhancedJSONEncoder)
    return json.dumps(obj, **kwargs)

