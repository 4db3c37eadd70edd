import json
from datetime import datetime
from typing import Any, Optional, Type, TypeVar

T = TypeVar("T")


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "to_dict"):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(msg: Any, cls: Optional[Type[T]] = None) -> str:
    """
    Serialize a message to JSON string.

    Args:
        msg: The message to serialize
        cls: Optional custom serializer class

    Returns:
        JSON string representation of the message
    """
    if cls and hasattr(cls, "dumps"):
        return cls.dumps(msg)
    return json.dumps(msg, default=_default)


def loads(data: str, cls: Optional[Type[T]] = None) -> Any:
    """
    Deserialize a JSON string to Python object.

    Args:
        data: JSON string to deserialize
        cls: Optional custom deserializer class

    Returns:
        Python object from JSON string
    """
    deserializer = cls if cls and hasattr(cls, "loads") else json
    return deserializer.loads(data)
