"""
Base Schema Classes

This module provides base classes for request and event schemas with
common serialization and deserialization methods.
"""

import json
from dataclasses import asdict, fields
from typing import Any, Dict, TypeVar

T = TypeVar("T", bound="BaseEvent")


class BaseRequest:
    """
    Base class for requests a client sends to the server.

    Subclasses set EVENT_TYPE to the inbound event name the server expects.
    """

    EVENT_TYPE = ""

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a wire frame.

        Returns:
            Dictionary with 'type' and 'data' keys; requests without fields
            send an empty 'data' object.
        """
        if not self.EVENT_TYPE:
            raise NotImplementedError("Subclasses must define EVENT_TYPE")
        data = asdict(self) if fields(self) else {}
        return {"type": self.EVENT_TYPE, "data": data}

    def to_json(self) -> str:
        """JSON text of the wire frame."""
        return json.dumps(self.to_dict())


class BaseEvent:
    """
    Base class for events the server pushes to clients.

    Provides common deserialization from a frame dict or JSON text.
    """

    EVENT_TYPE = ""

    @classmethod
    def from_dict(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from a frame or a bare payload.

        Args:
            data: Either {"type": ..., "data": {...}} or the payload itself

        Returns:
            Instance of the event class.
        """
        payload = data.get("data", data) if "type" in data else data
        return cls._from_data(payload)

    @classmethod
    def from_json(cls: type[T], json_str: str) -> T:
        """Create instance from JSON text."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def _from_data(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from the payload dictionary.

        Should be overridden by subclasses with nested structures.
        """
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})
