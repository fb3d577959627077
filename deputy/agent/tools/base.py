"""Base class for executable tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from deputy.core.errors import InvalidArgumentsError
from deputy.core.io import IO


class Tool(ABC):
    """
    Capability interface every tool implements.

    A tool advertises a name, a model-facing description and a JSON Schema
    for its arguments. Before a call is executed the session asks the tool
    for a permission fingerprint and a human-readable preview.
    """

    _TYPE_MAP = {
        "string": str,
        "integer": int,
        "number": (int, float),
        "boolean": bool,
        "array": list,
        "object": dict,
    }

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    @property
    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        pass

    @abstractmethod
    def permission_id(self, args: Any) -> str:
        """
        Fingerprint grouping similar invocations for standing approval.

        Raises:
            InvalidArgumentsError: If the arguments are malformed.
        """
        pass

    @abstractmethod
    def ask_permission(self, args: Any, io: IO) -> None:
        """
        Show what the call would do, without doing it.

        Must not raise on malformed arguments; render a placeholder instead.
        """
        pass

    @abstractmethod
    async def call(self, args: Any, io: IO) -> str:
        """
        Execute the tool.

        Raises:
            InvalidArgumentsError: If the arguments are malformed.
            ExecutionFailedError: If the action itself fails.
        """
        pass

    def validate_params(self, params: Any) -> list[str]:
        schema = self.input_schema or {}
        if schema.get("type", "object") != "object":
            raise ValueError(f"Schema must be object type, got {schema.get('type')!r}")
        return self._validate(params, {**schema, "type": "object"}, "")

    def check_params(self, params: Any) -> dict[str, Any]:
        """Validate params against the input schema, raising on the first problem set."""
        errors = self.validate_params(params)
        if errors:
            raise InvalidArgumentsError(f"{self.name}: " + "; ".join(errors))
        return params

    def _validate(self, value: Any, schema: dict[str, Any], path: str) -> list[str]:
        expected_type = schema.get("type")
        label = path or "parameter"
        if expected_type in self._TYPE_MAP and not isinstance(value, self._TYPE_MAP[expected_type]):
            return [f"{label} should be {expected_type}"]

        errors: list[str] = []
        if "enum" in schema and value not in schema["enum"]:
            errors.append(f"{label} must be one of {schema['enum']}")
        if expected_type in ("integer", "number"):
            if "minimum" in schema and value < schema["minimum"]:
                errors.append(f"{label} must be >= {schema['minimum']}")
            if "maximum" in schema and value > schema["maximum"]:
                errors.append(f"{label} must be <= {schema['maximum']}")
        if expected_type == "string":
            if "minLength" in schema and len(value) < schema["minLength"]:
                errors.append(f"{label} must be at least {schema['minLength']} chars")
            if "maxLength" in schema and len(value) > schema["maxLength"]:
                errors.append(f"{label} must be at most {schema['maxLength']} chars")
        if expected_type == "object":
            properties = schema.get("properties", {})
            for key in schema.get("required", []):
                if key not in value:
                    errors.append(f"missing required {path + '.' + key if path else key}")
            for key, item in value.items():
                if key in properties:
                    next_path = f"{path}.{key}" if path else key
                    errors.extend(self._validate(item, properties[key], next_path))
        if expected_type == "array" and "items" in schema:
            for idx, item in enumerate(value):
                next_path = f"{path}[{idx}]" if path else f"[{idx}]"
                errors.extend(self._validate(item, schema["items"], next_path))
        return errors
