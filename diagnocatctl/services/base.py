"""Base service with common methods for all Diagnocat services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, TypeVar

import httpx
from pydantic import ValidationError as SchemaError

from diagnocatctl.core.exceptions import DecodeError
from diagnocatctl.models.base import BaseModel

if TYPE_CHECKING:
    from diagnocatctl.core.client import DiagnocatClient

M = TypeVar("M", bound=BaseModel)


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, client: "DiagnocatClient") -> None:
        """Initialize service with a Diagnocat client.

        Args:
            client: DiagnocatClient instance
        """
        self.client = client

    def _decode(self, resp: httpx.Response, operation: str) -> Any:
        """Parse a JSON response body.

        Raises:
            DecodeError: If the body is not valid JSON.
        """
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(operation, str(e)) from e

    def _decode_model(self, resp: httpx.Response, operation: str, model: type[M]) -> M:
        """Parse a JSON object response into a model.

        Raises:
            DecodeError: If the body is not valid JSON or does not match the model.
        """
        data = self._decode(resp, operation)
        if not isinstance(data, dict):
            raise DecodeError(operation, f"expected a JSON object, got {type(data).__name__}")
        try:
            return model.model_validate(data)
        except SchemaError as e:
            raise DecodeError(operation, str(e)) from e

    def _get(self, path: str, *, operation: str, model: Optional[type[M]] = None, **kwargs: Any) -> Any:
        """Execute GET request and return decoded JSON (or a model)."""
        resp = self.client.get(path, operation=operation, **kwargs)
        if model is not None:
            return self._decode_model(resp, operation, model)
        return self._decode(resp, operation)

    def _post(self, path: str, *, operation: str, model: Optional[type[M]] = None, **kwargs: Any) -> Any:
        """Execute POST request and return decoded JSON (or a model)."""
        resp = self.client.post(path, operation=operation, **kwargs)
        if model is not None:
            return self._decode_model(resp, operation, model)
        return self._decode(resp, operation)

    def _build_path(self, *parts: str) -> str:
        """Build API path from parts."""
        return "/" + "/".join(p.strip("/") for p in parts if p)
