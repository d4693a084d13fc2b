"""
Capability registry.

A capability (an MCP "tool") is a named async handler with a declared
input model.  The registry is filled once while the application is
built and frozen before the first request is accepted; from then on
it is shared by reference between all request contexts and only ever
read, so concurrent lookups need no locking.

Usage::

    registry = CapabilityRegistry()

    @registry.tool("echo", input_model=EchoInput)
    async def echo(params: EchoInput) -> str:
        \"\"\"Return the message unchanged.\"\"\"
        return params.message

    registry.freeze()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from planets_mcp.app.core.errors import (
    DuplicateCapabilityError,
    InvalidParamsError,
    RegistryFrozenError,
    UnknownCapabilityError,
)

CapabilityHandler = Callable[[BaseModel], Awaitable[Any]]


class NoInput(BaseModel):
    """Input model for capabilities that take no arguments."""

    model_config = ConfigDict(extra="ignore")


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "params"
        problems.append(f"{location}: {error.get('msg')}")
    return "Invalid params: " + "; ".join(problems)


@dataclass(frozen=True)
class Capability:
    """A registered tool."""

    name: str
    description: str
    input_model: Type[BaseModel]
    handler: CapabilityHandler

    def validate(self, params: Optional[Dict[str, Any]]) -> BaseModel:
        """Type-check ``params`` and fill defaults.

        Unknown fields are dropped by the input model, so newer clients
        can send extra arguments.  Any mismatch raises
        ``InvalidParamsError`` and the handler is never called.
        """
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidParamsError("Invalid params: expected an object")
        try:
            return self.input_model.model_validate(params)
        except ValidationError as exc:
            raise InvalidParamsError(_describe_validation_error(exc)) from exc

    def to_dict(self) -> Dict[str, Any]:
        """Tool descriptor in the shape ``tools/list`` returns."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_model.model_json_schema(by_alias=True),
        }


class CapabilityRegistry:
    """Mapping of capability name to ``Capability``."""

    def __init__(self) -> None:
        self._capabilities: Dict[str, Capability] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(
        self,
        name: str,
        handler: CapabilityHandler,
        description: Optional[str] = None,
        input_model: Type[BaseModel] = NoInput,
    ) -> Capability:
        """Add a capability.

        Raises ``DuplicateCapabilityError`` if ``name`` is taken and
        ``RegistryFrozenError`` once the registry has been frozen.
        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register {name!r}: registry is frozen")
        if name in self._capabilities:
            raise DuplicateCapabilityError(f"Capability {name!r} is already registered")
        capability = Capability(
            name=name,
            description=description or (handler.__doc__ or "").strip(),
            input_model=input_model,
            handler=handler,
        )
        self._capabilities[name] = capability
        return capability

    def tool(
        self,
        name: str,
        description: Optional[str] = None,
        input_model: Type[BaseModel] = NoInput,
    ) -> Callable[[CapabilityHandler], CapabilityHandler]:
        """Decorator form of ``register``."""

        def decorator(func: CapabilityHandler) -> CapabilityHandler:
            self.register(name, func, description=description, input_model=input_model)
            return func

        return decorator

    def freeze(self) -> "CapabilityRegistry":
        """Make the registry read-only.  Calling it again is a no-op."""
        self._frozen = True
        return self

    def resolve(self, name: Optional[str]) -> Capability:
        if not isinstance(name, str) or name not in self._capabilities:
            raise UnknownCapabilityError(f"Method not found: {name}" if name else None)
        return self._capabilities[name]

    def list(self) -> List[Capability]:
        return list(self._capabilities.values())

    def __contains__(self, name: object) -> bool:
        return name in self._capabilities

    def __iter__(self) -> Iterator[str]:
        return iter(self._capabilities)

    def __len__(self) -> int:
        return len(self._capabilities)

    def __repr__(self) -> str:
        return f"CapabilityRegistry(capabilities={len(self)}, frozen={self._frozen})"
