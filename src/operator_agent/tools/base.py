from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ToolValidationError
from ..platforms.base import PlatformRegistry
from ..types import EntityDomain, OwnedEntity, SideEffect, ToolOutcome

if TYPE_CHECKING:
    from ..core.gateway import ConfirmationGateway


@dataclass
class ToolContext:
    """Per-call context handed to tool handlers.

    Attributes:
        user_id: The requesting user; every lookup and action is scoped to it
        gateway: Confirmation gateway that stages and executes write actions
    """
    user_id: str
    gateway: "ConfirmationGateway"


class BaseTool(ABC):
    """Abstract base class for all tools.

    Each tool declares a pydantic input model (its typed schema) and a side
    effect class. Read tools return their result directly from execute().
    """

    side_effect: SideEffect = SideEffect.READ
    input_model: type[BaseModel]

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Return the tool description."""
        pass

    @property
    def parameters(self) -> dict[str, Any]:
        """Return the JSON schema for tool parameters."""
        schema = self.input_model.model_json_schema()
        schema.pop("title", None)
        return schema

    def validate(self, arguments: dict[str, Any]) -> BaseModel:
        """Validate raw oracle arguments against the input model.

        Raises:
            ToolValidationError: If the arguments do not fit the schema.
        """
        try:
            return self.input_model.model_validate(arguments or {})
        except PydanticValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
                for err in e.errors()
            ]
            raise ToolValidationError(self.name, errors) from e

    @abstractmethod
    async def execute(self, params: BaseModel, context: ToolContext) -> ToolOutcome:
        """Execute the tool with validated parameters."""
        pass

    def to_schema(self) -> dict[str, Any]:
        """Return the tool schema for LLM function calling."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class WriteTool(BaseTool):
    """Base class for tools with an external side effect.

    execute() never performs the effect: it hands the request to the
    confirmation gateway, which stages a pending action or rejects it.
    The effect itself lives in apply(), which only the gateway calls once
    the action has been confirmed.

    Subclasses name the input field carrying the entity id in ID_FIELD; every
    input model also accepts a free-text `name`.
    """

    side_effect = SideEffect.WRITE
    ID_FIELD: str = "entity_id"

    def __init__(self, tool_name: str, domain: EntityDomain):
        self._name = tool_name
        self.domain = domain

    @property
    def name(self) -> str:
        return self._name

    def target(self, params: BaseModel) -> tuple[str | None, str | None]:
        """Return the (entity id, name) the caller asked for."""
        return getattr(params, self.ID_FIELD, None), getattr(params, "name", None)

    def bind(self, params: BaseModel, entity: OwnedEntity) -> dict[str, Any]:
        """Inject the resolved entity into the parameters to be stored."""
        bound = params.model_dump(exclude_none=True)
        bound[self.ID_FIELD] = entity.id
        bound["name"] = entity.name
        return bound

    def entity_tag(self, params: dict[str, Any]) -> str:
        name = params.get("name")
        tag = f' "{name}"' if name else ""
        return f"{self.domain.label} {params[self.ID_FIELD]}{tag}"

    @abstractmethod
    def describe(self, params: dict[str, Any]) -> str:
        """Describe the exact effect, naming the resolved entity."""
        pass

    @abstractmethod
    async def apply(self, user_id: str, params: dict[str, Any], platforms: PlatformRegistry) -> dict[str, Any]:
        """Perform the side effect. Called only for a confirmed action."""
        pass

    async def execute(self, params: BaseModel, context: ToolContext) -> ToolOutcome:
        return await context.gateway.request(context.user_id, self, params)
