"""Workflow planning data models."""

from dataclasses import asdict, dataclass, field

from ..errors import WorkflowValidationError


@dataclass(frozen=True)
class WorkflowStep:
    """A single step of a workflow plan."""

    step_id: str
    agent_type: str
    action: str
    inputs: list[str] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: object) -> "WorkflowStep":
        """Validate and build a step from provider output."""
        if not isinstance(data, dict):
            raise WorkflowValidationError(f"Workflow step must be an object, got {data!r}")

        for name in ("step_id", "agent_type", "action"):
            value = data.get(name)
            if not isinstance(value, (str, int)) or value == "":
                raise WorkflowValidationError(f"Workflow step missing '{name}'")

        inputs = data.get("inputs", [])
        outputs = data.get("outputs", [])
        for name, values in (("inputs", inputs), ("outputs", outputs)):
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise WorkflowValidationError(f"Workflow step '{name}' must be a list of strings")

        return cls(
            step_id=str(data["step_id"]),
            agent_type=str(data["agent_type"]),
            action=str(data["action"]),
            inputs=list(inputs),
            outputs=list(outputs),
        )

    def to_dict(self) -> dict:
        return asdict(self)
