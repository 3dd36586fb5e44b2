"""Command policy: which operation a command performs and which are reversible."""

from __future__ import annotations

import re
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, model_validator

from bootmedic.core.errors import PolicyError
from bootmedic.models.decision import OperationCategory

# Never allowed below REPAIR_FORCE, whatever the policy file says.
FORCE_ONLY_OPERATIONS: frozenset[OperationCategory] = frozenset(
    {
        OperationCategory.PARTITION_WIPE,
        OperationCategory.CROSS_DISK_BOOT_WRITE,
        OperationCategory.FIRMWARE_ENTRY_EDIT,
        OperationCategory.BCD_DELETE,
    }
)


class CommandRule(BaseModel):
    """Maps a command-text pattern to the operation it performs."""

    model_config = ConfigDict(frozen=True)

    id: str
    operation: OperationCategory
    pattern: str
    description: str | None = None


class CommandPolicy(BaseModel):
    """Reversibility boundary and classification rules."""

    model_config = ConfigDict(frozen=True)

    version: str = "1.0"
    name: str
    safe_reversible: frozenset[OperationCategory] = Field(default_factory=frozenset)
    safe_irreversible: frozenset[OperationCategory] = Field(default_factory=frozenset)
    rules: tuple[CommandRule, ...] = ()

    _compiled: tuple[tuple[CommandRule, re.Pattern[str]], ...] = PrivateAttr(default=())

    @model_validator(mode="after")
    def _check_boundaries(self) -> CommandPolicy:
        forced = self.safe_reversible & FORCE_ONLY_OPERATIONS
        if forced:
            names = ", ".join(sorted(op.value for op in forced))
            raise ValueError(f"force-only operations cannot be reversible: {names}")
        overlap = self.safe_reversible & self.safe_irreversible
        if overlap:
            names = ", ".join(sorted(op.value for op in overlap))
            raise ValueError(f"operations listed as both reversible and irreversible: {names}")
        return self

    def model_post_init(self, __context: Any) -> None:
        compiled = []
        for rule in self.rules:
            try:
                compiled.append((rule, re.compile(rule.pattern, re.IGNORECASE)))
            except re.error as exc:
                raise PolicyError(f"rule {rule.id}: invalid pattern: {exc}") from exc
        self._compiled = tuple(compiled)

    def classify(self, command_text: str) -> tuple[OperationCategory | None, str | None]:
        """Operation and rule id of the first matching rule, or (None, None)."""
        for rule, pattern in self._compiled:
            if pattern.search(command_text):
                return rule.operation, rule.id
        return None, None

    def is_reversible(self, operation: OperationCategory) -> bool:
        return operation in self.safe_reversible

    @classmethod
    def from_yaml(cls, yaml_content: str) -> CommandPolicy:
        """Create a CommandPolicy from a YAML string."""
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as exc:
            raise PolicyError(f"Invalid policy YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise PolicyError("Policy must be a mapping")
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise PolicyError(f"Invalid policy: {exc}") from exc

    @classmethod
    def from_file(cls, file_path: str | Path) -> CommandPolicy:
        """Create a CommandPolicy from a YAML file."""
        try:
            content = Path(file_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise PolicyError(f"Cannot read policy {file_path}: {exc}") from exc
        return cls.from_yaml(content)


@lru_cache(maxsize=1)
def default_policy() -> CommandPolicy:
    """The packaged policy, loaded once."""
    text = resources.files("bootmedic.data").joinpath("command_policy.yaml").read_text(encoding="utf-8")
    return CommandPolicy.from_yaml(text)


def load_policy(path: str | Path | None = None) -> CommandPolicy:
    return CommandPolicy.from_file(path) if path else default_policy()
