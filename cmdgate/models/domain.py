"""Command definitions - the records held by the registry."""
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_CONFIRMATION_PROMPT = "Confirm execution of this dangerous operation?"
DEFAULT_CONSEQUENCES = "May cause system damage or data loss"


class CommandDefinition(BaseModel):
    """
    A whitelisted shell command.

    Invariants enforced here:
    - name is the unique, immutable key (uniqueness is checked by the registry)
    - a safe command (dangerous == False) has an empty confirmation prompt
      and empty consequences; they are cleared on every validation
    """
    # Keys this model does not know are kept and written back on save
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(..., min_length=1)
    description: str = ""
    example: str = ""
    dangerous: bool = False
    enabled: bool = True
    confirmation_prompt: str = Field("", alias="confirmationPrompt")
    consequences: str = ""

    @model_validator(mode="after")
    def clear_confirmation_when_safe(self) -> "CommandDefinition":
        if not self.dangerous:
            self.confirmation_prompt = ""
            self.consequences = ""
        return self

    def to_record(self) -> Dict[str, Any]:
        """Serialize with the on-disk camelCase keys."""
        return self.model_dump(by_alias=True)


# Seeded into a fresh registry file on first start
DEFAULT_COMMANDS = [
    CommandDefinition(
        name="dir",
        description="List directory contents",
        example="dir /w",
    ),
    CommandDefinition(
        name="ping",
        description="Test network connection",
        example="ping example.com",
    ),
    CommandDefinition(
        name="format",
        description="Format disk drive",
        example="format C:",
        dangerous=True,
        enabled=False,
        confirmation_prompt="This will PERMANENTLY erase all data. Confirm?",
        consequences="Permanent data loss",
    ),
]
