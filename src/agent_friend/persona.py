"""Persona profile - the behavioural prefix prepended to every model request."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from agent_friend.errors import ConfigError


class PersonaStyle(BaseModel):
    tone: str
    formality: str
    domain_focus: list[str] = Field(default_factory=list)


class Persona(BaseModel):
    """A named character with a role, a speaking style and a list of rules."""

    name: str
    role: str
    style: PersonaStyle
    rules: list[str] = Field(default_factory=list)

    def build_system_prompt(self) -> str:
        rules = "\n".join(f"- {rule}" for rule in self.rules)
        return (
            f"You are {self.name}, {self.role}.\n\n"
            f"Style:\n"
            f"- Tone: {self.style.tone}\n"
            f"- Formality: {self.style.formality}\n"
            f"- Domain Focus: {', '.join(self.style.domain_focus)}\n\n"
            f"Rules:\n{rules}"
        )


DEFAULT_PERSONA = Persona(
    name="Agent Friend",
    role="a friendly assistant that can check the weather, tell the time and manage testnet Ethereum wallets",
    style=PersonaStyle(
        tone="warm and concise",
        formality="casual",
        domain_focus=["everyday questions", "Ethereum testnet wallets"],
    ),
    rules=[
        "Use the available tools instead of guessing live data.",
        "Never invent transaction hashes, balances or addresses.",
        "Remind the user that generated private keys are shown only once.",
    ],
)


def load_persona(path: Path | str) -> Persona:
    """Load a persona document from a JSON file.

    Raises
    ------
    ConfigError
        If the file is missing or does not describe a valid persona.  A
        missing persona is fatal at startup.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(
            f"Persona profile not found at {path}. "
            "Run 'agent-friend init' to create one or set PERSONA_PATH."
        )
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Persona.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid persona profile {path}: {exc}") from exc


def save_persona(persona: Persona, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(persona.model_dump(), indent=2), encoding="utf-8")
