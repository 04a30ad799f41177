"""Instruction IR - the intermediate program produced from a template."""

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(frozen=True)
class EmitLiteral:
    """Append literal template text to the output."""

    text: str


@dataclass(frozen=True)
class EmitEscaped:
    """Evaluate an expression and append its escaped value."""

    code: str


@dataclass(frozen=True)
class EmitRaw:
    """Evaluate an expression and append its value unescaped."""

    code: str


@dataclass(frozen=True)
class Execute:
    """Run a statement fragment (may open or close blocks)."""

    code: str


@dataclass(frozen=True)
class SetLine:
    """Record the physical template line reached so far."""

    line: int


Instruction = Union[EmitLiteral, EmitEscaped, EmitRaw, Execute, SetLine]


@dataclass
class InstructionSequence:
    """Complete program for one template."""

    instructions: List[Instruction] = field(default_factory=list)
    template_text: str = ""  # text after whitespace preprocessing, for diagnostics
    filename: Optional[str] = None
    debug: bool = True  # line tracking enabled
    is_async: bool = False

    def __iter__(self):
        return iter(self.instructions)

    def __len__(self) -> int:
        return len(self.instructions)

    def append(self, instruction: Instruction) -> None:
        self.instructions.append(instruction)
