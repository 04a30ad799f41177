"""Template parsing - lexer, tag-mode state machine and instruction IR."""

from pyejs.parser.assembler import Mode, SourceAssembler, assemble
from pyejs.parser.instructions import (
    EmitEscaped,
    EmitLiteral,
    EmitRaw,
    Execute,
    Instruction,
    InstructionSequence,
    SetLine,
)
from pyejs.parser.lexer import DelimiterSet, TemplateLexer, Token, TokenKind, preprocess

__all__ = [
    "Mode",
    "SourceAssembler",
    "assemble",
    "EmitEscaped",
    "EmitLiteral",
    "EmitRaw",
    "Execute",
    "Instruction",
    "InstructionSequence",
    "SetLine",
    "DelimiterSet",
    "TemplateLexer",
    "Token",
    "TokenKind",
    "preprocess",
]
