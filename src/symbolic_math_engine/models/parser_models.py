"""
Pydantic models for formula parsing and tokenization.
Separated from parser logic for better organization.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict

from symbolic_math_engine.models.expression import ExpressionNode


class TokenType(Enum):
    """Token types for lexical analysis."""

    # Literals
    NUMBER = "NUMBER"
    IMAGINARY = "IMAGINARY"  # 2i
    BOOLEAN = "BOOLEAN"

    # Identifiers
    IDENTIFIER = "IDENTIFIER"  # Variable and function names

    # Arithmetic
    PLUS = "PLUS"  # +
    MINUS = "MINUS"  # -
    MULTIPLY = "MULTIPLY"  # *
    DIVIDE = "DIVIDE"  # /
    MODULO = "MODULO"  # %
    POWER = "POWER"  # ^
    FACTORIAL = "FACTORIAL"  # !
    ASSIGN = "ASSIGN"  # :=

    # Comparison
    EQUAL = "EQUAL"  # ==
    NOT_EQUAL = "NOT_EQUAL"  # !=
    LESS_THAN = "LESS_THAN"  # <
    LESS_EQUAL = "LESS_EQUAL"  # <=
    GREATER_THAN = "GREATER_THAN"  # >
    GREATER_EQUAL = "GREATER_EQUAL"  # >=

    # Logical
    AND = "AND"  # and, &&
    OR = "OR"  # or, ||
    XOR = "XOR"
    NOT = "NOT"

    # Punctuation
    LEFT_PAREN = "LEFT_PAREN"  # (
    RIGHT_PAREN = "RIGHT_PAREN"  # )
    LEFT_BRACE = "LEFT_BRACE"  # {
    RIGHT_BRACE = "RIGHT_BRACE"  # }
    COMMA = "COMMA"  # ,

    # Special
    EOF = "EOF"
    UNKNOWN = "UNKNOWN"


class Token(BaseModel):
    """Token with type, value, and position information."""

    type: TokenType
    value: str
    position: int


class ParseStatistics(BaseModel):
    """Statistics about the parsing process."""

    tokens_count: int = 0
    nodes_count: int = 0
    depth: int = 0
    parse_time_ms: float = 0.0


class ParseResult(BaseModel):
    """Outcome of parse_formula; never raises on bad input."""

    success: bool
    formula: str
    expression: Optional[ExpressionNode] = None
    error_message: Optional[str] = None
    error_position: Optional[int] = None
    statistics: ParseStatistics = ParseStatistics()

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "success": True,
                    "formula": "2*x + 1",
                    "statistics": {"tokens_count": 5, "nodes_count": 5, "depth": 3},
                }
            ]
        }
    )


__all__ = ["TokenType", "Token", "ParseStatistics", "ParseResult"]
