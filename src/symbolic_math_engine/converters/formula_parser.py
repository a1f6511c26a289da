"""
Formula Parser - Convert infix math text to expression trees.
Handles tokenization, recursive descent parsing and parse statistics.
"""

import re
import time
import logging
from typing import List, Optional

from symbolic_math_engine.analyzers.helpers import count_nodes, tree_depth
from symbolic_math_engine.core.errors import ArityError, ExpressionParseError, SymbolicMathError
from symbolic_math_engine.models.expression import (
    ExpressionNode,
    Operator,
    binary,
    boolean,
    complex_number,
    nary,
    negate,
    number,
    power,
    unary,
    user_function,
    variable,
)
from symbolic_math_engine.models.operator_models import (
    DEFAULT_OPERATOR_REGISTRY,
    OperatorKind,
    OperatorRegistry,
)
from symbolic_math_engine.models.parser_models import (
    ParseResult,
    ParseStatistics,
    Token,
    TokenType,
)

logger = logging.getLogger(__name__)

_NUMBER = r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"


class FormulaLexer:
    """Tokenizer for math formulas."""

    # Token patterns (order matters!)
    TOKEN_PATTERNS = [
        # Numbers
        (_NUMBER + r"i(?![A-Za-z0-9_])", TokenType.IMAGINARY),
        (_NUMBER, TokenType.NUMBER),
        # Multi-character operators
        (r":=", TokenType.ASSIGN),
        (r"==", TokenType.EQUAL),
        (r"!=", TokenType.NOT_EQUAL),
        (r"<=", TokenType.LESS_EQUAL),
        (r">=", TokenType.GREATER_EQUAL),
        (r"&&", TokenType.AND),
        (r"\|\|", TokenType.OR),
        # Single character operators
        (r"\+", TokenType.PLUS),
        (r"-", TokenType.MINUS),
        (r"\*", TokenType.MULTIPLY),
        (r"/", TokenType.DIVIDE),
        (r"%", TokenType.MODULO),
        (r"\^", TokenType.POWER),
        (r"!", TokenType.FACTORIAL),
        (r"<", TokenType.LESS_THAN),
        (r">", TokenType.GREATER_THAN),
        # Punctuation
        (r"\(", TokenType.LEFT_PAREN),
        (r"\)", TokenType.RIGHT_PAREN),
        (r"\{", TokenType.LEFT_BRACE),
        (r"\}", TokenType.RIGHT_BRACE),
        (r",", TokenType.COMMA),
        # Keywords (case insensitive)
        (r"(?i)\bAND\b", TokenType.AND),
        (r"(?i)\bOR\b", TokenType.OR),
        (r"(?i)\bXOR\b", TokenType.XOR),
        (r"(?i)\bNOT\b", TokenType.NOT),
        (r"(?i)\bTRUE\b", TokenType.BOOLEAN),
        (r"(?i)\bFALSE\b", TokenType.BOOLEAN),
        # Identifiers (variable and function names)
        (r"[a-zA-Z_][a-zA-Z0-9_]*", TokenType.IDENTIFIER),
    ]

    def __init__(self):
        # Compile patterns for performance
        self.compiled_patterns = [(re.compile(pattern), token_type) for pattern, token_type in self.TOKEN_PATTERNS]

    def tokenize(self, formula: str) -> List[Token]:
        """Tokenize a formula string. Unknown characters become UNKNOWN tokens."""
        tokens = []
        position = 0

        while position < len(formula):
            if formula[position].isspace():
                position += 1
                continue

            for pattern, token_type in self.compiled_patterns:
                match = pattern.match(formula, position)
                if match:
                    tokens.append(Token(type=token_type, value=match.group(0), position=position))
                    position = match.end()
                    break
            else:
                tokens.append(Token(type=TokenType.UNKNOWN, value=formula[position], position=position))
                position += 1

        tokens.append(Token(type=TokenType.EOF, value="", position=position))
        return tokens


class FormulaParser:
    """Recursive descent parser for math formulas.

    Precedence, lowest first: ``:=``, ``or``/``xor``, ``and``, ``==``/``!=``,
    comparisons, ``+``/``-``, ``*``/``/``/``%``, unary ``-``/``+``/``not``,
    ``^`` (right associative), postfix ``!``.
    """

    BINARY_OPERATORS = {
        TokenType.OR: Operator.OR,
        TokenType.XOR: Operator.XOR,
        TokenType.AND: Operator.AND,
        TokenType.EQUAL: Operator.EQUAL,
        TokenType.NOT_EQUAL: Operator.NOT_EQUAL,
        TokenType.LESS_THAN: Operator.LESS_THAN,
        TokenType.LESS_EQUAL: Operator.LESS_OR_EQUAL,
        TokenType.GREATER_THAN: Operator.GREATER_THAN,
        TokenType.GREATER_EQUAL: Operator.GREATER_OR_EQUAL,
        TokenType.PLUS: Operator.ADD,
        TokenType.MINUS: Operator.SUB,
        TokenType.MULTIPLY: Operator.MUL,
        TokenType.DIVIDE: Operator.DIV,
        TokenType.MODULO: Operator.MOD,
    }

    def __init__(self, operator_registry: Optional[OperatorRegistry] = None):
        self.lexer = FormulaLexer()
        self.tokens: List[Token] = []
        self.current = 0
        self.operator_registry = operator_registry or DEFAULT_OPERATOR_REGISTRY

    def parse(self, formula: str) -> ExpressionNode:
        """Parse a formula or raise ExpressionParseError / ArityError."""
        self.tokens = self.lexer.tokenize(formula)
        self.current = 0

        for token in self.tokens:
            if token.type == TokenType.UNKNOWN:
                raise ExpressionParseError(f"Unexpected character '{token.value}'", token.position)

        if self.is_at_end():
            raise ExpressionParseError("Empty expression", 0)

        expression = self.parse_expression()
        if not self.is_at_end():
            token = self.peek()
            raise ExpressionParseError(f"Unexpected token '{token.value}'", token.position)
        return expression

    def parse_formula(self, formula: str) -> ParseResult:
        """Parse a formula and return the result with statistics. Never raises."""
        logger.debug(f"Parsing formula: {formula}")
        started = time.perf_counter()
        try:
            expression = self.parse(formula)
        except SymbolicMathError as e:
            logger.warning(f"Failed to parse formula '{formula}': {e}")
            return ParseResult(
                success=False,
                formula=formula,
                error_message=str(e),
                error_position=getattr(e, "position", None),
            )

        return ParseResult(
            success=True,
            formula=formula,
            expression=expression,
            statistics=ParseStatistics(
                tokens_count=len(self.tokens) - 1,  # Exclude EOF
                nodes_count=count_nodes(expression),
                depth=tree_depth(expression),
                parse_time_ms=(time.perf_counter() - started) * 1000,
            ),
        )

    def parse_expression(self) -> ExpressionNode:
        """Parse a complete expression."""
        return self.parse_assignment()

    def parse_assignment(self) -> ExpressionNode:
        """Parse := (right associative)."""
        left = self.parse_or_expression()
        if self.match(TokenType.ASSIGN):
            right = self.parse_assignment()
            return binary(Operator.DEFINE, left, right)
        return left

    def _parse_binary_level(self, operand_parser, *types: TokenType) -> ExpressionNode:
        """Left associative loop shared by the binary precedence levels."""
        left = operand_parser()
        while self.match(*types):
            operator = self.BINARY_OPERATORS[self.previous().type]
            right = operand_parser()
            left = binary(operator, left, right)
        return left

    def parse_or_expression(self) -> ExpressionNode:
        """Parse OR and XOR expressions."""
        return self._parse_binary_level(self.parse_and_expression, TokenType.OR, TokenType.XOR)

    def parse_and_expression(self) -> ExpressionNode:
        """Parse AND expressions."""
        return self._parse_binary_level(self.parse_equality, TokenType.AND)

    def parse_equality(self) -> ExpressionNode:
        """Parse equality expressions."""
        return self._parse_binary_level(self.parse_comparison, TokenType.EQUAL, TokenType.NOT_EQUAL)

    def parse_comparison(self) -> ExpressionNode:
        """Parse comparison expressions."""
        return self._parse_binary_level(
            self.parse_term,
            TokenType.GREATER_THAN,
            TokenType.GREATER_EQUAL,
            TokenType.LESS_THAN,
            TokenType.LESS_EQUAL,
        )

    def parse_term(self) -> ExpressionNode:
        """Parse addition and subtraction."""
        return self._parse_binary_level(self.parse_factor, TokenType.PLUS, TokenType.MINUS)

    def parse_factor(self) -> ExpressionNode:
        """Parse multiplication, division, and modulo."""
        return self._parse_binary_level(self.parse_unary, TokenType.MULTIPLY, TokenType.DIVIDE, TokenType.MODULO)

    def parse_unary(self) -> ExpressionNode:
        """Parse unary expressions."""
        if self.match(TokenType.MINUS):
            return negate(self.parse_unary())
        if self.match(TokenType.PLUS):
            return self.parse_unary()
        if self.match(TokenType.NOT):
            return unary(Operator.NOT, self.parse_unary())
        return self.parse_power()

    def parse_power(self) -> ExpressionNode:
        """Parse power expressions."""
        left = self.parse_postfix()

        if self.match(TokenType.POWER):
            right = self.parse_unary()  # Right associative
            left = power(left, right)

        return left

    def parse_postfix(self) -> ExpressionNode:
        """Parse factorials."""
        expression = self.parse_primary()
        while self.match(TokenType.FACTORIAL):
            expression = unary(Operator.FACT, expression)
        return expression

    def parse_primary(self) -> ExpressionNode:
        """Parse primary expressions."""
        # Parenthesized expression
        if self.match(TokenType.LEFT_PAREN):
            expr = self.parse_expression()
            self.consume(TokenType.RIGHT_PAREN, "Expected ')' after expression")
            return expr

        # Vector or matrix literal
        if self.match(TokenType.LEFT_BRACE):
            return self.parse_brace_literal()

        # Literals
        if self.match(TokenType.NUMBER):
            return number(float(self.previous().value))

        if self.match(TokenType.IMAGINARY):
            return complex_number(0.0, float(self.previous().value[:-1]))

        if self.match(TokenType.BOOLEAN):
            return boolean(self.previous().value.lower() == "true")

        # Function call or variable
        if self.match(TokenType.IDENTIFIER):
            name = self.previous().value
            if self.match(TokenType.LEFT_PAREN):
                return self.parse_function_call(name)
            return variable(name)

        token = self.peek()
        if token.type == TokenType.EOF:
            raise ExpressionParseError("Unexpected end of expression", token.position)
        raise ExpressionParseError(f"Unexpected token '{token.value}'", token.position)

    def parse_arguments(self, closing: TokenType) -> List[ExpressionNode]:
        """Parse a comma separated list up to and including the closing token."""
        arguments: List[ExpressionNode] = []
        if not self.check(closing):
            arguments.append(self.parse_expression())
            while self.match(TokenType.COMMA):
                arguments.append(self.parse_expression())
        self.consume(closing, "Expected ',' or closing bracket")
        return arguments

    def parse_brace_literal(self) -> ExpressionNode:
        """Parse {a, b} as a vector and {{a, b}, {c, d}} as a matrix."""
        elements = self.parse_arguments(TokenType.RIGHT_BRACE)
        if elements and all(element.is_operator(Operator.VECTOR) for element in elements):
            return nary(Operator.MATRIX, elements)
        return nary(Operator.VECTOR, elements)

    def parse_function_call(self, name: str) -> ExpressionNode:
        """Parse name(args) once the opening parenthesis is consumed."""
        arguments = self.parse_arguments(TokenType.RIGHT_PAREN)

        spec = self.operator_registry.get_by_name(name)
        if spec is None or spec.operator == Operator.USER_FUNCTION:
            return user_function(name, arguments)

        if spec.kind == OperatorKind.UNARY:
            if len(arguments) != 1:
                raise ArityError(f"'{spec.name}' takes 1 argument, got {len(arguments)}")
            return unary(spec.operator, arguments[0])
        if spec.kind == OperatorKind.BINARY:
            if len(arguments) != 2:
                raise ArityError(f"'{spec.name}' takes 2 arguments, got {len(arguments)}")
            return binary(spec.operator, arguments[0], arguments[1])
        return nary(spec.operator, arguments)

    # Token helpers

    def match(self, *types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        for token_type in types:
            if self.check(token_type):
                self.advance()
                return True
        return False

    def check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        if self.is_at_end():
            return False
        return self.peek().type == token_type

    def advance(self) -> Token:
        """Consume and return current token."""
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def is_at_end(self) -> bool:
        """Check if we've reached the end."""
        return self.peek().type == TokenType.EOF

    def peek(self) -> Token:
        """Return current token without consuming it."""
        return self.tokens[self.current]

    def previous(self) -> Token:
        """Return previous token."""
        return self.tokens[self.current - 1]

    def consume(self, token_type: TokenType, message: str) -> Token:
        """Consume token of expected type or raise."""
        if self.check(token_type):
            return self.advance()

        current_token = self.peek()
        got = current_token.value or "end of expression"
        raise ExpressionParseError(f"{message}. Got {got}", current_token.position)


__all__ = ["FormulaLexer", "FormulaParser"]
