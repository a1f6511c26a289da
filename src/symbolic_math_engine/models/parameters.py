"""
Variable binding context consumed by evaluation and differentiation.
"""

import math
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, Field, ConfigDict

from symbolic_math_engine.core.errors import UndefinedVariableError
from symbolic_math_engine.models.expression import ExpressionNode


class AngleMeasurement(str, Enum):
    """Unit used by trigonometric functions."""

    RADIAN = "radian"
    DEGREE = "degree"
    GRADIAN = "gradian"


# Resolved only when the name has no explicit binding
BUILTIN_CONSTANTS: Dict[str, Any] = {
    "pi": math.pi,
    "e": math.e,
    "i": 1j,
}


class FunctionDefinition(BaseModel):
    """Body of a user function, f(x, y) := body."""

    name: str
    parameters: List[str] = Field(default_factory=list)  # Formal parameter names
    body: ExpressionNode

    @property
    def arity(self) -> int:
        return len(self.parameters)


class ExpressionParameters(BaseModel):
    """Variables, user functions and angle mode for one evaluation."""

    variables: Dict[str, Any] = Field(default_factory=dict)
    functions: Dict[str, FunctionDefinition] = Field(default_factory=dict)
    angle_measurement: AngleMeasurement = AngleMeasurement.RADIAN

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        json_schema_extra={
            "examples": [
                {
                    "variables": {"x": 2.0, "y": 0.5},
                    "functions": {},
                    "angle_measurement": "degree",
                }
            ]
        },
    )

    def lookup(self, name: str) -> Any:
        """Resolve a variable, falling back to built-in constants."""
        if name in self.variables:
            return self.variables[name]
        if name in BUILTIN_CONSTANTS:
            return BUILTIN_CONSTANTS[name]
        raise UndefinedVariableError(name)

    def is_defined(self, name: str) -> bool:
        return name in self.variables or name in BUILTIN_CONSTANTS

    def define_variable(self, name: str, value: Any) -> None:
        self.variables[name] = value

    def define_function(self, name: str, parameters: List[str], body: ExpressionNode) -> None:
        self.functions[name] = FunctionDefinition(name=name, parameters=parameters, body=body)

    def get_function(self, name: str) -> FunctionDefinition:
        """Get a user function or raise UndefinedVariableError."""
        function = self.functions.get(name)
        if function is None:
            raise UndefinedVariableError(name, f"Function '{name}' is not defined")
        return function

    def copy_with(self, **bindings: Any) -> "ExpressionParameters":
        """Copy with extra variable bindings; the original is untouched."""
        variables = dict(self.variables)
        variables.update(bindings)
        return ExpressionParameters(
            variables=variables,
            functions=dict(self.functions),
            angle_measurement=self.angle_measurement,
        )


__all__ = [
    "AngleMeasurement",
    "BUILTIN_CONSTANTS",
    "FunctionDefinition",
    "ExpressionParameters",
]
