"""
Command line entry point.

Parses an expression and optionally simplifies, differentiates and
evaluates it, in that order.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import numpy as np

from symbolic_math_engine.analyzers.formatter import format_number
from symbolic_math_engine.core.config import load_config
from symbolic_math_engine.core.engine import SymbolicEngine
from symbolic_math_engine.core.errors import InvalidConfigurationError, SymbolicMathError
from symbolic_math_engine.models.derivation_models import DerivationStepReport
from symbolic_math_engine.models.parameters import AngleMeasurement, ExpressionParameters

logger = logging.getLogger(__name__)


def format_value(value: Any) -> Any:
    """Make an evaluation result printable and JSON serializable."""
    if value is None:
        return None
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, complex):
        return str(value)
    return float(value)


def render_steps(report: DerivationStepReport, indent: int = 0) -> List[str]:
    """Render a step report as an indented outline."""
    pad = "  " * indent
    lines = [f"{pad}{report.title}: {report.expression}"]
    if report.intermediate:
        lines.append(f"{pad}  = {report.intermediate}")
    if report.derivative:
        lines.append(f"{pad}  = {report.derivative}")
    if report.simplified_derivative and report.simplified_derivative != report.derivative:
        lines.append(f"{pad}  = {report.simplified_derivative}")
    for substep in report.substeps:
        lines.extend(render_steps(substep, indent + 1))
    return lines


def parse_bindings(engine: SymbolicEngine, bindings: List[str]) -> Dict[str, Any]:
    """Turn NAME=VALUE pairs into variable values. Values may be expressions."""
    values: Dict[str, Any] = {}
    for binding in bindings:
        name, sep, text = binding.partition("=")
        if not sep or not name.strip():
            raise InvalidConfigurationError(f"Invalid --var '{binding}', expected NAME=VALUE")
        values[name.strip()] = engine.evaluate(text, **values)
    return values


def run(args: argparse.Namespace) -> Dict[str, Any]:
    """Execute the requested pipeline and collect the outputs."""
    config = load_config(args.config)
    if not args.verbose:
        logging.getLogger().setLevel(config.log_level)
    if args.angle:
        config = config.model_copy(update={"angle_measurement": AngleMeasurement(args.angle)})
    engine = SymbolicEngine(config)

    expression = engine.parse(args.expression)
    output: Dict[str, Any] = {"expression": engine.format(expression)}

    if args.simplify:
        expression = engine.simplify(expression)
        output["simplified"] = engine.format(expression)

    if args.diff:
        parameters = ExpressionParameters(angle_measurement=config.angle_measurement)
        if args.order == 1 and args.at is None:
            result = engine.differentiate(expression, args.diff, parameters)
            expression = result.derivative
            if args.steps and result.steps:
                output["steps"] = result.steps.model_dump(mode="json")
        else:
            point = engine.evaluate(args.at) if args.at is not None else None
            expression = engine.nth_derivative(expression, args.order, args.diff, point, parameters)
        output["derivative"] = engine.format(expression)

    if args.eval:
        bindings = parse_bindings(engine, args.var)
        output["value"] = format_value(engine.evaluate(expression, **bindings))

    return output


def print_output(output: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(output, indent=2))
        return

    print(f"Expression: {output['expression']}")
    if "simplified" in output:
        print(f"Simplified: {output['simplified']}")
    if "derivative" in output:
        print(f"Derivative: {output['derivative']}")
    if "steps" in output:
        print("Steps:")
        for line in render_steps(DerivationStepReport(**output["steps"]), indent=1):
            print(line)
    if "value" in output:
        value = output["value"]
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, float):
            value = format_number(value)
        print(f"Value: {value}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the symbolic-math CLI command."""
    parser = argparse.ArgumentParser(
        description="Parse, simplify, differentiate and evaluate math expressions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Simplify
  symbolic-math "2*x + 3*x" --simplify

  # Derivative with the derivation steps
  symbolic-math "sin(x)^2" --diff x --steps

  # Second derivative evaluated at a point
  symbolic-math "x^3" --diff x --order 2 --at 2

  # Evaluate with bindings in degrees
  symbolic-math "sin(a) + b" --eval --var a=30 --var b=1 --angle degree
        """,
    )

    parser.add_argument("expression", type=str, help="Expression to process")
    parser.add_argument("--simplify", action="store_true", help="Simplify the expression")
    parser.add_argument("--diff", type=str, metavar="VAR", help="Differentiate with respect to VAR")
    parser.add_argument("--order", type=int, default=1, metavar="N", help="Derivative order (default: 1)")
    parser.add_argument("--at", type=str, metavar="VALUE", help="Evaluate the derivative at VAR=VALUE")
    parser.add_argument("--steps", action="store_true", help="Show the derivation steps")
    parser.add_argument("--eval", action="store_true", help="Evaluate the (transformed) expression")
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Variable binding for --eval (repeatable)",
    )
    parser.add_argument(
        "--angle",
        choices=[measurement.value for measurement in AngleMeasurement],
        help="Angle unit for trigonometric functions",
    )
    parser.add_argument("--config", type=str, metavar="PATH", help="YAML settings file")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    if args.order < 0:
        parser.error("--order must be non-negative")
    if (args.at is not None or args.steps or args.order != 1) and not args.diff:
        parser.error("--order, --at and --steps require --diff")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        output = run(args)
    except SymbolicMathError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_output(output, args.json)
    return 0


if __name__ == "__main__":
    sys.exit(main())
