from .errors import SymbolicMathError
from .config import EngineConfig, load_config

__all__ = ["SymbolicMathError", "EngineConfig", "load_config"]
