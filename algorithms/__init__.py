from .math_tools import MathTools
from .number_parser import NumberParser

__all__ = ["MathTools", "NumberParser"]
