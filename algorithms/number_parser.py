import math
import re


class NumberParser:
    """Lenient parsing of free-text numeric fields such as reps and weight."""

    _LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+(?:[.,]\d+)?|[.,]\d+))")

    @classmethod
    def parse_number(cls, text: str | float | int | None) -> float:
        """Return the leading number in ``text`` or ``0.0`` when there is none.

        Never raises: ``None``, empty strings and non-numeric text all parse
        to zero so that a single malformed log cannot break an aggregate.
        """
        if text is None or isinstance(text, bool):
            return 0.0
        if isinstance(text, (int, float)):
            value = float(text)
            return value if math.isfinite(value) else 0.0
        match = cls._LEADING_NUMBER.match(str(text))
        if match is None:
            return 0.0
        value = float(match.group(1).replace(",", "."))
        return value if math.isfinite(value) else 0.0

    @classmethod
    def parse_int(cls, text: str | float | int | None) -> int:
        """Return the leading number in ``text`` truncated to an integer."""
        return int(cls.parse_number(text))
