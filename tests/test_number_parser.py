import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import NumberParser


class NumberParserTestCase(unittest.TestCase):
    def test_empty_and_garbage_parse_to_zero(self) -> None:
        self.assertEqual(NumberParser.parse_number(None), 0)
        self.assertEqual(NumberParser.parse_number(""), 0)
        self.assertEqual(NumberParser.parse_number("   "), 0)
        self.assertEqual(NumberParser.parse_number("abc"), 0)
        self.assertEqual(NumberParser.parse_number("kg 20"), 0)

    def test_leading_number(self) -> None:
        self.assertEqual(NumberParser.parse_number("10"), 10.0)
        self.assertEqual(NumberParser.parse_number(" 7 "), 7.0)
        self.assertEqual(NumberParser.parse_number("8-10"), 8.0)
        self.assertEqual(NumberParser.parse_number("12.5kg"), 12.5)
        self.assertEqual(NumberParser.parse_number("12,5"), 12.5)
        self.assertEqual(NumberParser.parse_number(".5"), 0.5)

    def test_numeric_input(self) -> None:
        self.assertEqual(NumberParser.parse_number(5), 5.0)
        self.assertEqual(NumberParser.parse_number(2.5), 2.5)
        self.assertEqual(NumberParser.parse_number(float("nan")), 0)
        self.assertEqual(NumberParser.parse_number(float("inf")), 0)
        self.assertEqual(NumberParser.parse_number(True), 0)

    def test_overlong_digit_run_parses_to_zero(self) -> None:
        self.assertEqual(NumberParser.parse_number("9" * 400), 0)
        self.assertEqual(NumberParser.parse_int("9" * 400 + " kg"), 0)

    def test_parse_int(self) -> None:
        self.assertEqual(NumberParser.parse_int("9.9"), 9)
        self.assertEqual(NumberParser.parse_int("x"), 0)


if __name__ == "__main__":
    unittest.main()
