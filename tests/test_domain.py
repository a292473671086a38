import unittest

from app.domain import (
    LookupOutcome,
    PostalCode,
    Temperature,
    normalize_postal_code,
    json_number,
    round_half_up,
    validate_postal_code,
)
from app.errors import FailureKind, InvalidZipcodeError, ZipcodeNotFoundError


class TestValidatePostalCode(unittest.TestCase):
    def test_accepts_eight_digits(self):
        self.assertEqual(validate_postal_code("01001000"), PostalCode("01001000"))

    def test_accepts_separators(self):
        for raw in ("01001-000", "01.001-000", "0-1-0-0-1-0-0-0", "01001000."):
            with self.subTest(raw=raw):
                self.assertEqual(validate_postal_code(raw).value, "01001000")

    def test_rejects_wrong_length_or_non_digits(self):
        for raw in ("", "123", "123456789", "0100100a", "01001 000", "０１００１０００", "٠١٢٣٤٥٦٧", "01001_000"):
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidZipcodeError) as ctx:
                    validate_postal_code(raw)
                self.assertEqual(ctx.exception.kind, FailureKind.INVALID_FORMAT)
                self.assertEqual(ctx.exception.status_code, 422)

    def test_rejects_non_string(self):
        with self.assertRaises(InvalidZipcodeError):
            validate_postal_code(1001000)

    def test_normalize_only_strips_dash_and_dot(self):
        self.assertEqual(normalize_postal_code("22.450-000"), "22450000")
        self.assertEqual(normalize_postal_code("22 450/000"), "22 450/000")


class TestRounding(unittest.TestCase):
    def test_half_up(self):
        self.assertEqual(round_half_up(1.005), 1.01)
        self.assertEqual(round_half_up(2.675), 2.68)
        self.assertEqual(round_half_up(298.15), 298.15)

    def test_negative_halves_round_away_from_zero(self):
        self.assertEqual(round_half_up(-0.125), -0.13)
        self.assertEqual(round_half_up(-1.234), -1.23)


class TestTemperature(unittest.TestCase):
    def test_derives_units_from_celsius(self):
        t = Temperature.from_celsius(25.0)
        self.assertEqual((t.celsius, t.fahrenheit, t.kelvin), (25.0, 77.0, 298.15))

    def test_trusts_upstream_fahrenheit(self):
        t = Temperature.from_celsius(25.0, 77.4)
        self.assertEqual(t.fahrenheit, 77.4)
        self.assertEqual(t.kelvin, 298.15)

    def test_zero_fahrenheit_is_rederived(self):
        t = Temperature.from_celsius(10.0, 0.0)
        self.assertEqual(t.fahrenheit, 50.0)

    def test_derived_unit_invariant(self):
        for c in (-12.3, -0.4, 0.0, 3.1, 17.9, 31.27, 40.0):
            with self.subTest(celsius=c):
                t = Temperature.from_celsius(c)
                self.assertAlmostEqual(t.fahrenheit, round(c * 1.8 + 32, 2), places=9)
                self.assertAlmostEqual(t.kelvin, round(c + 273.15, 2), places=9)


class TestLookupOutcome(unittest.TestCase):
    def test_json_number(self):
        self.assertEqual(repr(json_number(25.0)), "25")
        self.assertEqual(repr(json_number(-3.0)), "-3")
        self.assertEqual(repr(json_number(298.15)), "298.15")

    def test_success_payload(self):
        outcome = LookupOutcome.success("Rio de Janeiro", Temperature.from_celsius(25.0))
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.status_code, 200)
        self.assertEqual(
            outcome.to_payload(),
            {"city": "Rio de Janeiro", "temp_C": 25, "temp_F": 77, "temp_K": 298.15},
        )
        payload = outcome.to_payload()
        self.assertIsInstance(payload["temp_C"], int)
        self.assertIsInstance(payload["temp_F"], int)
        self.assertIsInstance(payload["temp_K"], float)

    def test_fractional_readings_stay_floats(self):
        payload = LookupOutcome.success("Recife", Temperature.from_celsius(21.3, 70.3)).to_payload()
        self.assertEqual((payload["temp_C"], payload["temp_F"], payload["temp_K"]), (21.3, 70.3, 294.45))
        self.assertIsInstance(payload["temp_C"], float)

    def test_failure_payload_hides_detail(self):
        outcome = LookupOutcome.failed(ZipcodeNotFoundError("viacep status 400"))
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.status_code, 404)
        self.assertEqual(outcome.to_payload(), {"error": "can not find zipcode"})


if __name__ == "__main__":
    unittest.main()
