"""
Unit Tests for the Position Deriver

Tests longitude wrapping, NaN handling, failure absorption and the sgp4
binding.

Run with:
    python -m pytest tests/test_propagation.py -v
"""

import math
import unittest
from datetime import datetime, timezone

from config import EARTH_RADIUS_KM
from globe_service.element_sets import make_element_set
from globe_service.errors import PropagationFailure
from globe_service.propagation import (
    GeodeticPosition,
    ObservedPosition,
    Propagator,
    Sgp4Propagator,
    derive_position,
    eci_to_geodetic,
    from_epoch_millis,
    normalize_longitude,
    to_epoch_millis,
)
from fakes import FIXED_NOW, ISS_LINE1, ISS_LINE2, FakePropagator


class TestNormalizeLongitude(unittest.TestCase):

    def test_above_pi(self):
        self.assertAlmostEqual(normalize_longitude(4.0), 4.0 - 2 * math.pi, places=12)
        self.assertAlmostEqual(normalize_longitude(4.0), -2.283185, places=6)

    def test_below_minus_pi(self):
        self.assertAlmostEqual(normalize_longitude(-4.0), -4.0 + 2 * math.pi, places=12)
        self.assertAlmostEqual(normalize_longitude(-4.0), 2.283185, places=6)

    def test_in_range_unchanged(self):
        for value in (-math.pi, -1.0, 0.0, 2.5, math.pi):
            self.assertEqual(normalize_longitude(value), value)

    def test_several_turns(self):
        self.assertAlmostEqual(normalize_longitude(10.0), 10.0 - 4 * math.pi, places=12)
        self.assertAlmostEqual(normalize_longitude(-20.0), -20.0 + 6 * math.pi, places=12)
        for value in (7.5, -13.0, 100.0, -100.0):
            wrapped = normalize_longitude(value)
            self.assertGreaterEqual(wrapped, -math.pi)
            self.assertLessEqual(wrapped, math.pi)


class TestPropagatorInterface(unittest.TestCase):

    def test_abstract(self):
        with self.assertRaises(TypeError):
            Propagator()

    def test_binding_without_propagate(self):
        class Unbound(Propagator):
            pass

        with self.assertRaises(TypeError):
            Unbound()


class TestEciToGeodetic(unittest.TestCase):

    def test_equatorial_point(self):
        geodetic = eci_to_geodetic([EARTH_RADIUS_KM + 500.0, 0.0, 0.0], 0.0)
        self.assertAlmostEqual(geodetic.longitude_rad, 0.0)
        self.assertAlmostEqual(geodetic.latitude_rad, 0.0)
        self.assertAlmostEqual(geodetic.height_km, 500.0, places=6)
        self.assertIsInstance(geodetic.height_km, float)

    def test_sidereal_rotation_not_wrapped(self):
        """Longitude is atan2(y, x) - gmst and may fall below -pi."""
        geodetic = eci_to_geodetic([-7000.0, -1e-6, 0.0], 1.0)
        self.assertAlmostEqual(geodetic.longitude_rad, -math.pi - 1.0, places=6)

    def test_northern_latitude(self):
        geodetic = eci_to_geodetic([4000.0, 0.0, 5000.0], 0.0)
        self.assertGreater(geodetic.latitude_rad, 0.0)
        self.assertLess(geodetic.latitude_rad, math.pi / 2)


class TestDerivePosition(unittest.TestCase):

    def setUp(self):
        self.element_set = make_element_set("ISS (ZARYA)", ISS_LINE1, ISS_LINE2)

    def test_unit_conversion(self):
        propagator = FakePropagator(GeodeticPosition(math.pi / 2, math.pi / 4, 420.0))
        position = derive_position(self.element_set, FIXED_NOW, propagator)

        self.assertIsInstance(position, ObservedPosition)
        self.assertAlmostEqual(position.longitude_deg, 90.0)
        self.assertAlmostEqual(position.latitude_deg, 45.0)
        self.assertAlmostEqual(position.height_m, 420000.0)
        self.assertEqual(position.observed_at_epoch_millis, to_epoch_millis(FIXED_NOW))
        self.assertEqual(propagator.calls, [(ISS_LINE1, ISS_LINE2, FIXED_NOW)])

    def test_longitude_wrapped(self):
        position = derive_position(
            self.element_set, FIXED_NOW, FakePropagator(GeodeticPosition(4.0, 0.0, 400.0))
        )
        self.assertAlmostEqual(position.longitude_deg, math.degrees(4.0 - 2 * math.pi))

    def test_nan_in_any_field(self):
        nan = float("nan")
        for geodetic in (
            GeodeticPosition(nan, 0.1, 400.0),
            GeodeticPosition(0.1, nan, 400.0),
            GeodeticPosition(0.1, 0.1, nan),
        ):
            position = derive_position(self.element_set, FIXED_NOW, FakePropagator(geodetic))
            self.assertIsNone(position)

    def test_infinite_field(self):
        geodetic = GeodeticPosition(float("inf"), 0.1, 400.0)
        self.assertIsNone(derive_position(self.element_set, FIXED_NOW, FakePropagator(geodetic)))

    def test_propagation_failure_absorbed(self):
        propagator = FakePropagator(fail=lambda line1, when: True)
        self.assertIsNone(derive_position(self.element_set, FIXED_NOW, propagator))

    def test_unexpected_exception_absorbed(self):
        def explode(when):
            raise ZeroDivisionError("numerical divergence")

        self.assertIsNone(derive_position(self.element_set, FIXED_NOW, FakePropagator(explode)))

    def test_epoch_millis_round_trip(self):
        millis = to_epoch_millis(FIXED_NOW)
        self.assertEqual(from_epoch_millis(millis), FIXED_NOW)


class TestSgp4Propagator(unittest.TestCase):
    """Test the sgp4 binding on the ISS element set."""

    def setUp(self):
        self.propagator = Sgp4Propagator()
        self.when = datetime(2023, 9, 16, 13, 49, 0, tzinfo=timezone.utc)

    def test_iss_position(self):
        geodetic = self.propagator.propagate(ISS_LINE1, ISS_LINE2, self.when)

        self.assertLess(abs(math.degrees(geodetic.latitude_rad)), 52.0)
        self.assertGreater(geodetic.height_km, 300.0)
        self.assertLess(geodetic.height_km, 500.0)

    def test_derived_position_in_range(self):
        element_set = make_element_set("ISS (ZARYA)", ISS_LINE1, ISS_LINE2)
        position = derive_position(element_set, self.when, self.propagator)

        self.assertIsNotNone(position)
        self.assertGreaterEqual(position.longitude_deg, -180.0)
        self.assertLessEqual(position.longitude_deg, 180.0)
        self.assertGreater(position.height_m, 300000.0)

    def test_satrec_reused(self):
        self.propagator.propagate(ISS_LINE1, ISS_LINE2, self.when)
        self.propagator.propagate(ISS_LINE1, ISS_LINE2, FIXED_NOW)
        self.assertEqual(len(self.propagator.satellites), 1)

    def test_error_code_raises(self):
        class DecayedSatrec:
            def sgp4(self, jd, fr):
                return 6, (float("nan"),) * 3, (float("nan"),) * 3

        self.propagator.satellites[(ISS_LINE1, ISS_LINE2)] = DecayedSatrec()
        with self.assertRaises(PropagationFailure) as context:
            self.propagator.propagate(ISS_LINE1, ISS_LINE2, self.when)
        self.assertIn("decayed", str(context.exception))


if __name__ == "__main__":
    unittest.main()
