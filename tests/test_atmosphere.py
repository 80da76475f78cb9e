"""
Unit tests for the layered atmosphere model.

Tests cover:
- Density profile (sea level, troposphere, layer blends, vacuum)
- Continuity and monotonicity across layer boundaries
- Barometric pressure
- Wind vectors
"""

import pytest
import numpy as np

from impactsim.atmosphere import AtmosphereLayer, AtmosphereModel, DEFAULT_LAYERS
from impactsim import constants as const


@pytest.fixture
def atmosphere():
    return AtmosphereModel()


class TestDensity:
    """Tests for density(altitude)."""

    def test_sea_level(self, atmosphere):
        assert atmosphere.density(0.0) == const.SEA_LEVEL_DENSITY

    def test_below_surface_is_sea_level(self, atmosphere):
        assert atmosphere.density(-500.0) == const.SEA_LEVEL_DENSITY

    def test_troposphere_exponential(self, atmosphere):
        """Lowest layer follows ρ0 exp(-h/H)."""
        expected = 1.225 * np.exp(-5000.0 / 8400.0)
        assert abs(atmosphere.density(5000.0) - expected) < 1e-12

    def test_top_layer_value(self, atmosphere):
        assert abs(atmosphere.density(100000.0) - 5.604e-7) < 1e-15

    def test_vacuum_above_atmosphere(self, atmosphere):
        assert atmosphere.density(100000.1) == 0.0
        assert atmosphere.density(400000.0) == 0.0

    def test_continuous_at_layer_boundaries(self, atmosphere):
        """No jump in density when crossing a layer top."""
        for layer in DEFAULT_LAYERS[:-1]:
            below = atmosphere.density(layer.top_altitude - 1e-3)
            above = atmosphere.density(layer.top_altitude + 1e-3)
            assert abs(above - below) / below < 1e-5

    def test_monotone_non_increasing(self, atmosphere):
        altitudes = np.linspace(0.0, 100000.0, 2001)
        densities = [atmosphere.density(h) for h in altitudes]
        for lower, upper in zip(densities, densities[1:]):
            assert upper <= lower

    def test_all_values_non_negative(self, atmosphere):
        for h in np.linspace(-1000.0, 200000.0, 500):
            assert atmosphere.density(h) >= 0.0

    def test_height_is_top_layer(self, atmosphere):
        assert atmosphere.height == const.ATMOSPHERE_HEIGHT

    def test_layer_index(self, atmosphere):
        assert atmosphere.layer_index(-10.0) == 0
        assert atmosphere.layer_index(5000.0) == 0
        assert atmosphere.layer_index(20000.0) == 1
        assert atmosphere.layer_index(60000.0) == 2
        assert atmosphere.layer_index(90000.0) == 3
        assert atmosphere.layer_index(150000.0) is None


class TestLayerValidation:
    """Invalid layer tables are rejected at construction."""

    def test_empty_layers(self):
        with pytest.raises(ValueError):
            AtmosphereModel(layers=())

    def test_unordered_layers(self):
        layers = (
            AtmosphereLayer("a", 20000.0, 0.1, 220.0, 5.0),
            AtmosphereLayer("b", 10000.0, 0.01, 220.0, 5.0),
        )
        with pytest.raises(ValueError):
            AtmosphereModel(layers=layers)

    def test_denser_upper_layer(self):
        layers = (
            AtmosphereLayer("a", 10000.0, 0.01, 220.0, 5.0),
            AtmosphereLayer("b", 20000.0, 0.1, 220.0, 5.0),
        )
        with pytest.raises(ValueError):
            AtmosphereModel(layers=layers)

    def test_second_layer_denser_than_troposphere_top(self):
        """
        The blend starts from the exponential troposphere value, so a second
        layer above it would make density rise with altitude.
        """
        layers = (
            AtmosphereLayer("troposphere", 11000.0, 0.5, 216.65, 10.0),
            AtmosphereLayer("stratosphere", 50000.0, 0.45, 270.65, 30.0),
            AtmosphereLayer("thermosphere", 100000.0, 1.0e-6, 195.08, 100.0),
        )
        with pytest.raises(ValueError):
            AtmosphereModel(layers=layers)

    def test_custom_table_is_monotone(self):
        layers = (
            AtmosphereLayer("low", 15000.0, 0.2, 220.0, 5.0),
            AtmosphereLayer("mid", 40000.0, 4.0e-3, 250.0, 20.0),
            AtmosphereLayer("high", 90000.0, 1.0e-6, 200.0, 80.0),
        )
        atmosphere = AtmosphereModel(layers=layers)
        densities = [atmosphere.density(h) for h in np.linspace(0.0, 90000.0, 1801)]
        for lower, upper in zip(densities, densities[1:]):
            assert upper <= lower
        assert atmosphere.density(90000.0 + 1.0) == 0.0


class TestPressure:
    """Tests for the barometric pressure approximation."""

    def test_sea_level_pressure(self, atmosphere):
        assert atmosphere.pressure(0.0) == const.SEA_LEVEL_PRESSURE
        assert atmosphere.pressure_ratio(0.0) == 1.0

    def test_pressure_decreases(self, atmosphere):
        assert atmosphere.pressure(10000.0) < atmosphere.pressure(1000.0)
        assert atmosphere.pressure(80000.0) < atmosphere.pressure(10000.0)

    def test_barometric_formula(self, atmosphere):
        h = 8000.0
        expected = 101325.0 * np.exp(-9.80665 * h / (287.05 * 288.15))
        assert abs(atmosphere.pressure(h) - expected) / expected < 1e-12

    def test_ratio_bounds(self, atmosphere):
        for h in (0.0, 5000.0, 50000.0, 99000.0):
            ratio = atmosphere.pressure_ratio(h)
            assert 0.0 < ratio <= 1.0

    def test_temperature_by_layer(self, atmosphere):
        assert atmosphere.temperature(5000.0) == 216.65
        assert atmosphere.temperature(30000.0) == 270.65
        # Above the top the highest layer's temperature is reported
        assert atmosphere.temperature(500000.0) == 195.08


class TestWind:
    """Tests for wind_vector."""

    def test_no_wind_above_atmosphere(self, atmosphere):
        wind = atmosphere.wind_vector(150000.0, np.random.default_rng(1))
        assert np.all(wind == 0.0)

    def test_base_direction_without_rng(self, atmosphere):
        wind = atmosphere.wind_vector(5000.0)
        np.testing.assert_allclose(wind, [10.0, 0.0, 0.0], atol=1e-12)

    def test_layer_speed_and_strength(self):
        model = AtmosphereModel(wind_strength=2.0)
        wind = model.wind_vector(30000.0)
        assert abs(np.linalg.norm(wind) - 60.0) < 1e-9

    def test_jitter_preserves_speed(self, atmosphere, rng):
        for _ in range(20):
            wind = atmosphere.wind_vector(60000.0, rng)
            assert abs(np.linalg.norm(wind) - 60.0) < 1e-9

    def test_jitter_bounded(self, atmosphere, rng):
        """Heading never deviates more than the jitter half-width."""
        for _ in range(50):
            wind = atmosphere.wind_vector(20000.0, rng)
            angle = np.arccos(wind[0] / np.linalg.norm(wind))
            assert angle <= const.WIND_JITTER * 1.2
