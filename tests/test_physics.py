"""
Unit tests for physics kernels and the gravity field.

Tests cover:
- Newtonian force magnitude, direction and the epsilon cutoff
- Pairwise projectile gravity (symmetric pair attraction)
- Reduced-fidelity gravity law
- Drag and terminal velocity
- Energy helpers
- Numba compilation
"""

import pytest
import numpy as np

from impactsim.physics import (
    gravitational_force,
    pairwise_gravity,
    simplified_gravity_acceleration,
    drag_force,
    terminal_velocity,
    calculate_kinetic_energy,
    calculate_potential_energy,
)
from impactsim.gravity import FidelityMode, GravityField
from impactsim.state import CelestialBody, Projectile
from impactsim import constants as const


@pytest.fixture
def earth():
    return CelestialBody("Earth", const.EARTH_MASS, const.EARTH_RADIUS)


def make_projectile(pid, position_m, mass=1.0e6, scale=const.SCENE_SCALE):
    return Projectile(
        id=pid,
        position=np.asarray(position_m, dtype=np.float64) / scale,
        velocity=np.zeros(3),
        physical_velocity=np.zeros(3),
        mass=mass,
        diameter=10.0,
        material_density=3000.0,
    )


class TestGravitationalForce:
    """Tests for the Newtonian force kernel."""

    def test_magnitude(self):
        pos_a = np.array([0.0, 0.0, 0.0])
        pos_b = np.array([1000.0, 0.0, 0.0])
        force = gravitational_force(pos_a, 2.0e10, pos_b, 3.0e10, const.G, 1.0)
        expected = const.G * 2.0e10 * 3.0e10 / 1000.0**2
        assert abs(np.linalg.norm(force) - expected) / expected < 1e-12

    def test_points_toward_other_body(self):
        pos_a = np.array([0.0, 0.0, 0.0])
        pos_b = np.array([0.0, -500.0, 0.0])
        force = gravitational_force(pos_a, 1.0, pos_b, 1.0e12, const.G, 1.0)
        assert force[1] < 0.0
        assert force[0] == 0.0 and force[2] == 0.0

    def test_zero_inside_epsilon(self):
        pos = np.array([5.0, 5.0, 5.0])
        force = gravitational_force(pos, 1.0e3, pos + 0.5, 1.0e3, const.G, 1.0)
        assert np.all(force == 0.0)

    def test_coincident_bodies(self):
        pos = np.array([1.0, 2.0, 3.0])
        force = gravitational_force(pos, 1.0e3, pos.copy(), 1.0e3, const.G, 1.0)
        assert np.all(force == 0.0)
        assert np.all(np.isfinite(force))

    def test_surface_gravity(self, earth):
        """g at Earth's surface is about 9.8 m/s²."""
        field = GravityField(earth)
        position = np.array([0.0, const.EARTH_RADIUS, 0.0])
        force = field.body_force(position, 1.0)
        assert 9.7 < np.linalg.norm(force) < 9.9
        assert force[1] < 0.0


class TestPairwiseGravity:
    """Tests for projectile-projectile gravity."""

    def test_symmetric_pair_attracts(self, earth):
        """Two projectiles either side of the primary pull toward each other equally."""
        field = GravityField(earth)
        d = 2.0 * const.EARTH_RADIUS
        a = make_projectile(0, [-d, 0.0, 0.0])
        b = make_projectile(1, [d, 0.0, 0.0])

        force_a = field.projectile_force(a, [a, b])
        force_b = field.projectile_force(b, [a, b])

        # Along the connecting line, toward each other
        assert force_a[0] > 0.0 and force_b[0] < 0.0
        assert force_a[1] == 0.0 and force_a[2] == 0.0
        # Equal and opposite
        np.testing.assert_allclose(force_a, -force_b, rtol=1e-12)

        expected = const.G * 1.0e6 * 1.0e6 / (2.0 * d)**2
        assert abs(force_a[0] - expected) / expected < 1e-6

    def test_inactive_projectiles_ignored(self, earth):
        field = GravityField(earth)
        a = make_projectile(0, [1.0e7, 0.0, 0.0])
        b = make_projectile(1, [2.0e7, 0.0, 0.0])
        b.active = False
        assert np.all(field.projectile_force(a, [a, b]) == 0.0)

    def test_single_projectile_no_force(self, earth):
        field = GravityField(earth)
        a = make_projectile(0, [1.0e7, 0.0, 0.0])
        assert np.all(field.projectile_force(a, [a]) == 0.0)

    def test_kernel_sums_every_pair(self):
        positions = np.array([[0.0, 0.0, 0.0],
                              [100.0, 0.0, 0.0],
                              [-100.0, 0.0, 0.0]])
        masses = np.array([1.0, 1.0e9, 1.0e9])
        active = np.ones(3, dtype=np.bool_)
        # Opposite neighbours cancel
        force = pairwise_gravity(0, positions, masses, active, const.G, 1.0)
        assert np.linalg.norm(force) < 1e-18

        active[2] = False
        force = pairwise_gravity(0, positions, masses, active, const.G, 1.0)
        assert force[0] > 0.0

    def test_total_force_includes_secondary(self, earth):
        moon = CelestialBody("Moon", const.MOON_MASS, const.MOON_RADIUS,
                             position=[const.MOON_DISTANCE, 0.0, 0.0])
        with_moon = GravityField(earth, moon)
        without_moon = GravityField(earth)
        p = make_projectile(0, [0.0, 2.0 * const.EARTH_RADIUS, 0.0])

        diff = with_moon.total_force(p) - without_moon.total_force(p)
        assert diff[0] > 0.0


class TestReducedGravity:
    """Tests for the reduced-fidelity force law."""

    def test_inverse_square(self):
        a1 = simplified_gravity_acceleration(np.array([10.0, 0.0, 0.0]), 5000.0, 1e-5)
        a2 = simplified_gravity_acceleration(np.array([20.0, 0.0, 0.0]), 5000.0, 1e-5)
        assert abs(a1[0] / a2[0] - 4.0) < 1e-12
        assert a1[0] == -50.0

    def test_zero_at_origin(self):
        accel = simplified_gravity_acceleration(np.zeros(3), 5000.0, 1e-5)
        assert np.all(accel == 0.0)

    def test_field_uses_strength(self, earth):
        field = GravityField(earth, mode=FidelityMode.REDUCED, gravity_strength=100.0)
        accel = field.simplified_acceleration(np.array([0.0, 0.0, 10.0]))
        np.testing.assert_allclose(accel, [0.0, 0.0, -1.0])

    def test_pull_toward_offset_primary(self):
        """The reduced law points at the primary's center, not the scene origin."""
        R = const.EARTH_RADIUS
        earth = CelestialBody("Earth", const.EARTH_MASS, R, position=[5.0 * R, 0.0, 0.0])
        field = GravityField(earth, mode=FidelityMode.REDUCED,
                             gravity_strength=5000.0, scene_scale=1.0e5)
        position = np.array([5.0 * R, 2.0 * R, 0.0]) / 1.0e5

        accel = field.simplified_acceleration(position)

        r = 2.0 * R / 1.0e5
        assert accel[0] == 0.0 and accel[2] == 0.0
        assert abs(accel[1] + 5000.0 / r**2) < 1e-12

    def test_secondary_pull(self, earth):
        moon = CelestialBody("Moon", const.MOON_MASS, const.MOON_RADIUS,
                             position=[1.0e6, 0.0, 0.0])
        field = GravityField(earth, moon, mode=FidelityMode.REDUCED,
                             secondary_strength=1.0, scene_scale=1.0e5)
        accel = field.simplified_secondary_acceleration(np.zeros(3))
        # Moon at 10 scene units: 1 / 10²
        np.testing.assert_allclose(accel, [0.01, 0.0, 0.0])

        # Closer than the minimum distance: no pull
        accel = field.simplified_secondary_acceleration(np.array([9.95, 0.0, 0.0]))
        assert np.all(accel == 0.0)

    def test_no_secondary_no_pull(self, earth):
        field = GravityField(earth, mode=FidelityMode.REDUCED)
        assert np.all(field.simplified_secondary_acceleration(np.ones(3)) == 0.0)


class TestFidelityMode:

    def test_parse_strings(self):
        assert FidelityMode.parse("high") is FidelityMode.HIGH
        assert FidelityMode.parse("REDUCED") is FidelityMode.REDUCED
        assert FidelityMode.parse(FidelityMode.HIGH) is FidelityMode.HIGH

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            FidelityMode.parse("medium")


class TestDrag:
    """Tests for drag and terminal velocity."""

    def test_opposes_velocity(self):
        velocity = np.array([0.0, -3000.0, 0.0])
        force = drag_force(velocity, np.zeros(3), 1.0, 0.47, 2.0)
        assert force[1] > 0.0
        expected = 0.5 * 1.0 * 3000.0**2 * 0.47 * 2.0
        assert abs(np.linalg.norm(force) - expected) / expected < 1e-12

    def test_relative_to_wind(self):
        """Moving with the wind means no drag."""
        velocity = np.array([20.0, 0.0, 0.0])
        force = drag_force(velocity, velocity.copy(), 1.0, 0.47, 2.0)
        assert np.all(force == 0.0)

    def test_zero_in_vacuum(self):
        force = drag_force(np.array([5000.0, 0.0, 0.0]), np.zeros(3), 0.0, 0.47, 2.0)
        assert np.all(force == 0.0)

    def test_terminal_velocity(self):
        v_t = terminal_velocity(100.0, 1.225, 0.47, 1.0, 9.81)
        expected = np.sqrt(2.0 * 100.0 * 9.81 / (1.225 * 0.47 * 1.0))
        assert abs(v_t - expected) < 1e-9

    def test_terminal_velocity_vacuum(self):
        assert np.isinf(terminal_velocity(100.0, 0.0, 0.47, 1.0, 9.81))


class TestEnergy:

    def test_kinetic_energy(self):
        ke = calculate_kinetic_energy(2.0, np.array([3.0, 4.0, 0.0]))
        assert ke == 25.0

    def test_potential_energy(self):
        pe = calculate_potential_energy(np.zeros(3), np.array([0.0, 0.0, 10.0]),
                                        5.0, 7.0, const.G, 1.0)
        assert abs(pe + const.G * 35.0 / 10.0) < 1e-20

    def test_potential_energy_cutoff(self):
        pe = calculate_potential_energy(np.zeros(3), np.array([0.1, 0.0, 0.0]),
                                        5.0, 7.0, const.G, 1.0)
        assert pe == 0.0


class TestNumbaCompilation:
    """Kernels run through their compiled dispatchers."""

    def test_kernels_are_compiled(self):
        gravitational_force(np.zeros(3), 1.0, np.ones(3) * 10.0, 1.0, const.G, 1.0)
        drag_force(np.ones(3) * 10.0, np.zeros(3), 1.0, 0.47, 1.0)
        assert len(gravitational_force.signatures) > 0
        assert len(drag_force.signatures) > 0
