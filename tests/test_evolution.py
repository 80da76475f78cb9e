"""
Unit tests for the time evolution engine.
"""

import pytest
import numpy as np

from impactsim.config import SimulationParameters, ProjectileConfig, OrbitConfig
from impactsim.evolution import (
    ImpactEvent,
    advance,
    evolve_system,
    predict_impact_point,
    predict_trajectory,
    run_simulation,
)
from impactsim.gravity import FidelityMode
from impactsim.initialization import initialize_simulation, spawn_projectile
from impactsim.state import ProjectileStatus
from impactsim import constants as const
from conftest import StubRandom


@pytest.fixture
def no_burn_params():
    """Earth-Moon parameters where nothing ever burns up."""
    return SimulationParameters(burn_speed_threshold=1.0e9)


def spawn_above(state, params, altitude, speed, diameter=10.0):
    position = [0.0, params.primary.radius + altitude, 0.0]
    return spawn_projectile(state, params, position, [0.0, -speed, 0.0], diameter)


class TestAdvance:
    """Tests for a single tick."""

    def test_impact_produces_event(self, no_burn_params):
        state = initialize_simulation(no_burn_params, seed=1)
        projectile = spawn_above(state, no_burn_params, 20100.0, 10000.0)

        tick = advance(state, no_burn_params, 0.02)

        assert len(tick.events) == 1
        event = tick.events[0]
        assert isinstance(event, ImpactEvent)
        assert event.projectile_id == projectile.id
        assert abs(event.time - 0.02) < 1e-15
        assert abs(event.result.impact_speed - 10000.0) < 10.0
        assert event.result.projectile_mass == projectile.mass
        if event.result.is_ocean_impact:
            assert event.tsunami_radius_km > 0.0
        else:
            assert event.tsunami_radius_km == 0.0

        assert state.n_impacted == 1
        assert projectile.status == ProjectileStatus.IMPACTED
        # Terminal projectiles are dropped at the end of the tick
        assert state.n_projectiles == 0

    def test_snapshots(self, no_burn_params):
        no_burn_params.orbiters = [OrbitConfig("sat", 7.0e6, 0.01, 5400.0)]
        state = initialize_simulation(no_burn_params, seed=1)
        spawn_above(state, no_burn_params, 500000.0, 1000.0)
        spawn_above(state, no_burn_params, 20100.0, 10000.0)

        tick = advance(state, no_burn_params, 0.02)

        kinds = [s.kind for s in tick.snapshots]
        assert kinds.count("projectile") == 2
        assert kinds.count("secondary") == 1
        assert kinds.count("orbiter") == 1

        by_id = {s.id: s for s in tick.snapshots if s.kind == "projectile"}
        assert by_id[0].active and by_id[0].status == "flying"
        assert not by_id[1].active and by_id[1].status == "impacted"

        secondary = [s for s in tick.snapshots if s.kind == "secondary"][0]
        distance = np.linalg.norm(secondary.position) * no_burn_params.scene_scale
        assert abs(distance - no_burn_params.secondary.distance) < 1e-3

    def test_burn_up_reported(self, params):
        state = initialize_simulation(params, seed=1)
        state.rng = StubRandom(0.0)
        projectile = spawn_above(state, params, 40000.0, 20000.0)

        tick = advance(state, params, 0.02)

        assert tick.consumed == [projectile.id]
        assert tick.events == []
        assert state.n_consumed == 1
        assert state.n_active == 0

    def test_time_and_speed_multiplier(self, no_burn_params):
        state = initialize_simulation(no_burn_params, seed=1)
        advance(state, no_burn_params, 0.02, speed_multiplier=3.0)
        assert abs(state.time - 0.06) < 1e-15
        assert state.timestep_count == 1

    def test_secondary_moves(self, no_burn_params):
        state = initialize_simulation(no_burn_params, seed=1)
        start = state.secondary.position.copy()
        advance(state, no_burn_params, 100.0)
        expected_angle = no_burn_params.secondary.angular_speed * 100.0
        assert abs(state.secondary_angle - expected_angle) < 1e-12
        assert not np.allclose(state.secondary.position, start)

    def test_secondary_angle_wraps(self, no_burn_params):
        state = initialize_simulation(no_burn_params, seed=1)
        period = const.TWO_PI / state.secondary_angular_speed
        state.update_secondary(period + 1.0)
        assert 0.0 <= state.secondary_angle < const.TWO_PI
        assert abs(state.secondary_angle - state.secondary_angular_speed) < 1e-9

    def test_orbiters_advance_with_multiplier(self, no_burn_params):
        no_burn_params.orbiters = [OrbitConfig("sat", 7.0e6, 0.0, 5400.0)]
        state = initialize_simulation(no_burn_params, seed=1)
        advance(state, no_burn_params, 0.5, speed_multiplier=4.0)
        assert state.orbiters[0].elapsed_time == 2.0

    def test_projectiles_processed_in_creation_order(self, no_burn_params):
        state = initialize_simulation(no_burn_params, seed=1)
        for altitude in (20100.0, 20150.0, 20120.0):
            spawn_above(state, no_burn_params, altitude, 10000.0)
        tick = advance(state, no_burn_params, 0.02)
        assert [e.projectile_id for e in tick.events] == [0, 1, 2]


class TestPrediction:
    """Tests for predict_impact_point."""

    def test_downward_launch_hits(self, params):
        hit = predict_impact_point([0.0, 100.0, 0.0], [0.0, -5.0, 0.0], params)
        assert hit is not None
        surface = (params.primary.radius + params.surface_epsilon) / params.scene_scale
        assert np.linalg.norm(hit) < surface
        # Straight down stays on the axis
        assert abs(hit[0]) < 1e-12 and abs(hit[2]) < 1e-12

    def test_escape_returns_none(self, params):
        assert predict_impact_point([0.0, 100.0, 0.0], [0.0, 1000.0, 0.0], params) is None

    def test_step_limit(self, params):
        hit = predict_impact_point([0.0, 100.0, 0.0], [0.0, -1.0, 0.0], params, max_steps=1)
        assert hit is None

    def test_does_not_touch_inputs(self, params):
        position = np.array([0.0, 100.0, 0.0])
        velocity = np.array([0.0, -5.0, 0.0])
        predict_impact_point(position, velocity, params)
        np.testing.assert_array_equal(position, [0.0, 100.0, 0.0])
        np.testing.assert_array_equal(velocity, [0.0, -5.0, 0.0])

    def test_trajectory_samples(self, params):
        points, hit = predict_trajectory([0.0, 100.0, 0.0], [0.0, -5.0, 0.0], params)
        np.testing.assert_array_equal(points[0], [0.0, 100.0, 0.0])
        np.testing.assert_array_equal(points[-1], hit)
        heights = [p[1] for p in points]
        assert all(b < a for a, b in zip(heights, heights[1:]))

    def test_trajectory_of_a_miss(self, params):
        points, hit = predict_trajectory([0.0, 100.0, 0.0], [0.0, 1000.0, 0.0], params)
        assert hit is None
        assert len(points) > 1
        assert np.linalg.norm(points[-1]) > 1.0e4

    def test_offset_center(self, params):
        """Launches relative to a displaced primary land relative to it."""
        center = np.array([1000.0, -200.0, 50.0])
        at_origin = predict_impact_point([0.0, 100.0, 0.0], [0.0, -5.0, 0.0], params)
        shifted = predict_impact_point(center + [0.0, 100.0, 0.0], [0.0, -5.0, 0.0], params,
                                       center=center)
        assert shifted is not None
        np.testing.assert_allclose(shifted - center, at_origin, atol=1e-9)


class TestEvolveSystem:

    def test_statistics(self, no_burn_params):
        state = initialize_simulation(no_burn_params, seed=3)
        spawn_above(state, no_burn_params, 20100.0, 10000.0)
        spawn_above(state, no_burn_params, 1.0e6, 0.0)

        stats = evolve_system(state, no_burn_params, 5, show_progress=False)

        assert stats['total_impacted'] == 1
        assert len(stats['impacts']) == 1
        assert stats['total_consumed'] == 0
        assert stats['final_timestep'] == 5
        assert abs(stats['final_time'] - 0.1) < 1e-12
        assert state.n_active == 1

    def test_stop_when_empty(self, no_burn_params):
        state = initialize_simulation(no_burn_params, seed=3)
        spawn_above(state, no_burn_params, 20100.0, 10000.0)
        stats = evolve_system(state, no_burn_params, 100, show_progress=False,
                              stop_when_empty=True)
        assert stats['final_timestep'] == 1

    def test_reduced_mode_expiry(self, reduced_params):
        state = initialize_simulation(reduced_params, seed=3)
        spawn_projectile(state, reduced_params, [5.0e8, 0.0, 0.0], [0.0, 0.0, 0.0], 10.0)
        stats = evolve_system(state, reduced_params, 450, show_progress=False)
        assert stats['total_expired'] == 1
        assert state.n_projectiles == 0


class TestRunSimulation:

    def test_short_run(self):
        params = SimulationParameters(
            duration=1.0,
            burn_speed_threshold=1.0e9,
            projectiles=[ProjectileConfig(
                position=(0.0, const.EARTH_RADIUS + 25000.0, 0.0),
                velocity=(0.0, -12000.0, 0.0),
                diameter=20.0,
            )],
        )
        state, stats = run_simulation(params, seed=7, show_progress=False)

        assert stats['total_impacted'] == 1
        assert stats['impacts'][0].result.kinetic_energy > 0.0
        assert 'initial_energy' in stats and 'final_energy' in stats
        assert state.n_active == 0

    def test_reproducible(self):
        params = SimulationParameters(
            duration=0.5,
            projectiles=[ProjectileConfig(
                position=(0.0, const.EARTH_RADIUS + 60000.0, 0.0),
                velocity=(3000.0, -15000.0, 0.0),
                diameter=5.0,
            )],
        )
        state_a, _ = run_simulation(params, seed=11, show_progress=False)
        state_b, _ = run_simulation(params, seed=11, show_progress=False)
        assert state_a.n_consumed == state_b.n_consumed
        assert state_a.n_impacted == state_b.n_impacted
        for a, b in zip(state_a.projectiles, state_b.projectiles):
            np.testing.assert_array_equal(a.position, b.position)
            assert a.mass == b.mass
