"""
Time evolution engine for the impact simulation.

advance() is the per-frame entry point for an interactive driver: it
moves the secondary body and the decorative orbiters, steps every active
projectile, turns surface hits into impact events and reports a
render snapshot. predict_trajectory() previews a launch path.
evolve_system() and run_simulation() drive many ticks in batch with a
progress bar.

Each tick:
  1. Scale the frame time by the speed multiplier
  2. Move the secondary body along its circular orbit
  3. Advance decorative orbiters (no feedback into gravity)
  4. Step every active projectile (in creation order)
  5. Estimate impact effects for projectiles that hit the surface
  6. Snapshot entities, drop terminal projectiles, update counters
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from impactsim.config import SimulationParameters
from impactsim.diagnostics import calculate_total_energy, check_timestep_stability
from impactsim.impact import ImpactEstimator, ImpactResult, tsunami_radius
from impactsim.integrator import ProjectileIntegrator
from impactsim.physics import simplified_gravity_acceleration
from impactsim.state import EntitySnapshot, ProjectileStatus, SimulationState


@dataclass
class ImpactEvent:
    """A projectile reaching the surface during a tick."""

    projectile_id: int
    position: np.ndarray  # scene units
    result: ImpactResult
    tsunami_radius_km: float = 0.0
    time: float = 0.0  # s


@dataclass
class TickResult:
    """Everything the presentation layer needs after one tick."""

    events: List[ImpactEvent] = field(default_factory=list)
    snapshots: List[EntitySnapshot] = field(default_factory=list)
    consumed: List[int] = field(default_factory=list)
    expired: List[int] = field(default_factory=list)


def advance(
    state: SimulationState,
    params: SimulationParameters,
    dt: float,
    speed_multiplier: float = 1.0,
    integrator: Optional[ProjectileIntegrator] = None,
    estimator: Optional[ImpactEstimator] = None,
) -> TickResult:
    """
    Advance the simulation by one frame.

    Args:
        state: SimulationState (modified in place)
        params: SimulationParameters
        dt: Frame time [s]
        speed_multiplier: User-controlled simulation speed
        integrator: Reusable integrator; built from state/params if None
        estimator: Reusable impact estimator; built from params if None

    Returns:
        TickResult with impact events and entity snapshots
    """
    if integrator is None:
        integrator = ProjectileIntegrator.from_state(state, params)
    if estimator is None:
        estimator = ImpactEstimator(params.scene_scale)

    step_dt = dt * speed_multiplier
    result = TickResult()

    # Bodies that do not depend on projectiles
    state.update_secondary(step_dt)
    for orbiter in state.orbiters:
        orbiter.advance(dt, speed_multiplier)

    active = state.active_projectiles()
    for projectile in active:
        hit = integrator.step(projectile, active, step_dt, state.rng)

        if hit:
            impact = estimator.estimate(projectile, state.primary.position)
            result.events.append(ImpactEvent(
                projectile_id=projectile.id,
                position=projectile.position.copy(),
                result=impact,
                tsunami_radius_km=tsunami_radius(impact.seismic_radius_km,
                                                 impact.is_ocean_impact, state.rng),
                time=state.time + step_dt,
            ))
            state.n_impacted += 1
        elif projectile.status == ProjectileStatus.CONSUMED:
            result.consumed.append(projectile.id)
            state.n_consumed += 1
        elif projectile.status == ProjectileStatus.EXPIRED:
            result.expired.append(projectile.id)
            state.n_expired += 1

        result.snapshots.append(EntitySnapshot(
            id=projectile.id,
            kind="projectile",
            position=projectile.position.copy(),
            active=projectile.active,
            status=projectile.status.value,
        ))

    if state.secondary is not None:
        result.snapshots.append(EntitySnapshot(
            id=-1,
            kind="secondary",
            position=state.secondary.position / params.scene_scale,
            active=True,
        ))
    for i, orbiter in enumerate(state.orbiters):
        result.snapshots.append(EntitySnapshot(
            id=i,
            kind="orbiter",
            position=orbiter.position / params.scene_scale,
            active=True,
        ))

    state.prune_inactive()
    state.time += step_dt
    state.timestep_count += 1

    return result


def predict_trajectory(
    position_scene,
    velocity_scene,
    params: SimulationParameters,
    dt: Optional[float] = None,
    max_steps: int = 2000,
    max_distance: float = 1.0e4,
    center=None,
) -> Tuple[List[np.ndarray], Optional[np.ndarray]]:
    """
    Ballistic preview of a launch, for drawing a trajectory line.

    Marches the reduced-fidelity gravity law (no drag, no secondary) in
    scene units from the launch point. The reduced law is used whatever
    params.fidelity_mode says: its strength k = params.gravity_strength
    is far larger than the primary's G·M in scene units, so for a
    high-fidelity run the preview bends much harder than the real path.

    Args:
        position_scene: Launch position [scene units]
        velocity_scene: Launch velocity [scene units/s]
        params: Simulation parameters
        dt: Preview step [s]; params.dt × params.speed_multiplier if None
        max_steps: Step limit
        max_distance: Give up once farther than this from the center [scene units]
        center: Primary body center [scene units]; origin if None

    Returns:
        (points, hit): sampled positions starting at the launch point, and
        the hit position (also the last sample) or None if the path misses
    """
    if dt is None:
        dt = params.dt * params.speed_multiplier
    center = np.zeros(3) if center is None else np.asarray(center, dtype=np.float64)
    pos = np.array(position_scene, dtype=np.float64)
    vel = np.array(velocity_scene, dtype=np.float64)
    surface = (params.primary.radius + params.surface_epsilon) / params.scene_scale
    min_distance = params.gravity_epsilon / params.scene_scale

    points = [pos.copy()]
    for _ in range(max_steps):
        accel = simplified_gravity_acceleration(pos - center, params.gravity_strength,
                                                min_distance)
        vel += accel * dt
        pos += vel * dt
        points.append(pos.copy())
        r = np.linalg.norm(pos - center)
        if r < surface:
            return points, pos
        if r > max_distance:
            break

    return points, None


def predict_impact_point(
    position_scene,
    velocity_scene,
    params: SimulationParameters,
    dt: Optional[float] = None,
    max_steps: int = 2000,
    max_distance: float = 1.0e4,
    center=None,
) -> Optional[np.ndarray]:
    """
    Where a launch would hit the primary body, or None if it misses.

    Same march and arguments as predict_trajectory().
    """
    _, hit = predict_trajectory(position_scene, velocity_scene, params, dt,
                                max_steps, max_distance, center)
    return hit


def evolve_system(
    state: SimulationState,
    params: SimulationParameters,
    n_steps: int,
    show_progress: bool = True,
    stop_when_empty: bool = False,
) -> dict:
    """
    Evolve the simulation forward for n_steps ticks.

    Args:
        state: SimulationState object (modified in place)
        params: SimulationParameters object
        n_steps: Number of ticks to run
        show_progress: Whether to show progress bar (tqdm)
        stop_when_empty: Stop early once no projectile is active

    Returns:
        Dictionary with simulation statistics:
        - impacts: List of ImpactEvent in the order they happened
        - total_impacted / total_consumed / total_expired
        - final_time: Final simulation time [s]
        - final_timestep: Final tick number
    """
    integrator = ProjectileIntegrator.from_state(state, params)
    estimator = ImpactEstimator(params.scene_scale)
    impacts = []

    # Progress bar
    if show_progress:
        pbar = tqdm(total=n_steps, desc="Evolving system", unit="steps")

    for _ in range(n_steps):
        tick = advance(state, params, params.dt, params.speed_multiplier,
                       integrator=integrator, estimator=estimator)
        impacts.extend(tick.events)

        # Update progress bar
        if show_progress:
            pbar.update(1)
            if tick.events or tick.consumed or tick.expired:
                pbar.set_postfix({
                    'impacts': state.n_impacted,
                    'consumed': state.n_consumed,
                    'active': state.n_active
                })

        if stop_when_empty and state.n_active == 0:
            break

    if show_progress:
        pbar.close()

    return {
        'impacts': impacts,
        'total_impacted': state.n_impacted,
        'total_consumed': state.n_consumed,
        'total_expired': state.n_expired,
        'final_time': state.time,
        'final_timestep': state.timestep_count
    }


def run_simulation(
    params: SimulationParameters,
    seed: int = 42,
    show_progress: bool = True
) -> tuple:
    """
    Run a complete simulation from initialization to completion.

    This is the top-level driver function that:
    1. Initializes the simulation state
    2. Runs the time evolution
    3. Returns the final state and statistics

    Args:
        params: SimulationParameters object
        seed: Random seed for reproducibility
        show_progress: Whether to show progress bar

    Returns:
        (state, stats) tuple:
        - state: Final SimulationState object
        - stats: Dictionary with simulation statistics
    """
    from impactsim.initialization import initialize_simulation

    # Initialize simulation
    print("Initializing simulation...")
    state = initialize_simulation(params, seed=seed)

    n_steps = params.n_steps
    print(f"Running simulation: {n_steps} steps, dt={params.dt:.4f} s "
          f"(x{params.speed_multiplier:g}, {params.fidelity_mode.value} fidelity)")
    print(f"Projectiles: {state.n_projectiles}, orbiters: {len(state.orbiters)}")

    stability = check_timestep_stability(state, params)
    for message in stability['warnings']:
        print(message)

    if params.check_energy_conservation:
        initial_energy = calculate_total_energy(state, params)

    stats = evolve_system(state, params, n_steps, show_progress=show_progress,
                          stop_when_empty=not state.orbiters)

    print(f"\nSimulation complete!")
    print(f"  Final time: {state.time:.2f} s")
    print(f"  Impacts: {stats['total_impacted']}, burned up: {stats['total_consumed']}, "
          f"expired: {stats['total_expired']}")
    print(f"  Active projectiles: {state.n_active}")

    if params.check_energy_conservation:
        # Drag, ablation and removed projectiles all lower the total
        stats['initial_energy'] = initial_energy
        stats['final_energy'] = calculate_total_energy(state, params)
        print(f"  Mechanical energy: {initial_energy:.3e} J -> {stats['final_energy']:.3e} J")

    return state, stats
