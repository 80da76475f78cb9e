"""
Runtime diagnostics for simulation health checks.

This module provides functions to detect:
- Numerical blow-up (NaN/Inf positions or velocities)
- Projectiles moving fast enough to skip the surface margin in one step
- Energy drift of the conservative part of the high-fidelity system
"""

import numpy as np

from impactsim.physics import calculate_kinetic_energy, calculate_potential_energy


def calculate_total_energy(state, params):
    """
    Calculate total mechanical energy of the active projectiles.

    E_total = Σ KE_i + Σ PE(i, primary) + Σ PE(i, secondary) + Σ_{i<j} PE_ij

    Drag and ablation remove energy, so this is only conserved for
    projectiles outside the atmosphere.

    Args:
        state: SimulationState
        params: SimulationParameters

    Returns:
        float: Total energy [J]
    """
    active = state.active_projectiles()
    positions = [p.position_m(params.scene_scale) for p in active]

    E_kinetic = 0.0
    E_potential = 0.0

    for p, pos in zip(active, positions):
        velocity = p.physical_velocity if p.physical_velocity is not None \
            else p.velocity * params.scene_scale
        E_kinetic += calculate_kinetic_energy(p.mass, velocity)

        E_potential += calculate_potential_energy(
            pos, state.primary.position, p.mass, state.primary.mass,
            params.G, params.gravity_epsilon)
        if state.secondary is not None:
            E_potential += calculate_potential_energy(
                pos, state.secondary.position, p.mass, state.secondary.mass,
                params.G, params.gravity_epsilon)

    # Pairwise (count each pair once)
    for i in range(len(active)):
        for j in range(i + 1, len(active)):
            E_potential += calculate_potential_energy(
                positions[i], positions[j], active[i].mass, active[j].mass,
                params.G, params.gravity_epsilon)

    return E_kinetic + E_potential


def check_timestep_stability(state, params, dt=None):
    """
    Check whether the current state is numerically healthy.

    Args:
        state: SimulationState
        params: SimulationParameters
        dt: Effective timestep [s]; params.dt × params.speed_multiplier if None

    Returns:
        dict with:
            - is_stable: bool
            - max_speed: float [m/s]
            - warnings: list of warning messages
    """
    warnings = []
    if dt is None:
        dt = params.dt * params.speed_multiplier

    active = state.active_projectiles()
    if not active:
        return {'is_stable': True, 'max_speed': 0.0, 'warnings': warnings}

    # Check for NaN or Inf
    for p in active:
        velocity = p.physical_velocity if p.physical_velocity is not None else p.velocity
        if not (np.all(np.isfinite(p.position)) and np.all(np.isfinite(velocity))
                and np.isfinite(p.mass)):
            warnings.append(f"CRITICAL: Projectile {p.id} has NaN or Inf state - numerical instability!")
            return {
                'is_stable': False,
                'max_speed': np.nan,
                'warnings': warnings
            }

    max_speed = max(p.speed(params.scene_scale) for p in active)

    # Distance covered in one step vs the surface hit margin
    if params.surface_epsilon > 0 and max_speed * dt > params.surface_epsilon:
        warnings.append(
            f"WARNING: Fastest projectile moves {max_speed * dt / 1000:.1f} km per step, "
            f"more than the surface margin ({params.surface_epsilon / 1000:.1f} km)."
        )
        warnings.append("         Impacts may be detected late or missed; reduce the timestep.")

    escape_speed = np.sqrt(2.0 * params.G * state.primary.mass / state.primary.radius)
    if max_speed > 10.0 * escape_speed:
        warnings.append(
            f"CAUTION: Projectile speed ({max_speed / 1000:.1f} km/s) is over ten times "
            f"the surface escape speed ({escape_speed / 1000:.1f} km/s)."
        )

    return {
        'is_stable': not any(w.startswith(("WARNING", "CRITICAL")) for w in warnings),
        'max_speed': max_speed,
        'warnings': warnings
    }
