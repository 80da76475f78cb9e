"""
Physics kernels for the impact simulation.

All performance-critical functions are JIT-compiled with Numba.
These functions must be Numba-compatible (NumPy arrays, no Python objects).
"""

import numpy as np
from numba import jit


@jit(nopython=True)
def gravitational_force(pos_a, mass_a, pos_b, mass_b, G, epsilon):
    """
    Newtonian gravitational force on body A from body B.

    F = G × m_a × m_b / r² × r_hat, with r_hat pointing from A to B

    Args:
        pos_a: Position of A [m] (shape: (3,))
        mass_a: Mass of A [kg]
        pos_b: Position of B [m] (shape: (3,))
        mass_b: Mass of B [kg]
        G: Gravitational constant [m³/(kg·s²)]
        epsilon: Minimum separation [m]

    Returns:
        force: 3D force vector on A [N] (shape: (3,))

    Notes:
        - Returns zero if the separation is below epsilon (avoid singularity)
    """
    r_vec = pos_b - pos_a
    r_squared = r_vec[0]**2 + r_vec[1]**2 + r_vec[2]**2

    if r_squared < epsilon * epsilon:
        return np.zeros(3)

    r = np.sqrt(r_squared)
    force_magnitude = G * mass_a * mass_b / r_squared
    return force_magnitude * (r_vec / r)


@jit(nopython=True)
def pairwise_gravity(i, positions, masses, active, G, epsilon):
    """
    Total gravitational force on projectile i from every other active projectile.

    This is the N² part of the force calculation. No pair is skipped
    except self-interaction, inactive projectiles and coincident pairs.

    Args:
        i: Index of the projectile to evaluate
        positions: All projectile positions [m] (shape: (N, 3))
        masses: All projectile masses [kg] (shape: (N,))
        active: Active flags (shape: (N,))
        G: Gravitational constant
        epsilon: Minimum separation [m]

    Returns:
        force: 3D force vector [N] (shape: (3,))
    """
    force = np.zeros(3)
    n_total = len(positions)

    for j in range(n_total):
        if i == j or not active[j]:
            continue
        force += gravitational_force(positions[i], masses[i],
                                     positions[j], masses[j], G, epsilon)

    return force


@jit(nopython=True)
def simplified_gravity_acceleration(pos, strength, min_distance):
    """
    Reduced-fidelity gravity toward the origin.

    a = -k / r² × r_hat

    Args:
        pos: Position [scene units] (shape: (3,))
        strength: Tunable constant k replacing G × M [scene³/s²]
        min_distance: Separation below which no acceleration applies

    Returns:
        accel: 3D acceleration [scene/s²] (shape: (3,))
    """
    r_squared = pos[0]**2 + pos[1]**2 + pos[2]**2
    if r_squared < min_distance * min_distance:
        return np.zeros(3)
    r = np.sqrt(r_squared)
    return -strength / r_squared * (pos / r)


@jit(nopython=True)
def drag_force(velocity, wind, density, drag_coefficient, area):
    """
    Aerodynamic drag opposing the air-relative velocity.

    F = 0.5 × ρ × |v_rel|² × Cd × A, directed along -v_rel,
    where v_rel = v - wind

    Args:
        velocity: Body velocity [m/s] (shape: (3,))
        wind: Wind velocity [m/s] (shape: (3,))
        density: Air density [kg/m³]
        drag_coefficient: Cd (dimensionless)
        area: Cross-section area [m²]

    Returns:
        force: 3D drag force [N] (shape: (3,))

    Notes:
        - Returns zero for relative speeds below 1 m/s
    """
    v_rel = velocity - wind
    speed_squared = v_rel[0]**2 + v_rel[1]**2 + v_rel[2]**2
    if speed_squared < 1.0 or density <= 0.0:
        return np.zeros(3)
    speed = np.sqrt(speed_squared)
    magnitude = 0.5 * density * speed_squared * drag_coefficient * area
    return -magnitude * (v_rel / speed)


@jit(nopython=True)
def terminal_velocity(mass, density, drag_coefficient, area, gravity):
    """
    Speed at which drag balances weight: v_t = sqrt(2 m g / (ρ Cd A)).

    Returns infinity in vacuum.
    """
    denominator = density * drag_coefficient * area
    if denominator <= 0.0:
        return np.inf
    return np.sqrt(2.0 * mass * gravity / denominator)


@jit(nopython=True)
def calculate_kinetic_energy(mass, velocity):
    """
    Classical kinetic energy KE = ½ m v².

    Args:
        mass: Mass [kg]
        velocity: 3D velocity [m/s] (shape: (3,))

    Returns:
        float: Kinetic energy [J]
    """
    return 0.5 * mass * (velocity[0]**2 + velocity[1]**2 + velocity[2]**2)


@jit(nopython=True)
def calculate_potential_energy(pos1, pos2, mass1, mass2, G, epsilon):
    """
    Gravitational potential energy between two bodies.

    PE = -G × m1 × m2 / r

    Returns:
        float: Potential energy [J] (negative), 0 below epsilon separation
    """
    r_vec = pos2 - pos1
    r_squared = r_vec[0]**2 + r_vec[1]**2 + r_vec[2]**2

    if r_squared < epsilon * epsilon:
        return 0.0

    return -G * mass1 * mass2 / np.sqrt(r_squared)
