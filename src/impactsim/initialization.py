"""
Initialization functions for the impact simulation.

This module builds a SimulationState from SimulationParameters and
provides the entity-creation entry point used by launch actions:
spawn_projectile converts meters and m/s into the projectile record,
materialising both the scene-unit and physical velocities.
"""

import numpy as np
from typing import Optional, Tuple

from impactsim import constants as const
from impactsim.config import SimulationParameters, OrbitConfig
from impactsim.kepler import OrbitalElements, OrbitingObject
from impactsim.state import (
    CelestialBody,
    InvalidConstructionError,
    Projectile,
    SimulationState,
    cross_section_area,
    sphere_mass,
)


def projectile_properties(diameter: float, density: float) -> Tuple[float, float]:
    """
    Mass and frontal area of a spherical body.

    Args:
        diameter: Diameter [m]
        density: Bulk density [kg/m³]

    Returns:
        (mass [kg], area [m²])

    Raises:
        InvalidConstructionError: If diameter or density is not positive
    """
    if not diameter > 0:
        raise InvalidConstructionError(f"Diameter must be positive, got {diameter}")
    if not density > 0:
        raise InvalidConstructionError(f"Density must be positive, got {density}")
    return sphere_mass(diameter, density), cross_section_area(diameter)


def catalog_diameter(min_diameter: float, max_diameter: float) -> float:
    """
    Representative diameter [m] for a catalog body given its estimated range.

    Catalog entries publish a min/max diameter estimate; the midpoint is used.
    """
    if not 0 < min_diameter <= max_diameter:
        raise InvalidConstructionError(
            f"Invalid diameter range [{min_diameter}, {max_diameter}]"
        )
    return 0.5 * (min_diameter + max_diameter)


def spawn_projectile(
    state: SimulationState,
    params: SimulationParameters,
    position_m,
    velocity_m_s,
    diameter_m: float,
    density_kg_m3: float = const.DEFAULT_DENSITY,
) -> Projectile:
    """
    Create a projectile and add it to the simulation.

    Args:
        state: SimulationState to add to (modified in place)
        params: Simulation parameters (scene scale, time-to-live)
        position_m: Initial position [m] relative to the origin
        velocity_m_s: Initial velocity [m/s]
        diameter_m: Diameter [m], must be > 0
        density_kg_m3: Bulk density [kg/m³], must be > 0

    Returns:
        The new Projectile (also appended to state.projectiles)

    Raises:
        InvalidConstructionError: On non-positive diameter or density
    """
    mass, area = projectile_properties(diameter_m, density_kg_m3)

    position_m = np.asarray(position_m, dtype=np.float64)
    velocity_m_s = np.asarray(velocity_m_s, dtype=np.float64)
    if position_m.shape != (3,) or velocity_m_s.shape != (3,):
        raise InvalidConstructionError("Position and velocity must be 3-vectors")

    projectile = Projectile(
        id=state.next_projectile_id,
        position=position_m / params.scene_scale,
        velocity=velocity_m_s / params.scene_scale,
        physical_velocity=velocity_m_s,
        mass=mass,
        diameter=diameter_m,
        material_density=density_kg_m3,
        cross_section_area=area,
        time_to_live=params.time_to_live,
    )
    state.next_projectile_id += 1
    state.projectiles.append(projectile)
    return projectile


def build_orbiter(orbit: OrbitConfig, center: Optional[np.ndarray] = None) -> OrbitingObject:
    """Create a decorative orbiting object from its configuration."""
    elements = OrbitalElements.from_period(
        orbit.semi_major_axis,
        orbit.eccentricity,
        orbit.period,
        inclination=orbit.inclination,
        longitude_of_ascending_node=orbit.longitude_of_ascending_node,
        argument_of_periapsis=orbit.argument_of_periapsis,
        mean_anomaly_at_epoch=orbit.mean_anomaly_at_epoch,
    )
    return OrbitingObject(orbit.name, elements, center=center)


def initialize_simulation(params: SimulationParameters, seed: Optional[int] = 42) -> SimulationState:
    """
    Initialize complete simulation state from parameters.

    Args:
        params: SimulationParameters object
        seed: Random seed for reproducibility (None for a fresh entropy source)

    Returns:
        SimulationState with bodies, orbiters and initial projectiles

    Raises:
        InvalidConstructionError: If any body, orbit or projectile is invalid
    """
    rng = np.random.default_rng(seed)

    primary = CelestialBody(params.primary.name, params.primary.mass, params.primary.radius)

    secondary = None
    distance = 0.0
    angular_speed = 0.0
    if params.secondary is not None:
        secondary = CelestialBody(params.secondary.name, params.secondary.mass,
                                  params.secondary.radius)
        distance = params.secondary.distance
        angular_speed = params.secondary.angular_speed

    state = SimulationState(primary, secondary,
                            secondary_distance=distance,
                            secondary_angular_speed=angular_speed,
                            rng=rng)

    for orbit in params.orbiters:
        state.orbiters.append(build_orbiter(orbit, center=primary.position))

    for proj in params.projectiles:
        spawn_projectile(state, params, proj.position, proj.velocity,
                         proj.diameter, proj.density)

    return state
