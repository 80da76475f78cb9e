"""
Per-tick projectile integration.

A single integrator serves both fidelity modes:

HIGH (SI units):
  forces = primary + secondary + pairwise projectile gravity + drag
  drag   = 0.5 ρ |v - wind|² Cd A, opposing the air-relative velocity
  ablation removes mass while above the burn speed inside the atmosphere
  semi-implicit Euler: v += a dt, then x += v dt

REDUCED (scene units):
  a = -k/r² toward the origin + weak secondary pull
      - constant drag decay inside the atmosphere
  projectiles expire when their time-to-live runs out

STATE MACHINE:
  FLYING -> BURNING     inside the atmosphere above the burn speed
  BURNING -> FLYING     once speed drops below the burn speed
  BURNING -> CONSUMED   stochastic burn-up (terminal)
  any     -> IMPACTED   |r| <= R_primary + surface_epsilon (terminal)
  any     -> EXPIRED    time-to-live <= 0, reduced mode only (terminal)
"""

from typing import Optional, Sequence

import numpy as np

from impactsim import constants as const
from impactsim.atmosphere import AtmosphereModel
from impactsim.config import SimulationParameters
from impactsim.gravity import FidelityMode, GravityField
from impactsim.physics import drag_force, terminal_velocity
from impactsim.state import (
    Projectile,
    ProjectileStatus,
    SimulationState,
    cross_section_area,
    sphere_diameter,
)


def ablation_coefficient(pressure_ratio: float,
                         base: float = const.ABLATION_COEFFICIENT) -> float:
    """
    Ablation efficiency [s/m] as a function of P / P0.

    Heat transfer to the surface grows with the ambient pressure; the
    coefficient falls to half its sea-level value in the thin upper air.
    """
    ratio = min(max(pressure_ratio, 0.0), 1.0)
    return base * (0.5 + 0.5 * ratio)


def burn_up_probability(burn_intensity: float, speed_ratio: float, dt: float,
                        burn_rate: float = const.BURN_RATE,
                        max_speed_ratio: float = const.MAX_SPEED_RATIO) -> float:
    """
    Chance that a burning projectile is consumed during one step.

    p = burn_intensity × burn_rate_factor, with
    burn_rate_factor = burn_rate × dt × min(speed / v_terminal, max_speed_ratio)

    Non-decreasing in both burn_intensity and speed_ratio; clipped to [0, 1].
    """
    ratio = min(max(speed_ratio, 0.0), max_speed_ratio)
    factor = burn_rate * dt * ratio
    return float(min(max(burn_intensity * factor, 0.0), 1.0))


class ProjectileIntegrator:
    """
    Advances projectiles through one tick.

    Args:
        gravity: Gravity field (its mode selects the fidelity)
        atmosphere: Atmosphere model
        params: Simulation parameters (entry physics tuning)
        rng: Default random source when step() is not given one
    """

    def __init__(self, gravity: GravityField, atmosphere: AtmosphereModel,
                 params: SimulationParameters,
                 rng: Optional[np.random.Generator] = None):
        self.gravity = gravity
        self.atmosphere = atmosphere
        self.params = params
        self.rng = rng if rng is not None else np.random.default_rng()

    @classmethod
    def from_state(cls, state: SimulationState,
                   params: SimulationParameters) -> 'ProjectileIntegrator':
        """Build the gravity field and atmosphere for a state's bodies."""
        gravity = GravityField(
            state.primary,
            state.secondary,
            mode=params.fidelity_mode,
            G=params.G,
            epsilon=params.gravity_epsilon,
            gravity_strength=params.gravity_strength,
            secondary_strength=params.secondary_gravity_strength,
            scene_scale=params.scene_scale,
        )
        atmosphere = AtmosphereModel(
            params.atmosphere_layers,
            sea_level_density=params.sea_level_density,
            scale_height=params.scale_height,
            wind_strength=params.wind_strength,
            wind_jitter=params.wind_jitter,
        )
        return cls(gravity, atmosphere, params, rng=state.rng)

    @property
    def mode(self) -> FidelityMode:
        return self.gravity.mode

    def distance_to_primary(self, projectile: Projectile) -> float:
        """Distance [m] from the primary body's center."""
        offset = projectile.position_m(self.params.scene_scale) - self.gravity.primary.position
        return float(np.linalg.norm(offset))

    def altitude(self, projectile: Projectile) -> float:
        """Height [m] above the primary body's surface."""
        return self.distance_to_primary(projectile) - self.gravity.primary.radius

    def check_collision(self, projectile: Projectile) -> bool:
        """True once the projectile is within surface_epsilon of the surface."""
        limit = self.gravity.primary.radius + self.params.surface_epsilon
        return self.distance_to_primary(projectile) <= limit

    def speed_ratio(self, projectile: Projectile, altitude: float, speed: float) -> float:
        """Speed relative to the local terminal velocity."""
        r = self.gravity.primary.radius + max(altitude, 0.0)
        local_g = self.params.G * self.gravity.primary.mass / (r * r)
        v_terminal = terminal_velocity(projectile.mass,
                                       self.atmosphere.density(altitude),
                                       self.params.drag_coefficient,
                                       projectile.cross_section_area,
                                       local_g)
        if not np.isfinite(v_terminal) or v_terminal <= 0.0:
            return 0.0
        return speed / v_terminal

    def update_burn_state(self, projectile: Projectile, dt: float,
                          rng: Optional[np.random.Generator] = None) -> bool:
        """
        Enter, continue or leave the BURNING state.

        Returns:
            True if the projectile was consumed this step
        """
        rng = rng if rng is not None else self.rng
        altitude = self.altitude(projectile)
        speed = projectile.speed(self.params.scene_scale)

        if altitude < self.atmosphere.height and speed > self.params.burn_speed_threshold:
            projectile.burning = True
            projectile.status = ProjectileStatus.BURNING
            projectile.burn_intensity = min(
                1.0, projectile.burn_intensity + self.params.burn_ramp_rate * dt)

            probability = burn_up_probability(
                projectile.burn_intensity,
                self.speed_ratio(projectile, altitude, speed),
                dt,
                burn_rate=self.params.burn_rate,
            )
            if rng.random() < probability:
                projectile.deactivate(ProjectileStatus.CONSUMED)
                return True
        elif projectile.burning:
            projectile.burning = False
            projectile.status = ProjectileStatus.FLYING

        return False

    def ablate(self, projectile: Projectile, altitude: float, speed: float, dt: float) -> float:
        """
        Remove mass by atmospheric ablation and re-derive the size.

        dm = σ(P/P0) × ρ × v² × A × dt

        Mass always strictly decreases but never reaches zero here:
        a single step removes at most MAX_ABLATION_FRACTION of the mass.
        Full consumption is left to the burn-up check.

        Returns:
            Mass removed [kg]
        """
        density = self.atmosphere.density(altitude)
        if speed <= self.params.burn_speed_threshold or density <= 0.0:
            return 0.0

        sigma = ablation_coefficient(self.atmosphere.pressure_ratio(altitude),
                                     self.params.ablation_coefficient)
        loss = sigma * density * speed**2 * projectile.cross_section_area * dt

        old_mass = projectile.mass
        new_mass = max(old_mass - loss, old_mass * (1.0 - const.MAX_ABLATION_FRACTION))
        new_mass = min(new_mass, np.nextafter(old_mass, 0.0))

        projectile.mass = new_mass
        projectile.diameter = sphere_diameter(new_mass, projectile.material_density)
        projectile.cross_section_area = cross_section_area(projectile.diameter)
        return old_mass - new_mass

    def step(self, projectile: Projectile, all_active: Sequence[Projectile], dt: float,
             rng: Optional[np.random.Generator] = None) -> bool:
        """
        Advance one projectile by dt seconds.

        Args:
            projectile: Projectile to advance (modified in place)
            all_active: Every active projectile, for pairwise gravity
            dt: Timestep [s], already scaled by the speed multiplier
            rng: Random source for burn-up and wind jitter

        Returns:
            True if the projectile hit the primary body this step
        """
        if not projectile.active:
            return False
        rng = rng if rng is not None else self.rng

        if self.update_burn_state(projectile, dt, rng):
            return False

        if self.mode == FidelityMode.HIGH:
            self._step_high(projectile, all_active, dt, rng)
        else:
            self._step_reduced(projectile, dt)

        if self.check_collision(projectile):
            projectile.deactivate(ProjectileStatus.IMPACTED)
            return True

        if self.mode == FidelityMode.REDUCED and projectile.time_to_live is not None:
            projectile.time_to_live -= dt
            if projectile.time_to_live <= 0.0:
                projectile.deactivate(ProjectileStatus.EXPIRED)

        return False

    def _step_high(self, projectile: Projectile, all_active: Sequence[Projectile],
                   dt: float, rng: np.random.Generator):
        scale = self.params.scene_scale
        if projectile.physical_velocity is None:
            projectile.physical_velocity = projectile.velocity * scale

        altitude = self.altitude(projectile)
        speed = float(np.linalg.norm(projectile.physical_velocity))

        self.ablate(projectile, altitude, speed, dt)

        force = self.gravity.total_force(projectile, all_active)
        if altitude >= 0.0:
            density = self.atmosphere.density(altitude)
            if density > 0.0:
                wind = self.atmosphere.wind_vector(altitude, rng)
                force += drag_force(projectile.physical_velocity, wind, density,
                                    self.params.drag_coefficient,
                                    projectile.cross_section_area)

        acceleration = force / projectile.mass

        # Semi-implicit Euler: velocity first, then position with the new velocity
        projectile.physical_velocity = projectile.physical_velocity + acceleration * dt
        position_m = projectile.position_m(scale) + projectile.physical_velocity * dt

        projectile.position = position_m / scale
        projectile.velocity = projectile.physical_velocity / scale

    def _step_reduced(self, projectile: Projectile, dt: float):
        scale = self.params.scene_scale
        altitude = self.altitude(projectile)

        acceleration = (self.gravity.simplified_acceleration(projectile.position)
                        + self.gravity.simplified_secondary_acceleration(projectile.position))

        if altitude < self.atmosphere.height:
            speed = np.linalg.norm(projectile.velocity)
            if speed > 0.0:
                acceleration = acceleration - self.params.drag_decay * projectile.velocity / speed

        projectile.velocity = projectile.velocity + acceleration * dt
        projectile.position = projectile.position + projectile.velocity * dt
        projectile.physical_velocity = projectile.velocity * scale
