"""
Gravity field evaluation for projectiles.

Two force laws are supported and selected per simulation run:
- FidelityMode.HIGH: Newtonian gravity from the primary, the secondary and
  every other active projectile, in SI units.
- FidelityMode.REDUCED: a single a = -k/r² pull toward the primary origin
  in scene units, plus a weak approximate secondary pull.

Projectile-projectile gravity is O(N²) per tick. Keep active projectile
counts in the tens.
"""

from enum import Enum
from typing import Optional, Sequence

import numpy as np

from impactsim import constants as const
from impactsim.physics import (
    gravitational_force,
    pairwise_gravity,
    simplified_gravity_acceleration,
)
from impactsim.state import CelestialBody, Projectile


class FidelityMode(Enum):
    """Physics fidelity chosen when a simulation is constructed."""

    HIGH = "high"
    REDUCED = "reduced"

    @classmethod
    def parse(cls, value) -> 'FidelityMode':
        """Accept an enum member or its (case-insensitive) string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"fidelity_mode must be 'high' or 'reduced', got '{value}'"
            ) from None


class GravityField:
    """
    Gravity sources acting on projectiles.

    Args:
        primary: Body projectiles fall toward
        secondary: Optional second attractor (e.g. the Moon)
        mode: Force law to use
        G: Gravitational constant [m³/(kg·s²)]
        epsilon: Minimum separation for Newtonian forces [m]
        gravity_strength: k of the reduced law [scene³/s²]
        secondary_strength: k of the reduced secondary pull [scene³/s²]
        scene_scale: Meters per scene unit
    """

    def __init__(self,
                 primary: CelestialBody,
                 secondary: Optional[CelestialBody] = None,
                 mode: FidelityMode = FidelityMode.HIGH,
                 G: float = const.G,
                 epsilon: float = const.GRAVITY_EPSILON,
                 gravity_strength: float = const.GRAVITY_STRENGTH,
                 secondary_strength: float = const.SECONDARY_GRAVITY_STRENGTH,
                 scene_scale: float = const.SCENE_SCALE):
        self.primary = primary
        self.secondary = secondary
        self.mode = FidelityMode.parse(mode)
        self.G = G
        self.epsilon = epsilon
        self.gravity_strength = gravity_strength
        self.secondary_strength = secondary_strength
        self.scene_scale = scene_scale

    def force_between(self, pos_a, mass_a: float, pos_b, mass_b: float) -> np.ndarray:
        """
        Newtonian force on A from B [N]; zero when closer than epsilon.
        """
        return gravitational_force(
            np.asarray(pos_a, dtype=np.float64), float(mass_a),
            np.asarray(pos_b, dtype=np.float64), float(mass_b),
            self.G, self.epsilon,
        )

    def body_force(self, position_m: np.ndarray, mass: float) -> np.ndarray:
        """Force from the primary and secondary bodies on a mass at position_m."""
        force = self.force_between(position_m, mass,
                                   self.primary.position, self.primary.mass)
        if self.secondary is not None:
            force += self.force_between(position_m, mass,
                                        self.secondary.position, self.secondary.mass)
        return force

    def projectile_force(self, projectile: Projectile,
                         others: Sequence[Projectile]) -> np.ndarray:
        """Sum of forces from every other active projectile [N]."""
        group = [projectile] + [p for p in others if p is not projectile and p.active]
        if len(group) == 1:
            return np.zeros(3)

        positions = np.array([p.position_m(self.scene_scale) for p in group])
        masses = np.array([p.mass for p in group], dtype=np.float64)
        active = np.ones(len(group), dtype=np.bool_)
        return pairwise_gravity(0, positions, masses, active, self.G, self.epsilon)

    def total_force(self, projectile: Projectile,
                    others: Sequence[Projectile] = ()) -> np.ndarray:
        """
        Total high-fidelity gravitational force on a projectile [N].

        primary + secondary (if any) + every other active projectile
        """
        position_m = projectile.position_m(self.scene_scale)
        return (self.body_force(position_m, projectile.mass)
                + self.projectile_force(projectile, others))

    def simplified_acceleration(self, position_scene: np.ndarray) -> np.ndarray:
        """Reduced-fidelity pull toward the primary's center [scene/s²]."""
        relative = (np.asarray(position_scene, dtype=np.float64)
                    - self.primary.position / self.scene_scale)
        return simplified_gravity_acceleration(
            relative,
            self.gravity_strength,
            self.epsilon / self.scene_scale,
        )

    def simplified_secondary_acceleration(self, position_scene: np.ndarray) -> np.ndarray:
        """
        Approximate secondary pull in scene units [scene/s²].

        Zero without a secondary body or when closer than
        SECONDARY_MIN_DISTANCE scene units.
        """
        if self.secondary is None:
            return np.zeros(3)
        to_secondary = self.secondary.position / self.scene_scale - position_scene
        distance = np.linalg.norm(to_secondary)
        if distance <= const.SECONDARY_MIN_DISTANCE:
            return np.zeros(3)
        return self.secondary_strength / distance**2 * (to_secondary / distance)
