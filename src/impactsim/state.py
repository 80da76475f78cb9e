"""
Simulation state management for the impact simulation.

This module defines the entity records (celestial bodies and projectiles)
and the SimulationState container that owns them. The caller owns the
SimulationState and passes it into every tick; nothing here is global.

Units:
- CelestialBody positions: meters
- Projectile positions: scene units (meters / SCENE_SCALE)
- Projectile velocity: scene units per second
- Projectile physical_velocity: m/s
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np

from impactsim import constants as const


class InvalidConstructionError(ValueError):
    """Raised when an entity is created with non-physical parameters."""


class ProjectileStatus(Enum):
    """Lifecycle states of a projectile."""

    FLYING = "flying"
    BURNING = "burning"
    IMPACTED = "impacted"
    CONSUMED = "consumed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (ProjectileStatus.IMPACTED,
                        ProjectileStatus.CONSUMED,
                        ProjectileStatus.EXPIRED)


def sphere_mass(diameter: float, density: float) -> float:
    """Mass [kg] of a sphere of given diameter [m] and density [kg/m³]."""
    radius = diameter / 2.0
    return density * (4.0 / 3.0) * np.pi * radius**3


def sphere_diameter(mass: float, density: float) -> float:
    """
    Diameter [m] of a sphere holding `mass` at constant `density`.

    Inverse of sphere_mass: r = cbrt(3V / 4π) with V = m / ρ.
    """
    volume = mass / density
    radius = (3.0 * volume / (4.0 * np.pi)) ** (1.0 / 3.0)
    return 2.0 * radius


def cross_section_area(diameter: float) -> float:
    """Frontal area [m²] of a sphere."""
    return np.pi * (diameter / 2.0) ** 2


@dataclass
class CelestialBody:
    """
    A gravitating body.

    Attributes:
        name: Display name
        mass: Mass [kg], must be > 0
        radius: Radius [m], must be > 0
        position: Position [m] relative to the fixed origin
    """

    name: str
    mass: float
    radius: float
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        if not self.mass > 0:
            raise InvalidConstructionError(
                f"{self.name}: mass must be positive, got {self.mass}"
            )
        if not self.radius > 0:
            raise InvalidConstructionError(
                f"{self.name}: radius must be positive, got {self.radius}"
            )
        self.position = np.asarray(self.position, dtype=np.float64).copy()


@dataclass
class Projectile:
    """
    A falling body with physical mass, size and velocity.

    physical_velocity is always materialised at spawn; velocity mirrors
    it in scene units so either fidelity mode can read a consistent state.
    """

    id: int
    position: np.ndarray  # scene units
    velocity: np.ndarray  # scene units / s
    mass: float  # kg
    diameter: float  # m
    material_density: float  # kg/m³
    physical_velocity: Optional[np.ndarray] = None  # m/s
    cross_section_area: float = 0.0  # m²
    active: bool = True
    burning: bool = False
    burn_intensity: float = 0.0
    time_to_live: Optional[float] = None  # s
    status: ProjectileStatus = ProjectileStatus.FLYING
    initial_mass: float = 0.0

    def __post_init__(self):
        if not self.mass > 0:
            raise InvalidConstructionError(f"Projectile mass must be positive, got {self.mass}")
        if not self.diameter > 0:
            raise InvalidConstructionError(f"Projectile diameter must be positive, got {self.diameter}")
        if not self.material_density > 0:
            raise InvalidConstructionError(
                f"Projectile density must be positive, got {self.material_density}"
            )
        self.position = np.asarray(self.position, dtype=np.float64).copy()
        self.velocity = np.asarray(self.velocity, dtype=np.float64).copy()
        if self.physical_velocity is not None:
            self.physical_velocity = np.asarray(self.physical_velocity, dtype=np.float64).copy()
        if self.cross_section_area <= 0.0:
            self.cross_section_area = cross_section_area(self.diameter)
        if self.initial_mass <= 0.0:
            self.initial_mass = self.mass

    def position_m(self, scene_scale: float = const.SCENE_SCALE) -> np.ndarray:
        """Position in meters."""
        return self.position * scene_scale

    def speed(self, scene_scale: float = const.SCENE_SCALE) -> float:
        """Physical speed [m/s], falling back to scaled scene velocity."""
        if self.physical_velocity is not None:
            return float(np.linalg.norm(self.physical_velocity))
        return float(np.linalg.norm(self.velocity)) * scene_scale

    def deactivate(self, status: ProjectileStatus):
        """Move to a terminal status. No physical mutation happens afterwards."""
        self.active = False
        self.burning = False
        self.status = status


@dataclass
class EntitySnapshot:
    """Render-facing view of an entity after a tick."""

    id: int
    kind: str  # "projectile", "secondary" or "orbiter"
    position: np.ndarray  # scene units
    active: bool
    status: Optional[str] = None


class SimulationState:
    """
    Container for everything that changes from tick to tick.

    Holds the primary and (optional) secondary body, the list of live
    projectiles, decorative orbiting objects and the random source used
    for wind jitter, burn-up and tsunami sizing.
    """

    def __init__(self,
                 primary: CelestialBody,
                 secondary: Optional[CelestialBody] = None,
                 secondary_distance: float = 0.0,
                 secondary_angular_speed: float = 0.0,
                 rng: Optional[np.random.Generator] = None):
        """
        Initialize an empty simulation.

        Args:
            primary: Body projectiles fall toward (fixed at its position)
            secondary: Optional orbiting body that also attracts projectiles
            secondary_distance: Circular orbit radius of the secondary [m]
            secondary_angular_speed: Orbital angular speed of the secondary [rad/s]
            rng: Random generator; a fresh unseeded one if omitted
        """
        self.primary = primary
        self.secondary = secondary
        self.secondary_distance = secondary_distance
        self.secondary_angular_speed = secondary_angular_speed
        self.secondary_angle = 0.0  # rad
        self.rng = rng if rng is not None else np.random.default_rng()

        self.projectiles: List[Projectile] = []
        self.orbiters = []  # List[OrbitingObject]

        # Simulation metadata
        self.time = 0.0  # s
        self.timestep_count = 0
        self.next_projectile_id = 0

        # Terminal transition counters
        self.n_impacted = 0
        self.n_consumed = 0
        self.n_expired = 0

        if secondary is not None:
            self.update_secondary(0.0)

    @property
    def n_projectiles(self) -> int:
        """Number of tracked projectiles."""
        return len(self.projectiles)

    @property
    def n_active(self) -> int:
        """Number of active projectiles."""
        return sum(1 for p in self.projectiles if p.active)

    def active_projectiles(self) -> List[Projectile]:
        return [p for p in self.projectiles if p.active]

    def update_secondary(self, dt: float):
        """
        Advance the secondary body along its circular orbit.

        The orbit lies in the xz-plane (y is "up" in scene coordinates).
        """
        if self.secondary is None:
            return
        self.secondary_angle += self.secondary_angular_speed * dt
        self.secondary_angle %= const.TWO_PI
        self.secondary.position = self.primary.position + np.array([
            np.cos(self.secondary_angle) * self.secondary_distance,
            0.0,
            np.sin(self.secondary_angle) * self.secondary_distance,
        ])

    def prune_inactive(self) -> int:
        """Drop projectiles in a terminal state. Returns how many were removed."""
        before = len(self.projectiles)
        self.projectiles = [p for p in self.projectiles if p.active]
        return before - len(self.projectiles)

    def __repr__(self) -> str:
        """String representation of simulation state."""
        lines = [
            f"SimulationState(time={self.time:.3f} s, step={self.timestep_count})",
            f"  Primary: {self.primary.name}",
            f"  Secondary: {self.secondary.name if self.secondary else 'none'}",
            f"  Projectiles: {self.n_active}/{self.n_projectiles} active",
            f"  Impacted: {self.n_impacted}, consumed: {self.n_consumed}, "
            f"expired: {self.n_expired}",
            f"  Orbiters: {len(self.orbiters)}",
        ]
        return "\n".join(lines)
