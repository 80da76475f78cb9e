"""
Configuration management for the impact simulation.

This module handles loading and parsing YAML configuration files,
converting all parameters to SI units (km → m, degrees → radians,
days → seconds where the YAML uses friendlier units).
"""

from dataclasses import dataclass, field
from typing import List, Any, Optional, Tuple
import yaml
from pathlib import Path
import numpy as np

from impactsim import constants as const
from impactsim.atmosphere import AtmosphereLayer, DEFAULT_LAYERS
from impactsim.gravity import FidelityMode

# Above this many simultaneous projectiles the O(N²) pairwise gravity
# becomes the dominant per-tick cost.
MAX_RECOMMENDED_PROJECTILES = 50


@dataclass
class BodyConfig:
    """Configuration for a gravitating body."""

    name: str
    mass: float  # kg
    radius: float  # m

    def __repr__(self):
        """Human-readable representation."""
        return f"{self.name}: {self.mass:.3e} kg, R={self.radius / 1000:.1f} km"


@dataclass
class SecondaryBodyConfig(BodyConfig):
    """Configuration for the orbiting secondary body."""

    distance: float = const.MOON_DISTANCE  # m, circular orbit radius
    angular_speed: float = const.MOON_ANGULAR_SPEED  # rad/s

    def __repr__(self):
        """Human-readable representation."""
        return (f"{self.name}: {self.mass:.3e} kg, R={self.radius / 1000:.1f} km, "
                f"orbit {self.distance / 1000:.0f} km")


@dataclass
class OrbitConfig:
    """Configuration for a decorative orbiting object."""

    name: str
    semi_major_axis: float  # m
    eccentricity: float
    period: float  # s
    inclination: float = 0.0  # rad
    longitude_of_ascending_node: float = 0.0  # rad
    argument_of_periapsis: float = 0.0  # rad
    mean_anomaly_at_epoch: float = 0.0  # rad


@dataclass
class ProjectileConfig:
    """Initial conditions for a projectile launched at t=0."""

    position: Tuple[float, float, float]  # m
    velocity: Tuple[float, float, float]  # m/s
    diameter: float  # m
    density: float = const.DEFAULT_DENSITY  # kg/m³


@dataclass
class SimulationParameters:
    """
    Container for all simulation parameters.

    All internal values stored in SI units:
    - Distance: meters
    - Time: seconds
    - Mass: kilograms
    - Angles: radians
    """

    # Metadata
    simulation_name: str = "impact_simulation"

    # Bodies
    primary: BodyConfig = field(default_factory=lambda: BodyConfig(
        "Earth", const.EARTH_MASS, const.EARTH_RADIUS))
    secondary: Optional[SecondaryBodyConfig] = field(default_factory=lambda: SecondaryBodyConfig(
        "Moon", const.MOON_MASS, const.MOON_RADIUS))

    # Atmosphere
    atmosphere_layers: List[AtmosphereLayer] = field(default_factory=lambda: list(DEFAULT_LAYERS))
    sea_level_density: float = const.SEA_LEVEL_DENSITY  # kg/m³
    scale_height: float = const.SCALE_HEIGHT  # m
    wind_strength: float = const.WIND_STRENGTH
    wind_jitter: float = const.WIND_JITTER  # rad

    # Physics options
    fidelity_mode: FidelityMode = FidelityMode.HIGH
    G: float = const.G
    gravity_epsilon: float = const.GRAVITY_EPSILON  # m
    surface_epsilon: float = const.SURFACE_EPSILON  # m
    scene_scale: float = const.SCENE_SCALE  # m per scene unit
    drag_coefficient: float = const.DRAG_COEFFICIENT
    burn_speed_threshold: float = const.BURN_SPEED_THRESHOLD  # m/s
    burn_ramp_rate: float = const.BURN_RAMP_RATE  # 1/s
    burn_rate: float = const.BURN_RATE  # 1/s
    ablation_coefficient: float = const.ABLATION_COEFFICIENT  # s/m
    gravity_strength: float = const.GRAVITY_STRENGTH  # scene³/s², reduced mode
    secondary_gravity_strength: float = const.SECONDARY_GRAVITY_STRENGTH  # scene³/s²
    drag_decay: float = const.DRAG_DECAY  # scene/s², reduced mode
    time_to_live: float = const.DEFAULT_TIME_TO_LIVE  # s, reduced mode

    # Simulation control
    dt: float = const.FRAME_DT  # s
    duration: float = 60.0  # s
    speed_multiplier: float = 1.0

    # Initial entities
    projectiles: List[ProjectileConfig] = field(default_factory=list)
    orbiters: List[OrbitConfig] = field(default_factory=list)

    # Diagnostics
    check_energy_conservation: bool = True

    @property
    def n_steps(self) -> int:
        """Number of ticks needed to cover the duration."""
        if self.dt <= 0:
            return 0
        return int(round(self.duration / self.dt))

    @property
    def atmosphere_height(self) -> float:
        """Top of the atmosphere [m]."""
        return self.atmosphere_layers[-1].top_altitude

    def validate(self) -> list:
        """
        Perform sanity checks on configuration parameters.

        Returns:
            List of warning/error messages. Empty list if all checks pass.
        """
        warnings = []

        # Bodies
        if self.primary.mass <= 0:
            warnings.append(f"ERROR: {self.primary.name} mass must be positive, got {self.primary.mass}")
        if self.primary.radius <= 0:
            warnings.append(f"ERROR: {self.primary.name} radius must be positive, got {self.primary.radius}")

        if self.secondary is not None:
            if self.secondary.mass <= 0:
                warnings.append(f"ERROR: {self.secondary.name} mass must be positive")
            if self.secondary.radius <= 0:
                warnings.append(f"ERROR: {self.secondary.name} radius must be positive")
            if self.secondary.distance <= self.primary.radius + self.secondary.radius:
                warnings.append(
                    f"ERROR: {self.secondary.name} orbit ({self.secondary.distance / 1000:.0f} km) "
                    f"intersects {self.primary.name}"
                )
            if self.secondary.mass >= self.primary.mass:
                warnings.append(
                    f"WARNING: {self.secondary.name} is heavier than {self.primary.name}; "
                    f"the primary is still held fixed at the origin"
                )

        # Timestep
        if self.dt <= 0:
            warnings.append(f"ERROR: timestep dt must be positive, got {self.dt}")
        if self.duration <= 0:
            warnings.append(f"ERROR: duration must be positive, got {self.duration}")
        if self.dt > 0 and self.dt >= self.duration:
            warnings.append(f"WARNING: timestep ({self.dt}) >= duration ({self.duration})")
        if self.speed_multiplier <= 0:
            warnings.append(f"ERROR: speed_multiplier must be positive, got {self.speed_multiplier}")
        elif self.dt * self.speed_multiplier > 1.0:
            warnings.append(
                f"WARNING: effective timestep {self.dt * self.speed_multiplier:.2f} s is large; "
                f"fast projectiles may tunnel through the surface margin"
            )

        # Atmosphere
        for lower, upper in zip(self.atmosphere_layers, self.atmosphere_layers[1:]):
            if upper.top_altitude <= lower.top_altitude:
                warnings.append(
                    f"ERROR: atmosphere layer '{upper.name}' must be above '{lower.name}'"
                )
            if upper.density_at_top > lower.density_at_top:
                warnings.append(
                    f"ERROR: atmosphere layer '{upper.name}' is denser than '{lower.name}'"
                )
        if self.atmosphere_layers:
            tropo_top = self.atmosphere_layers[0].top_altitude
            expected = self.sea_level_density * np.exp(-tropo_top / self.scale_height)
            configured = self.atmosphere_layers[0].density_at_top
            if abs(configured - expected) > 0.05 * expected:
                warnings.append(
                    f"INFO: troposphere top density ({configured:.4f}) differs from the "
                    f"exponential profile ({expected:.4f}); the exponential value is used"
                )
            if (len(self.atmosphere_layers) > 1
                    and self.atmosphere_layers[1].density_at_top > expected):
                warnings.append(
                    f"ERROR: atmosphere layer '{self.atmosphere_layers[1].name}' top density "
                    f"exceeds the troposphere top value ({expected:.4f})"
                )
        else:
            warnings.append("ERROR: at least one atmosphere layer is required")

        # Entry physics
        if self.burn_speed_threshold <= 0:
            warnings.append(f"ERROR: burn_speed_threshold must be positive")
        if self.ablation_coefficient < 0:
            warnings.append(f"ERROR: ablation_coefficient must be non-negative")
        if self.surface_epsilon < 0:
            warnings.append(f"ERROR: surface_epsilon must be non-negative")

        # Projectiles
        for i, proj in enumerate(self.projectiles):
            if proj.diameter <= 0:
                warnings.append(f"ERROR: projectile {i} diameter must be positive")
            if proj.density <= 0:
                warnings.append(f"ERROR: projectile {i} density must be positive")
            r = float(np.linalg.norm(proj.position))
            if r <= self.primary.radius:
                warnings.append(f"ERROR: projectile {i} starts inside {self.primary.name}")
        if len(self.projectiles) > MAX_RECOMMENDED_PROJECTILES:
            warnings.append(
                f"WARNING: {len(self.projectiles)} projectiles; pairwise gravity is O(N²) "
                f"and is evaluated for every pair each tick"
            )

        # Orbits
        for orbit in self.orbiters:
            if not 0.0 <= orbit.eccentricity < 1.0:
                warnings.append(f"ERROR: orbit '{orbit.name}' eccentricity must be in [0, 1)")
            if orbit.semi_major_axis <= 0:
                warnings.append(f"ERROR: orbit '{orbit.name}' semi-major axis must be positive")
            if orbit.period <= 0:
                warnings.append(f"ERROR: orbit '{orbit.name}' period must be positive")
            elif orbit.eccentricity > 0.95:
                warnings.append(
                    f"INFO: orbit '{orbit.name}' is highly eccentric (e={orbit.eccentricity:.3f})"
                )

        return warnings

    @classmethod
    def from_yaml(cls, filepath: str) -> 'SimulationParameters':
        """
        Load configuration from YAML file and convert to SI units.

        Args:
            filepath: Path to YAML configuration file

        Returns:
            SimulationParameters object with all values in SI units

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        def to_float(value: Any) -> float:
            """Convert value to float; YAML reads "1e5" without a dot as a string."""
            return float(value)

        def to_bool(value: Any) -> bool:
            """Convert value to bool."""
            if isinstance(value, str):
                return value.lower() in ('true', 'yes', '1')
            return bool(value)

        def to_vector(value: Any, scale: float = 1.0) -> Tuple[float, float, float]:
            """Convert a 3-element YAML list to a tuple of floats."""
            if len(value) != 3:
                raise ValueError(f"Expected a 3-vector, got {value}")
            return tuple(to_float(v) * scale for v in value)

        # Load YAML file
        config_path = Path(filepath)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {filepath}")

        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)

        params = cls(simulation_name=config.get('simulation_name', 'impact_simulation'))

        # Primary body (km → m)
        primary_data = config['primary_body']
        params.primary = BodyConfig(
            name=primary_data.get('name', 'Earth'),
            mass=to_float(primary_data['mass_kg']),
            radius=to_float(primary_data['radius_km']) * 1000.0,
        )

        # Secondary body (optional, km → m)
        secondary_data = config.get('secondary_body')
        if secondary_data is None or not to_bool(secondary_data.get('enabled', True)):
            params.secondary = None
        else:
            distance = to_float(secondary_data['orbit_distance_km']) * 1000.0
            if 'orbital_speed_m_s' in secondary_data:
                angular_speed = to_float(secondary_data['orbital_speed_m_s']) / distance
            else:
                angular_speed = np.sqrt(const.G * params.primary.mass / distance**3)
            params.secondary = SecondaryBodyConfig(
                name=secondary_data.get('name', 'Moon'),
                mass=to_float(secondary_data['mass_kg']),
                radius=to_float(secondary_data['radius_km']) * 1000.0,
                distance=distance,
                angular_speed=angular_speed,
            )

        # Atmosphere
        atmo = config.get('atmosphere', {})
        if 'layers' in atmo:
            params.atmosphere_layers = [
                AtmosphereLayer(
                    name=layer['name'],
                    top_altitude=to_float(layer['top_km']) * 1000.0,
                    density_at_top=to_float(layer['density_at_top_kg_m3']),
                    temperature=to_float(layer['temperature_k']),
                    wind_speed=to_float(layer.get('wind_speed_m_s', 0.0)),
                )
                for layer in atmo['layers']
            ]
        params.sea_level_density = to_float(atmo.get('sea_level_density_kg_m3', params.sea_level_density))
        params.scale_height = to_float(atmo.get('scale_height_m', params.scale_height))
        params.wind_strength = to_float(atmo.get('wind_strength', params.wind_strength))
        params.wind_jitter = np.radians(to_float(atmo.get('wind_jitter_deg', np.degrees(params.wind_jitter))))

        # Physics options
        physics_opts = config.get('physics_options', {})
        params.fidelity_mode = FidelityMode.parse(physics_opts.get('fidelity_mode', 'high'))
        params.gravity_epsilon = to_float(physics_opts.get('gravity_epsilon_m', params.gravity_epsilon))
        params.surface_epsilon = to_float(physics_opts.get('surface_epsilon_m', params.surface_epsilon))
        params.scene_scale = to_float(physics_opts.get('scene_scale_m', params.scene_scale))
        params.drag_coefficient = to_float(physics_opts.get('drag_coefficient', params.drag_coefficient))
        params.burn_speed_threshold = to_float(
            physics_opts.get('burn_speed_threshold_m_s', params.burn_speed_threshold))
        params.ablation_coefficient = to_float(
            physics_opts.get('ablation_coefficient_s_m', params.ablation_coefficient))
        params.time_to_live = to_float(physics_opts.get('time_to_live_s', params.time_to_live))

        if 'reduced' in physics_opts:
            reduced = physics_opts['reduced']
            params.gravity_strength = to_float(reduced.get('gravity_strength', params.gravity_strength))
            params.secondary_gravity_strength = to_float(
                reduced.get('secondary_gravity_strength', params.secondary_gravity_strength))
            params.drag_decay = to_float(reduced.get('drag_decay', params.drag_decay))

        # Simulation control
        sim_control = config.get('simulation_control', {})
        params.dt = to_float(sim_control.get('timestep_s', params.dt))
        params.duration = to_float(sim_control.get('duration_s', params.duration))
        params.speed_multiplier = to_float(sim_control.get('speed_multiplier', params.speed_multiplier))

        # Projectiles (km → m, km/s → m/s)
        params.projectiles = [
            ProjectileConfig(
                position=to_vector(proj['position_km'], 1000.0),
                velocity=to_vector(proj['velocity_km_s'], 1000.0),
                diameter=to_float(proj['diameter_m']),
                density=to_float(proj.get('density_kg_m3', const.DEFAULT_DENSITY)),
            )
            for proj in config.get('projectiles', []) or []
        ]

        # Decorative orbiters (km → m, days → s, degrees → rad)
        params.orbiters = [
            OrbitConfig(
                name=orbit['name'],
                semi_major_axis=to_float(orbit['semi_major_axis_km']) * 1000.0,
                eccentricity=to_float(orbit['eccentricity']),
                period=to_float(orbit['period_days']) * 86400.0,
                inclination=np.radians(to_float(orbit.get('inclination_deg', 0.0))),
                longitude_of_ascending_node=np.radians(to_float(orbit.get('ascending_node_deg', 0.0))),
                argument_of_periapsis=np.radians(to_float(orbit.get('argument_of_periapsis_deg', 0.0))),
                mean_anomaly_at_epoch=np.radians(to_float(orbit.get('mean_anomaly_deg', 0.0))),
            )
            for orbit in config.get('orbiters', []) or []
        ]

        # Diagnostics
        diagnostics = config.get('diagnostics', {})
        params.check_energy_conservation = to_bool(diagnostics.get('check_energy_conservation', True))

        return params

    def __repr__(self):
        """Human-readable representation."""
        lines = [
            f"Simulation: {self.simulation_name}",
            f"Primary: {self.primary}",
            f"Secondary: {self.secondary if self.secondary is not None else 'none'}",
            f"Atmosphere: {len(self.atmosphere_layers)} layers up to "
            f"{self.atmosphere_height / 1000:.0f} km",
            f"Fidelity: {self.fidelity_mode.value}",
            f"Projectiles: {len(self.projectiles)}",
            f"Orbiters: {len(self.orbiters)}",
            f"Duration: {self.duration:.1f} s",
            f"Timestep: {self.dt:.4f} s (x{self.speed_multiplier:g})",
        ]
        return "\n".join(lines)
