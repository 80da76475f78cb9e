"""
Layered atmosphere model.

Provides density, pressure and wind as functions of altitude above the
primary body's surface.

DENSITY:
- Below the surface: sea-level density.
- Lowest layer (troposphere): ρ = ρ0 × exp(-h / H), H = 8400 m.
- Higher layers: exponential blend from the density at the layer floor to
  the layer's top density, shaped by exp(-2 × fraction of layer). The
  blend is normalised so the profile is continuous at both boundaries.
  The second layer may not be denser at its top than the troposphere is
  at its top.
- Above the top layer: vacuum.

PRESSURE:
- Barometric formula P = P0 × exp(-g h / (R T)) at a fixed temperature.
  It does not read the layer table, so pressure and density can disagree
  at the same altitude. Both are kept as independent approximations.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from impactsim import constants as const


@dataclass(frozen=True)
class AtmosphereLayer:
    """One atmospheric layer, bounded above by top_altitude."""

    name: str
    top_altitude: float  # m
    density_at_top: float  # kg/m³
    temperature: float  # K
    wind_speed: float  # m/s


# US-standard-like layer tops. The troposphere top density matches the
# exponential profile (1.225 × exp(-11000 / 8400)) so the blend starts
# where the troposphere ends.
DEFAULT_LAYERS: Tuple[AtmosphereLayer, ...] = (
    AtmosphereLayer("troposphere", 11000.0, 0.3307, 216.65, 10.0),
    AtmosphereLayer("stratosphere", 50000.0, 1.027e-3, 270.65, 30.0),
    AtmosphereLayer("mesosphere", 85000.0, 6.958e-6, 186.87, 60.0),
    AtmosphereLayer("thermosphere", const.ATMOSPHERE_HEIGHT, 5.604e-7, 195.08, 100.0),
)

_BLEND_NORM = 1.0 - np.exp(-2.0)


class AtmosphereModel:
    """
    Density, pressure and wind lookup by altitude.

    Args:
        layers: Ordered layers, lowest first, with increasing tops and
            non-increasing top densities
        sea_level_density: Density at altitude 0 [kg/m³]
        scale_height: Troposphere scale height [m]
        sea_level_pressure: Pressure at altitude 0 [Pa]
        wind_strength: Global multiplier on layer wind speeds
        wind_jitter: Half-width of the random direction jitter [rad]

    Raises:
        ValueError: If the layer table is empty or not ordered
    """

    def __init__(self,
                 layers: Sequence[AtmosphereLayer] = DEFAULT_LAYERS,
                 sea_level_density: float = const.SEA_LEVEL_DENSITY,
                 scale_height: float = const.SCALE_HEIGHT,
                 sea_level_pressure: float = const.SEA_LEVEL_PRESSURE,
                 wind_strength: float = const.WIND_STRENGTH,
                 wind_jitter: float = const.WIND_JITTER):
        if not layers:
            raise ValueError("Atmosphere needs at least one layer")
        for lower, upper in zip(layers, layers[1:]):
            if upper.top_altitude <= lower.top_altitude:
                raise ValueError(
                    f"Layer '{upper.name}' top ({upper.top_altitude} m) must be above "
                    f"'{lower.name}' top ({lower.top_altitude} m)"
                )
            if upper.density_at_top > lower.density_at_top:
                raise ValueError(
                    f"Layer '{upper.name}' top density must not exceed '{lower.name}'"
                )
        if scale_height <= 0:
            raise ValueError(f"scale_height must be positive, got {scale_height}")
        if len(layers) > 1:
            tropo_top = sea_level_density * np.exp(-layers[0].top_altitude / scale_height)
            if layers[1].density_at_top > tropo_top:
                raise ValueError(
                    f"Layer '{layers[1].name}' top density ({layers[1].density_at_top}) "
                    f"exceeds the troposphere top value ({tropo_top:.4g})"
                )

        self.layers = tuple(layers)
        self.sea_level_density = sea_level_density
        self.scale_height = scale_height
        self.sea_level_pressure = sea_level_pressure
        self.wind_strength = wind_strength
        self.wind_jitter = wind_jitter

    @property
    def height(self) -> float:
        """Top of the atmosphere [m]."""
        return self.layers[-1].top_altitude

    def layer_index(self, altitude: float) -> Optional[int]:
        """Index of the layer containing `altitude`, None above the top."""
        if altitude < 0.0:
            return 0
        for i, layer in enumerate(self.layers):
            if altitude <= layer.top_altitude:
                return i
        return None

    def _troposphere_density(self, altitude: float) -> float:
        return self.sea_level_density * np.exp(-altitude / self.scale_height)

    def _floor_density(self, index: int) -> float:
        """Density at the bottom boundary of layer `index` (index >= 1)."""
        if index == 1:
            return self._troposphere_density(self.layers[0].top_altitude)
        return self.layers[index - 1].density_at_top

    def density(self, altitude: float) -> float:
        """
        Air density at an altitude.

        Args:
            altitude: Height above the surface [m]

        Returns:
            float: Density [kg/m³]; 0 above the atmosphere
        """
        if altitude <= 0.0:
            return self.sea_level_density

        index = self.layer_index(altitude)
        if index is None:
            return 0.0
        if index == 0:
            return self._troposphere_density(altitude)

        bottom = self.layers[index - 1].top_altitude
        top = self.layers[index].top_altitude
        fraction = (altitude - bottom) / (top - bottom)

        lower = self._floor_density(index)
        upper = self.layers[index].density_at_top
        weight = (1.0 - np.exp(-2.0 * fraction)) / _BLEND_NORM
        return lower + (upper - lower) * weight

    def pressure(self, altitude: float) -> float:
        """
        Barometric pressure [Pa] at an altitude, independent of density().
        """
        if altitude <= 0.0:
            return self.sea_level_pressure
        exponent = (const.STANDARD_GRAVITY * altitude
                    / (const.AIR_GAS_CONSTANT * const.STANDARD_TEMPERATURE))
        return self.sea_level_pressure * np.exp(-exponent)

    def pressure_ratio(self, altitude: float) -> float:
        """Pressure relative to sea level, in (0, 1]."""
        return self.pressure(altitude) / self.sea_level_pressure

    def temperature(self, altitude: float) -> float:
        """Layer temperature [K]; the top layer's value above the atmosphere."""
        index = self.layer_index(altitude)
        if index is None:
            index = len(self.layers) - 1
        return self.layers[index].temperature

    def wind_vector(self, altitude: float,
                    rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """
        Wind velocity [m/s] at an altitude.

        The base direction is +x in the horizontal (xz) plane. Each call
        rotates it by a random angle within ±wind_jitter about the vertical
        axis and tilts it by up to half that amount.

        Args:
            altitude: Height above the surface [m]
            rng: Random generator for the jitter; no jitter if None

        Returns:
            np.ndarray: Wind vector, zero above the atmosphere
        """
        index = self.layer_index(altitude)
        if index is None:
            return np.zeros(3)

        speed = self.layers[index].wind_speed * self.wind_strength
        if rng is not None and self.wind_jitter > 0:
            heading = rng.uniform(-self.wind_jitter, self.wind_jitter)
            tilt = rng.uniform(-0.5 * self.wind_jitter, 0.5 * self.wind_jitter)
        else:
            heading = 0.0
            tilt = 0.0

        direction = np.array([
            np.cos(heading) * np.cos(tilt),
            np.sin(tilt),
            np.sin(heading) * np.cos(tilt),
        ])
        return speed * direction

    def __repr__(self) -> str:
        names = ", ".join(layer.name for layer in self.layers)
        return f"AtmosphereModel(height={self.height / 1000:.0f} km, layers=[{names}])"
