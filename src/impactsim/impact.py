"""
Impact effect estimation.

Converts the terminal state of a projectile into energy, crater size,
damage radii and secondary-effect magnitudes. Every function here is
pure: identical inputs give identical outputs. The only random quantity,
the tsunami reach, takes its generator as an argument and is kept out
of ImpactEstimator.estimate.

The scaling laws are empirical heuristics tuned for plausible display
values, not a validated impact model.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from impactsim import constants as const
from impactsim.state import Projectile


@dataclass(frozen=True)
class ImpactResult:
    """Effects of one impact."""

    kinetic_energy: float  # J
    tnt_equivalent_tons: float
    tnt_equivalent_kilotons: float
    crater_diameter: float  # m
    crater_depth: float  # m
    blast_radius_km: float
    severe_damage_radius_km: float
    glass_damage_radius_km: float
    estimated_magnitude: float  # Richter-like
    seismic_radius_km: float
    is_ocean_impact: bool
    hiroshima_equivalents: float
    impact_speed: float  # m/s
    impact_latitude_deg: float
    impact_longitude_deg: float
    projectile_mass: float  # kg
    projectile_diameter: float  # m
    final_mass: float  # kg, after the entry ablation estimate
    mass_fraction: float  # final_mass / projectile_mass
    region: str


def kinetic_energy(mass: float, speed: float) -> float:
    """KE = ½ m v² [J]."""
    return 0.5 * mass * speed * speed


def tnt_tons(energy: float) -> float:
    """Energy [J] expressed in tons of TNT."""
    return energy / const.JOULES_PER_TON_TNT


def tnt_kilotons(energy: float) -> float:
    """Energy [J] expressed in kilotons of TNT."""
    return energy / const.JOULES_PER_KILOTON_TNT


def crater_diameter(energy: float) -> float:
    """Final crater diameter [m]: D = C × KE^0.25."""
    return const.CRATER_COEFFICIENT * max(energy, 1.0) ** 0.25


def crater_depth(diameter: float) -> float:
    """Crater depth [m], a fixed fraction of the diameter."""
    return diameter / const.CRATER_DEPTH_RATIO


def calculate_blast_radius(energy: float) -> float:
    """Simplified blast radius [km]: kilotons^0.33 × 0.5."""
    return tnt_kilotons(max(energy, 0.0)) ** const.BLAST_EXPONENT * const.BLAST_SCALE


def damage_radii(crater_diameter_m: float) -> Tuple[float, float]:
    """
    Severe and glass-breakage damage radii [km].

    severe = 1.5 × crater diameter in km, clamped to [1, 500]
    glass  = max(severe + 20, 4 × severe), clamped to at most 2000
    """
    severe = min(const.SEVERE_RADIUS_MAX,
                 max(const.SEVERE_RADIUS_MIN,
                     crater_diameter_m / 1000.0 * const.SEVERE_RADIUS_FACTOR))
    glass = min(const.GLASS_RADIUS_MAX,
                max(severe + const.GLASS_RADIUS_MARGIN, severe * const.GLASS_RADIUS_FACTOR))
    return severe, glass


def seismic_magnitude(energy: float) -> float:
    """Richter-like magnitude: M ≈ log10(E) - 4.4. Zero energy maps to -inf."""
    if energy <= 0.0:
        return -np.inf
    return float(np.log10(energy) - const.MAGNITUDE_OFFSET)


def seismic_radius(magnitude: float) -> float:
    """Felt radius [km] for a magnitude: 10^((M - 2.5) / 1.5) × 10."""
    return float(10.0 ** ((magnitude - 2.5) / 1.5) * 10.0)


def latitude_longitude(position) -> Tuple[float, float]:
    """
    Latitude and longitude [rad] of a direction, with y as the polar axis.
    """
    p = np.asarray(position, dtype=np.float64)
    norm = np.linalg.norm(p)
    if norm == 0.0:
        return 0.0, 0.0
    p = p / norm
    lat = float(np.arcsin(np.clip(p[1], -1.0, 1.0)))
    lon = float(np.arctan2(p[2], p[0]))
    return lat, lon


def region_name(position) -> str:
    """
    Coarse region label for an impact point, e.g. "Northern Asia/Oceania".

    Latitude bands split at ±20° and ±60°. Longitude bands split at
    -120° and -60°. Like is_ocean_at, this is not real geography.
    """
    lat, lon = np.degrees(latitude_longitude(position))
    if lat > 60.0:
        lat_band = "Arctic"
    elif lat < -60.0:
        lat_band = "Antarctic"
    elif lat > 20.0:
        lat_band = "Northern"
    elif lat < -20.0:
        lat_band = "Southern"
    else:
        lat_band = "Equatorial"

    if lon + 180.0 < 60.0:
        lon_band = "Americas"
    elif lon + 180.0 < 120.0:
        lon_band = "Atlantic/Europe/Africa"
    else:
        lon_band = "Asia/Oceania"
    return f"{lat_band} {lon_band}"


def is_ocean_at(position) -> bool:
    """
    Coarse land/ocean classification of an impact point.

    APPROXIMATION: a fixed periodic function of latitude and longitude
    that mimics a continent pattern, biased toward ocean. It does not use
    real geography. A zero vector is classified as ocean.
    """
    p = np.asarray(position, dtype=np.float64)
    if not np.any(p):
        return True
    lat, lon = latitude_longitude(p)
    v = np.sin(lat * 3.0 + np.cos(lon * 2.0)) * 0.5 + np.sin(lon * 1.5) * 0.2
    return bool(v < 0.12)


def entry_ablation_fraction(speed: float, diameter: float,
                            angle_deg: float = const.ENTRY_ANGLE_DEG) -> float:
    """
    Fraction of mass lost on the way down, as a rough summary estimate.

    0.15 × (v / 11 km/s) × (D / 50 m) × sin(angle), clamped to [0, 0.99].
    Independent of the per-step ablation done by the integrator.
    """
    fraction = (const.ENTRY_ABLATION_SCALE
                * (speed / const.ENTRY_REFERENCE_SPEED)
                * (diameter / const.ENTRY_REFERENCE_DIAMETER)
                * np.sin(np.radians(angle_deg)))
    return float(min(const.MAX_ENTRY_ABLATION, max(0.0, fraction)))


def tsunami_radius(seismic_radius_km: float, is_ocean: bool,
                   rng: np.random.Generator) -> float:
    """
    Tsunami reach [km]: seismic radius × U[20, 50] for ocean impacts, else 0.
    """
    if not is_ocean:
        return 0.0
    return seismic_radius_km * rng.uniform(const.TSUNAMI_FACTOR_MIN, const.TSUNAMI_FACTOR_MAX)


def terminal_speed(projectile: Projectile, scene_scale: float = const.SCENE_SCALE) -> float:
    """Impact speed [m/s], falling back to scene velocity × scale."""
    return projectile.speed(scene_scale)


class ImpactEstimator:
    """
    Computes ImpactResult records from terminal projectile states.

    Holds only configuration (the scene scale); no state between calls.
    """

    def __init__(self, scene_scale: float = const.SCENE_SCALE):
        self.scene_scale = scene_scale

    def estimate_from_values(self, mass: float, speed: float,
                             position_m=None, diameter: float = 0.0) -> ImpactResult:
        """
        Impact effects for plain values.

        Args:
            mass: Mass at impact [kg]
            speed: Impact speed [m/s]
            position_m: Impact point relative to the primary center [m];
                None classifies as ocean at lat/lon 0
            diameter: Diameter at impact [m]
        """
        energy = kinetic_energy(mass, speed)
        diameter_m = crater_diameter(energy)
        severe, glass = damage_radii(diameter_m)
        magnitude = seismic_magnitude(energy)

        if position_m is None:
            position_m = np.zeros(3)
        lat, lon = latitude_longitude(position_m)
        final_mass = mass * (1.0 - entry_ablation_fraction(speed, diameter))

        return ImpactResult(
            kinetic_energy=energy,
            tnt_equivalent_tons=tnt_tons(energy),
            tnt_equivalent_kilotons=tnt_kilotons(energy),
            crater_diameter=diameter_m,
            crater_depth=crater_depth(diameter_m),
            blast_radius_km=calculate_blast_radius(energy),
            severe_damage_radius_km=severe,
            glass_damage_radius_km=glass,
            estimated_magnitude=magnitude,
            seismic_radius_km=seismic_radius(magnitude) if np.isfinite(magnitude) else 0.0,
            is_ocean_impact=is_ocean_at(position_m),
            hiroshima_equivalents=tnt_tons(energy) / const.HIROSHIMA_TONS,
            impact_speed=speed,
            impact_latitude_deg=float(np.degrees(lat)),
            impact_longitude_deg=float(np.degrees(lon)),
            projectile_mass=mass,
            projectile_diameter=diameter,
            final_mass=final_mass,
            mass_fraction=final_mass / mass if mass > 0 else 0.0,
            region=region_name(position_m),
        )

    def estimate(self, projectile: Projectile,
                 primary_position: Optional[np.ndarray] = None) -> ImpactResult:
        """
        Impact effects for a projectile's terminal state.

        Args:
            projectile: Projectile at the moment of impact
            primary_position: Center of the impacted body [m] (origin if None)
        """
        position_m = projectile.position_m(self.scene_scale)
        if primary_position is not None:
            position_m = position_m - primary_position
        return self.estimate_from_values(
            projectile.mass,
            terminal_speed(projectile, self.scene_scale),
            position_m,
            projectile.diameter,
        )
