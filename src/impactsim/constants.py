"""
Physical constants and default tuning values used throughout the simulation.

UNITS:
- High-fidelity physics runs in SI units (m, s, kg).
- Positions handed to the presentation layer are in scene units,
  where 1 scene unit = SCENE_SCALE meters.
- Reduced-fidelity physics runs directly in scene units.
"""

import numpy as np

# Gravitational constant [m³/(kg·s²)]
G = 6.67430e-11

# Meters per scene unit
SCENE_SCALE = 1.0e5

# Reference frame length of the interactive driver [s]
# One frame at speed multiplier 1.0 advances the physics by this much.
FRAME_DT = 0.02

# Primary body (Earth)
EARTH_MASS = 5.972e24  # kg
EARTH_RADIUS = 6371000.0  # m

# Secondary body (Moon)
MOON_MASS = 7.342e22  # kg
MOON_RADIUS = 1737400.0  # m
MOON_DISTANCE = 384400000.0  # m
MOON_ORBITAL_SPEED = 1022.0  # m/s
MOON_ANGULAR_SPEED = MOON_ORBITAL_SPEED / MOON_DISTANCE  # rad/s

# Minimum separation for gravity [m]; closer pairs feel no force
GRAVITY_EPSILON = 1.0

# Surface hit margin above the primary radius [m] (0.2 scene units)
SURFACE_EPSILON = 0.2 * SCENE_SCALE

# Atmosphere
ATMOSPHERE_HEIGHT = 100000.0  # m
SEA_LEVEL_DENSITY = 1.225  # kg/m³
SCALE_HEIGHT = 8400.0  # m
SEA_LEVEL_PRESSURE = 101325.0  # Pa
STANDARD_GRAVITY = 9.80665  # m/s²
AIR_GAS_CONSTANT = 287.05  # J/(kg·K), specific gas constant of dry air
STANDARD_TEMPERATURE = 288.15  # K
WIND_STRENGTH = 1.0  # global multiplier on layer wind speeds
WIND_JITTER = 0.1  # rad, half-width of random direction jitter

# Entry physics
DRAG_COEFFICIENT = 0.47  # sphere
BURN_SPEED_THRESHOLD = 2000.0  # m/s
BURN_RAMP_RATE = 5.0  # burn intensity gained per second (0.1 per frame)
BURN_RATE = 5.0  # base consumption rate per second (0.1 per frame)
MAX_SPEED_RATIO = 10.0  # cap on speed / terminal velocity in the burn rate
ABLATION_COEFFICIENT = 1.0e-4  # s/m at sea-level pressure
MAX_ABLATION_FRACTION = 0.5  # largest mass fraction ablation may remove in one step
DEFAULT_DENSITY = 3000.0  # kg/m³, typical stony asteroid
DEFAULT_TIME_TO_LIVE = 8.0  # s, reduced-fidelity lifetime

# Reduced-fidelity tuning, in scene units and seconds.
# Derived from per-frame values divided by FRAME_DT².
GRAVITY_STRENGTH = 2.0 / FRAME_DT**2  # scene³/s²
SECONDARY_GRAVITY_STRENGTH = 0.001 / FRAME_DT**2  # scene³/s²
DRAG_DECAY = 0.01 / FRAME_DT**2  # scene/s²
SECONDARY_MIN_DISTANCE = 0.1  # scene units

# Energy conversions
JOULES_PER_TON_TNT = 4.184e9
JOULES_PER_KILOTON_TNT = 4.184e12
HIROSHIMA_TONS = 15000.0

# Impact scaling
CRATER_COEFFICIENT = 0.27  # m / J^0.25
CRATER_DEPTH_RATIO = 5.0
BLAST_EXPONENT = 0.33
BLAST_SCALE = 0.5  # km per kiloton^0.33
SEVERE_RADIUS_FACTOR = 1.5
SEVERE_RADIUS_MIN = 1.0  # km
SEVERE_RADIUS_MAX = 500.0  # km
GLASS_RADIUS_FACTOR = 4.0
GLASS_RADIUS_MARGIN = 20.0  # km
GLASS_RADIUS_MAX = 2000.0  # km
MAGNITUDE_OFFSET = 4.4
TSUNAMI_FACTOR_MIN = 20.0
TSUNAMI_FACTOR_MAX = 50.0
ENTRY_ABLATION_SCALE = 0.15
ENTRY_REFERENCE_SPEED = 11000.0  # m/s
ENTRY_REFERENCE_DIAMETER = 50.0  # m
ENTRY_ANGLE_DEG = 45.0
MAX_ENTRY_ABLATION = 0.99

# Kepler solver
KEPLER_TOLERANCE = 1e-14
KEPLER_MAX_ITERATIONS = 100

TWO_PI = 2.0 * np.pi
