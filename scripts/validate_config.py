"""
Validate a configuration file and report any issues.

Besides the parameter checks, this builds the initial state (catching
bodies, orbits or projectiles that cannot be constructed) and prints a
ballistic preview of where each configured projectile would land.

Usage:
    python scripts/validate_config.py configs/baseline_config.yaml
"""

import sys
from pathlib import Path

import numpy as np

# Add src to path so we can import impactsim package
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from impactsim.config import SimulationParameters
from impactsim.evolution import predict_trajectory
from impactsim.impact import is_ocean_at, latitude_longitude, region_name
from impactsim.initialization import initialize_simulation
from impactsim.state import InvalidConstructionError


def print_group(label, messages):
    if messages:
        print(f"[{label}] {len(messages)} message(s):")
        for message in messages:
            print(f"  {message}")
        print()


def preview_impacts(params):
    """Print the predicted landing point of each configured projectile."""
    print("Ballistic preview (reduced gravity law, no drag):")
    for i, proj in enumerate(params.projectiles):
        position = np.array(proj.position) / params.scene_scale
        velocity = np.array(proj.velocity) / params.scene_scale
        points, hit = predict_trajectory(position, velocity, params)
        if hit is None:
            print(f"  projectile {i}: no impact predicted ({len(points)} samples)")
            continue
        lat, lon = latitude_longitude(hit)
        where = "ocean" if is_ocean_at(hit) else "land"
        print(f"  projectile {i}: lat {np.degrees(lat):6.1f}°, "
              f"lon {np.degrees(lon):7.1f}° ({where}, {region_name(hit)}) "
              f"after {len(points) - 1} steps")
    print()


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/validate_config.py <config_file.yaml>")
        sys.exit(1)

    config_path = sys.argv[1]

    print(f"Validating configuration: {config_path}")
    print("=" * 70)

    try:
        params = SimulationParameters.from_yaml(config_path)
    except FileNotFoundError as e:
        print(f"[ERROR] {e}")
        sys.exit(1)
    except (KeyError, ValueError, TypeError) as e:
        print(f"[ERROR] loading configuration: {e}")
        sys.exit(1)

    print("[OK] Configuration loaded successfully")
    print()

    messages = params.validate()
    errors = [m for m in messages if m.startswith("ERROR")]
    print_group("ERROR", errors)
    print_group("WARN", [m for m in messages if m.startswith("WARNING")])
    print_group("INFO", [m for m in messages if m.startswith("INFO")])

    if errors:
        print("Configuration has ERRORS and should not be used for simulation.")
        sys.exit(1)

    try:
        state = initialize_simulation(params)
    except InvalidConstructionError as e:
        print(f"[ERROR] building initial state: {e}")
        sys.exit(1)

    print(f"[OK] Initial state built: {state.n_projectiles} projectiles, "
          f"{len(state.orbiters)} orbiters")
    print()

    if params.projectiles:
        preview_impacts(params)

    print("Configuration summary:")
    print(params)
    sys.exit(0)


if __name__ == "__main__":
    main()
