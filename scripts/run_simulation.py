"""
Main simulation runner script.

Usage:
    python scripts/run_simulation.py configs/baseline_config.yaml

This script:
1. Loads configuration from YAML file
2. Initializes simulation state
3. Runs the simulation with progress bar
4. Prints every impact and the impact statistics
"""

import sys
import argparse
import time
from pathlib import Path

# Add src to path so we can import impactsim package
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from impactsim.config import SimulationParameters
from impactsim.gravity import FidelityMode
from impactsim.evolution import run_simulation
from impactsim.analysis import summarize_impacts, format_impact


def main():
    parser = argparse.ArgumentParser(
        description='Run meteor impact simulation'
    )
    parser.add_argument(
        'config',
        type=str,
        help='Path to YAML configuration file'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Random seed for wind jitter, burn-up and tsunami sizing (default: 42)'
    )
    parser.add_argument(
        '--fidelity',
        choices=[mode.value for mode in FidelityMode],
        default=None,
        help='Override the fidelity mode from the config'
    )
    parser.add_argument(
        '--speed',
        type=float,
        default=None,
        help='Override the speed multiplier from the config'
    )
    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable the progress bar'
    )

    args = parser.parse_args()

    # Load configuration
    print(f"Loading configuration from {args.config}...")
    params = SimulationParameters.from_yaml(args.config)
    if args.fidelity is not None:
        params.fidelity_mode = FidelityMode.parse(args.fidelity)
    if args.speed is not None:
        params.speed_multiplier = args.speed

    errors = [m for m in params.validate() if m.startswith("ERROR")]
    if errors:
        for error in errors:
            print(f"  {error}")
        print("Configuration has ERRORS; run scripts/validate_config.py for details.")
        sys.exit(1)

    # Print configuration summary
    print("=" * 70)
    print(f"SIMULATION: {params.simulation_name}")
    print("=" * 70)
    print(params)
    print("=" * 70)
    print()

    start_time = time.time()
    state, stats = run_simulation(params, seed=args.seed,
                                  show_progress=not args.no_progress)
    elapsed_time = time.time() - start_time

    print()
    print("=" * 70)
    print(f"Simulation completed in {elapsed_time:.1f} seconds")
    print("=" * 70)
    print()

    if stats['impacts']:
        print("IMPACTS")
        print("-" * 70)
        for event in stats['impacts']:
            print(format_impact(event))
        print()

    summary = summarize_impacts(stats['impacts'])
    print("=" * 70)
    print("IMPACT STATISTICS")
    print("=" * 70)
    print(f"Impacts: {summary['impact_count']} ({summary['ocean_impacts']} in the ocean)")
    print(f"Burned up: {stats['total_consumed']}, expired: {stats['total_expired']}")
    if summary['impact_count'] > 0:
        print(f"Total energy: {summary['total_energy_j']:.3e} J ({summary['total_energy_kt']:.3f} kt TNT)")
        print(f"Largest impact: {summary['largest_energy_j']:.3e} J ({summary['largest_energy_kt']:.3f} kt TNT)")
        print(f"Average impact: {summary['average_energy_j']:.3e} J ({summary['average_energy_kt']:.3f} kt TNT)")
        print(f"Largest crater: {summary['largest_crater_m'] / 1000:.2f} km")
    print("=" * 70)


if __name__ == "__main__":
    main()
