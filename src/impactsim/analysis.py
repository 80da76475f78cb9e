"""
Impact statistics for a simulation run.

Aggregates ImpactEvent records into the running totals shown to users:
impact count, total/largest/average energy (in joules and kilotons of
TNT), and how many impacts landed in the ocean.
"""

from typing import Dict, Iterable

import numpy as np

from impactsim.impact import tnt_kilotons


def summarize_impacts(events: Iterable) -> Dict[str, float]:
    """
    Summary statistics over impact events.

    Args:
        events: Iterable of ImpactEvent

    Returns:
        Dictionary with:
        - impact_count
        - total_energy_j, largest_energy_j, average_energy_j
        - total_energy_kt, largest_energy_kt, average_energy_kt
        - largest_crater_m
        - ocean_impacts, max_tsunami_radius_km
        - max_magnitude
    """
    events = list(events)
    if not events:
        return {
            'impact_count': 0,
            'total_energy_j': 0.0,
            'largest_energy_j': 0.0,
            'average_energy_j': 0.0,
            'total_energy_kt': 0.0,
            'largest_energy_kt': 0.0,
            'average_energy_kt': 0.0,
            'largest_crater_m': 0.0,
            'ocean_impacts': 0,
            'max_tsunami_radius_km': 0.0,
            'max_magnitude': np.nan,
        }

    energies = np.array([e.result.kinetic_energy for e in events])
    total = float(np.sum(energies))
    largest = float(np.max(energies))
    average = total / len(events)

    return {
        'impact_count': len(events),
        'total_energy_j': total,
        'largest_energy_j': largest,
        'average_energy_j': average,
        'total_energy_kt': tnt_kilotons(total),
        'largest_energy_kt': tnt_kilotons(largest),
        'average_energy_kt': tnt_kilotons(average),
        'largest_crater_m': max(e.result.crater_diameter for e in events),
        'ocean_impacts': sum(1 for e in events if e.result.is_ocean_impact),
        'max_tsunami_radius_km': max(e.tsunami_radius_km for e in events),
        'max_magnitude': max(e.result.estimated_magnitude for e in events),
    }


def format_impact(event) -> str:
    """One-line human-readable description of an impact event."""
    r = event.result
    where = "ocean" if r.is_ocean_impact else "land"
    line = (f"t={event.time:.2f} s  projectile {event.projectile_id}: "
            f"{r.tnt_equivalent_tons:.2f} t TNT ({r.tnt_equivalent_kilotons:.3f} kt), "
            f"crater {r.crater_diameter / 1000:.2f} km, "
            f"M{r.estimated_magnitude:.1f}, {where} in {r.region} "
            f"({r.impact_latitude_deg:.1f}°, {r.impact_longitude_deg:.1f}°)")
    if event.tsunami_radius_km > 0:
        line += f", tsunami reach {event.tsunami_radius_km:.0f} km"
    return line
