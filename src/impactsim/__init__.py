"""
Physics core of an interactive meteor impact simulator.

Modules:
- atmosphere: layered density, pressure and wind
- gravity / physics: Newtonian and reduced force laws (Numba kernels)
- kepler: closed-form orbit propagation for decorative orbiters
- integrator: per-tick projectile stepping, burn-up and ablation
- impact: energy, crater and damage estimates
- evolution: tick driver and batch runner
"""

__version__ = "0.1.0"
