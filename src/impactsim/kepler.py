"""
Closed-form elliptical orbit propagation.

Positions come from Kepler's equation M = E - e sin E, solved for the
eccentric anomaly E with a third-order starting guess followed by Danby's
quartic correction (Murray & Dermott, Solar System Dynamics, §2.4):

    f   = E - e sin E - M
    d1  = -f / f'
    d2  = -f / (f' + d1 f'' / 2)
    d3  = -f / (f' + d2 f'' / 2 + d2² f''' / 6)
    E  <- E + d3

The starting guess is already accurate to O(e⁴), so the correction
usually converges in two or three iterations.

Orbiting objects are decorative: they never feed back into gravity and
never collide with anything.
"""

import warnings
from dataclasses import dataclass

import numpy as np
from numba import jit

from impactsim import constants as const
from impactsim.state import InvalidConstructionError


class KeplerConvergenceWarning(RuntimeWarning):
    """The Kepler solver hit its iteration cap; the last iterate was used."""


@jit(nopython=True)
def kepler_starting_guess(e, M):
    """
    Third-order starting approximation for E.

    E0 = M + e sin M + e² sin M cos M + ½ e³ sin M (3 cos² M - 1)
    """
    sin_M = np.sin(M)
    cos_M = np.cos(M)
    return (M + e * sin_M + e * e * sin_M * cos_M
            + 0.5 * e**3 * sin_M * (3.0 * cos_M * cos_M - 1.0))


@jit(nopython=True)
def _solve_kepler(e, M, tolerance, max_iterations):
    """
    Solve Kepler's equation for E.

    Args:
        e: Eccentricity in [0, 1)
        M: Mean anomaly [rad]
        tolerance: Convergence threshold on |E_new - E_old|
        max_iterations: Iteration cap

    Returns:
        (E, iterations, converged)
    """
    # Reduce M to [0, 2π) and restore the whole turns at the end
    turns = np.floor(M / (2.0 * np.pi))
    M_reduced = M - turns * 2.0 * np.pi

    E = kepler_starting_guess(e, M_reduced)
    iterations = 0
    converged = False

    while iterations < max_iterations:
        iterations += 1
        sin_E = np.sin(E)
        cos_E = np.cos(E)

        f = E - e * sin_E - M_reduced
        f1 = 1.0 - e * cos_E
        f2 = e * sin_E
        f3 = e * cos_E

        d1 = -f / f1
        d2 = -f / (f1 + 0.5 * d1 * f2)
        d3 = -f / (f1 + 0.5 * d2 * f2 + d2 * d2 * f3 / 6.0)

        E_new = E + d3
        if abs(E_new - E) < tolerance:
            E = E_new
            converged = True
            break
        E = E_new

    return E + turns * 2.0 * np.pi, iterations, converged


def solve_eccentric_anomaly(e: float, M: float,
                            tolerance: float = const.KEPLER_TOLERANCE,
                            max_iterations: int = const.KEPLER_MAX_ITERATIONS,
                            return_iterations: bool = False):
    """
    Eccentric anomaly E satisfying M = E - e sin E.

    Args:
        e: Eccentricity, 0 <= e < 1
        M: Mean anomaly [rad], any value
        tolerance: Stop when successive iterates differ by less than this
        max_iterations: Iteration cap; the last iterate is returned when hit
        return_iterations: Also return the number of iterations used

    Returns:
        float: E [rad], or (E, iterations) if return_iterations

    Raises:
        InvalidConstructionError: If e is outside [0, 1)

    Warns:
        KeplerConvergenceWarning: If the iteration cap was reached
    """
    if not 0.0 <= e < 1.0:
        raise InvalidConstructionError(f"Eccentricity must be in [0, 1), got {e}")

    E, iterations, converged = _solve_kepler(float(e), float(M), float(tolerance),
                                             int(max_iterations))
    if not converged:
        residual = M - (E - e * np.sin(E))
        warnings.warn(
            f"Kepler solver did not converge in {iterations} iterations "
            f"(e={e}, M={M}, residual={residual:.3e}); using last iterate",
            KeplerConvergenceWarning,
            stacklevel=2,
        )

    if return_iterations:
        return E, iterations
    return E


@dataclass(frozen=True)
class OrbitalElements:
    """
    Keplerian elements of a decorative orbit.

    Attributes:
        semi_major_axis: a [m]
        eccentricity: e in [0, 1)
        inclination: i [rad]
        longitude_of_ascending_node: Ω [rad]
        argument_of_periapsis: ω [rad]
        mean_motion: n = 2π / period [rad/s]
        mean_anomaly_at_epoch: M0 [rad]
    """

    semi_major_axis: float
    eccentricity: float
    inclination: float = 0.0
    longitude_of_ascending_node: float = 0.0
    argument_of_periapsis: float = 0.0
    mean_motion: float = 1.0
    mean_anomaly_at_epoch: float = 0.0

    def __post_init__(self):
        if not self.semi_major_axis > 0:
            raise InvalidConstructionError(
                f"Semi-major axis must be positive, got {self.semi_major_axis}"
            )
        if not 0.0 <= self.eccentricity < 1.0:
            raise InvalidConstructionError(
                f"Eccentricity must be in [0, 1), got {self.eccentricity}"
            )
        if not self.mean_motion > 0:
            raise InvalidConstructionError(
                f"Mean motion must be positive, got {self.mean_motion}"
            )

    @classmethod
    def from_period(cls, semi_major_axis: float, eccentricity: float, period: float,
                    **angles) -> 'OrbitalElements':
        """Build elements from an orbital period [s] instead of mean motion."""
        if not period > 0:
            raise InvalidConstructionError(f"Orbital period must be positive, got {period}")
        return cls(semi_major_axis, eccentricity, mean_motion=const.TWO_PI / period, **angles)

    @property
    def period(self) -> float:
        """Orbital period [s]."""
        return const.TWO_PI / self.mean_motion

    def mean_anomaly(self, elapsed_time: float) -> float:
        """M = M0 + n t [rad]."""
        return self.mean_anomaly_at_epoch + self.mean_motion * elapsed_time


def _rotation_x(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[1.0, 0.0, 0.0],
                     [0.0, c, -s],
                     [0.0, s, c]])


def _rotation_z(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0],
                     [s, c, 0.0],
                     [0.0, 0.0, 1.0]])


def orbital_plane_position(elements: OrbitalElements, E: float) -> np.ndarray:
    """
    Position in the orbital plane (periapsis along +x) for eccentric anomaly E.

    x = a (cos E - e),  y = a sqrt(1 - e²) sin E
    """
    a = elements.semi_major_axis
    e = elements.eccentricity
    return np.array([
        a * (np.cos(E) - e),
        a * np.sqrt(1.0 - e * e) * np.sin(E),
        0.0,
    ])


def propagate(elements: OrbitalElements, elapsed_time: float,
              tolerance: float = const.KEPLER_TOLERANCE) -> np.ndarray:
    """
    3D position [m] on the orbit after `elapsed_time` seconds.

    The in-plane position is rotated by the argument of periapsis, then
    the inclination, then the longitude of the ascending node:
    r = Rz(Ω) · Rx(i) · Rz(ω) · r_plane
    """
    E = solve_eccentric_anomaly(elements.eccentricity,
                                elements.mean_anomaly(elapsed_time),
                                tolerance)
    r_plane = orbital_plane_position(elements, E)
    r = _rotation_z(elements.argument_of_periapsis) @ r_plane
    r = _rotation_x(elements.inclination) @ r
    r = _rotation_z(elements.longitude_of_ascending_node) @ r
    return r


class OrbitingObject:
    """
    A decorative body following fixed Keplerian elements.

    Owns its elapsed-time accumulator; position is a pure function of it.
    """

    def __init__(self, name: str, elements: OrbitalElements,
                 center: np.ndarray = None, elapsed_time: float = 0.0):
        self.name = name
        self.elements = elements
        self.center = np.zeros(3) if center is None else np.asarray(center, dtype=np.float64)
        self.elapsed_time = elapsed_time
        self.position = self.center + propagate(elements, elapsed_time)

    def advance(self, dt: float, speed_multiplier: float = 1.0) -> np.ndarray:
        """
        Advance the accumulator by dt × speed_multiplier and return the new position [m].
        """
        self.elapsed_time += dt * speed_multiplier
        self.position = self.center + propagate(self.elements, self.elapsed_time)
        return self.position

    def eccentric_anomaly_at(self, elapsed_time: float) -> float:
        """Eccentric anomaly [rad] at a given elapsed time, without advancing."""
        return solve_eccentric_anomaly(self.elements.eccentricity,
                                       self.elements.mean_anomaly(elapsed_time))

    def __repr__(self) -> str:
        return (f"OrbitingObject({self.name}, a={self.elements.semi_major_axis:.3e} m, "
                f"e={self.elements.eccentricity:.3f}, t={self.elapsed_time:.1f} s)")
