# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Single Point Positioning (SPP) least-squares solver

Receiver position and clock bias are estimated from corrected pseudoranges
by Gauss-Newton iteration on the model ``pr = |sat - x| + b``, with ``b``
the receiver clock bias in meters. Epochs are solved in order, each seeded
with the solution of the last successful one.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

import numpy as np
from numpy.linalg import norm

from ..core.constants import LSQ_TOL, MIN_SATS
from ..core.data_structures import ReceiverEstimate
from ..core.exceptions import ConvergenceError, PositioningError, SingularGeometryError
from ..logger import LogLevel

logger = logging.getLogger(__name__)


def geodist(sat_pos, rec_pos):
    """Geometric distances and line-of-sight unit vectors, receiver to satellite

    ``sat_pos`` is one position (3,) or a set (N, 3); a zero distance gets
    a zero unit vector.
    """
    diff = np.asarray(sat_pos, dtype=float) - rec_pos
    r = norm(diff, axis=-1)
    scale = np.asarray(r)[..., None]
    e = np.divide(diff, scale, out=np.zeros_like(diff), where=scale > 0)
    return r, e


def least_squares(sat_positions, pseudoranges, x0, b0: float = 0.0,
                  tol: float = LSQ_TOL, max_iterations: Optional[int] = None):
    """
    Solve for receiver position and clock bias by Gauss-Newton iteration

    Parameters:
    -----------
    sat_positions : np.ndarray
        Satellite ECEF positions (m), shape (N, 3)
    pseudoranges : np.ndarray
        Corrected pseudoranges (m), shape (N,)
    x0 : np.ndarray
        Initial receiver ECEF position (m)
    b0 : float
        Initial receiver clock bias (m)
    tol : float
        Iteration stops once the position update norm drops below this (m)
    max_iterations : int, optional
        Iteration cap; unbounded when None

    Returns:
    --------
    x : np.ndarray
        Receiver ECEF position (m)
    b : float
        Receiver clock bias (m)
    residual_norm : float
        Norm of the pseudorange residuals at the returned estimate (m)
    iterations : int
        Gauss-Newton updates performed

    Raises:
    -------
    SingularGeometryError
        Fewer than 4 satellites, rank-deficient geometry or a non-finite update
    ConvergenceError
        ``max_iterations`` reached before convergence
    """
    sat_positions = np.asarray(sat_positions, dtype=float).reshape(-1, 3)
    pseudoranges = np.asarray(pseudoranges, dtype=float).reshape(-1)
    if len(sat_positions) != len(pseudoranges):
        raise ValueError(f"{len(sat_positions)} satellite positions for "
                         f"{len(pseudoranges)} pseudoranges")

    n = len(pseudoranges)
    if n < MIN_SATS:
        raise SingularGeometryError(f"{n} satellites, at least {MIN_SATS} required")

    x = np.array(x0, dtype=float).reshape(3)
    b = float(b0)
    iterations = 0

    while True:
        if max_iterations is not None and iterations >= max_iterations:
            raise ConvergenceError(f"Not converged after {iterations} iterations")

        rho, los = geodist(sat_positions, x)
        if not np.all(rho > 0):
            raise SingularGeometryError("Receiver estimate coincides with a satellite")

        # Design matrix: -(line of sight) for position, 1 for clock bias
        G = np.ones((n, 4))
        G[:, :3] = -los
        v = pseudoranges - (rho + b)

        dx, _, rank, _ = np.linalg.lstsq(G, v, rcond=None)
        if rank < 4:
            raise SingularGeometryError(f"Rank-deficient geometry (rank {rank})")
        if not np.all(np.isfinite(dx)):
            raise SingularGeometryError("Non-finite least-squares update")

        x = x + dx[:3]
        b = b + dx[3]
        iterations += 1

        logger.log(LogLevel.TRACE.value, f"LSQ iteration {iterations}: |dx| = {norm(dx[:3]):.6f} m")

        if norm(dx[:3]) < tol:
            break

    rho, _ = geodist(sat_positions, x)
    residual_norm = float(norm(pseudoranges - (rho + b)))
    return x, float(b), residual_norm, iterations


@dataclass
class EpochData:
    """Inputs of the position solver for one measurement epoch

    Attributes
    ----------
    epoch : int
        Measurement epoch id
    timestamp : datetime or None
        Receiver timestamp of the epoch (GPS time scale)
    satellites : list[str]
        Satellite identifiers, one per row of ``sat_positions``
    sat_positions : np.ndarray
        Satellite ECEF positions at transmission time (m), shape (N, 3)
    pseudoranges : np.ndarray
        Clock-corrected pseudoranges (m), shape (N,)
    """
    epoch: int
    timestamp: Optional[datetime] = None
    satellites: list = field(default_factory=list)
    sat_positions: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    pseudoranges: np.ndarray = field(default_factory=lambda: np.zeros(0))

    @property
    def num_satellites(self) -> int:
        return len(self.satellites)


def _seed_state(seed) -> np.ndarray:
    if isinstance(seed, ReceiverEstimate):
        return seed.state()
    state = np.asarray(seed, dtype=float).reshape(-1)
    if state.size == 3:
        return np.append(state, 0.0)
    if state.size != 4:
        raise ValueError(f"Seed must be [x, y, z] or [x, y, z, b], got {state.size} values")
    return state


def solve_epoch(seed, epoch_data: EpochData, tol: float = LSQ_TOL,
                max_iterations: Optional[int] = None) -> ReceiverEstimate:
    """
    Solve one epoch starting from a seed

    Parameters:
    -----------
    seed : ReceiverEstimate or array_like
        Previous estimate, or a state ``[x, y, z]`` / ``[x, y, z, b]``
    epoch_data : EpochData
        Satellite positions and corrected pseudoranges of the epoch

    Returns:
    --------
    ReceiverEstimate
        Solution of the epoch

    Raises:
    -------
    PositioningError
        If the epoch cannot be solved
    """
    state = _seed_state(seed)
    x, b, residual_norm, iterations = least_squares(
        epoch_data.sat_positions, epoch_data.pseudoranges, state[:3], state[3],
        tol=tol, max_iterations=max_iterations)

    return ReceiverEstimate(
        epoch=epoch_data.epoch,
        timestamp=epoch_data.timestamp,
        position=x,
        clock_bias=b,
        residual_norm=residual_norm,
        satellites=list(epoch_data.satellites),
        iterations=iterations,
    )


def fold_epochs(epoch_data: Iterable[EpochData], initial_guess=(0.0, 0.0, 0.0, 0.0),
                tol: float = LSQ_TOL, max_iterations: Optional[int] = None):
    """
    Solve epochs in order, seeding each from the last successful solution

    An epoch raising ``PositioningError`` is skipped and its seed carried to
    the next epoch.

    Parameters:
    -----------
    epoch_data : Iterable[EpochData]
        Epochs in ascending order
    initial_guess : array_like
        Seed of the first epoch, ``[x, y, z]`` or ``[x, y, z, b]``

    Returns:
    --------
    estimates : list[ReceiverEstimate]
        One estimate per solved epoch, in input order
    skipped : dict[int, str]
        Reason per skipped epoch id
    """
    seed = _seed_state(initial_guess)
    estimates = []
    skipped = {}

    for data in epoch_data:
        try:
            estimate = solve_epoch(seed, data, tol=tol, max_iterations=max_iterations)
        except PositioningError as e:
            logger.warning(f"Epoch {data.epoch} skipped: {e}")
            skipped[data.epoch] = str(e)
            continue

        logger.debug(f"Epoch {data.epoch}: {estimate.num_satellites} satellites, "
                     f"{estimate.iterations} iterations, residual {estimate.residual_norm:.3f} m")
        estimates.append(estimate)
        seed = estimate.state()

    return estimates, skipped
