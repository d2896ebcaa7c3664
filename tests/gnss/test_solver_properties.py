"""
Tests for noiseless recovery of receiver position and clock bias.
"""

import numpy as np
import pytest
from pyrawgnss.coordinate.transforms import llh2ecef
from pyrawgnss.core.constants import CLIGHT, D2R
from pyrawgnss.core.exceptions import SingularGeometryError
from pyrawgnss.gnss.spp import EpochData, fold_epochs, least_squares


def satellites_above(truth, n=8, distance=2.02e7):
    """Satellite positions spread over the sky above ``truth``."""
    up = truth / np.linalg.norm(truth)
    east = np.cross([0.0, 0.0, 1.0], up)
    east /= np.linalg.norm(east)
    north = np.cross(up, east)

    sats = [truth + distance * up]
    for k in range(n - 1):
        az = 2.0 * np.pi * k / (n - 1) + 0.2
        d = up + (0.4 + 0.5 * (k % 2)) * (np.cos(az) * north + np.sin(az) * east)
        sats.append(truth + distance * d / np.linalg.norm(d))
    return np.array(sats)


SITES = [
    (47.586, -122.328, -4.78),   # Seattle
    (35.681, 139.767, 40.0),     # Tokyo
    (0.5, 10.0, 1200.0),         # near the equator
]


class TestNoiselessRecovery:
    """Pseudoranges from the forward model solve back to the truth."""

    @pytest.mark.parametrize("lat, lon, alt", SITES)
    @pytest.mark.parametrize("clock_seconds", [0.0, 2.21e-7, -1e-3])
    def test_recovers_state(self, lat, lon, alt, clock_seconds):
        truth = llh2ecef(np.array([lat * D2R, lon * D2R, alt]))
        clock = CLIGHT * clock_seconds
        sats = satellites_above(truth)
        pr = np.linalg.norm(sats - truth, axis=1) + clock

        x, b, residual, _ = least_squares(sats, pr, np.zeros(3))

        assert np.linalg.norm(x - truth) < 1e-6
        assert abs(b - clock) < 1e-6
        assert residual < 1e-6

    def test_three_satellites_fail(self):
        truth = llh2ecef(np.array([47.586 * D2R, -122.328 * D2R, -4.78]))
        sats = satellites_above(truth, n=3)
        pr = np.linalg.norm(sats - truth, axis=1)

        with pytest.raises(SingularGeometryError):
            least_squares(sats, pr, np.zeros(3))

    def test_clock_drift_tracked_across_epochs(self):
        truth = llh2ecef(np.array([35.681 * D2R, 139.767 * D2R, 40.0]))
        sats = satellites_above(truth)
        ranges = np.linalg.norm(sats - truth, axis=1)
        clocks = [30.0, 30.3, 30.6]

        epochs = [EpochData(epoch=k, satellites=[f"G{i:02d}" for i in range(1, 9)],
                            sat_positions=sats, pseudoranges=ranges + c)
                  for k, c in enumerate(clocks)]
        estimates, skipped = fold_epochs(epochs)

        assert skipped == {}
        assert [est.clock_bias for est in estimates] == pytest.approx(clocks, abs=1e-6)
