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

"""Trajectory plots of receiver estimates with matplotlib"""

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from ..coordinate.transforms import ecef2ned, llh2ecef
from ..core.constants import D2R


def fixes_to_ned(fixes: pd.DataFrame, origin_llh: np.ndarray) -> np.ndarray:
    """
    Express Android location fixes as NED offsets

    Parameters:
    -----------
    fixes : pd.DataFrame
        Fix table with Latitude, Longitude (deg) and Altitude (m)
    origin_llh : np.ndarray
        Origin [lat (rad), lon (rad), height (m)]

    Returns:
    --------
    np.ndarray
        NED offsets (m), shape (N, 3); empty when the table has no positions
    """
    if not {'Latitude', 'Longitude'}.issubset(fixes.columns):
        return np.zeros((0, 3))
    fixes = fixes.dropna(subset=['Latitude', 'Longitude'])
    if fixes.empty:
        return np.zeros((0, 3))
    alt = fixes['Altitude'].fillna(0.0) if 'Altitude' in fixes else np.zeros(len(fixes))
    llh = np.column_stack([fixes['Latitude'] * D2R, fixes['Longitude'] * D2R, alt])
    xyz = llh2ecef(llh)
    return ecef2ned(xyz, origin_llh).reshape(-1, 3)


def plot_trajectory(frame: pd.DataFrame, fixes: Optional[pd.DataFrame] = None, ax=None):
    """
    Plot the horizontal trajectory as east/north offsets

    Parameters:
    -----------
    frame : pd.DataFrame
        Output of ``estimates_to_dataframe``
    fixes : pd.DataFrame, optional
        Android fixes to overlay
    ax : matplotlib.axes.Axes, optional
        Axes to draw on; a new figure is created when omitted

    Returns:
    --------
    matplotlib.axes.Axes
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 8))

    ax.plot(frame['East'], frame['North'], '.-', label='Least squares', markersize=3)

    if fixes is not None and len(frame):
        origin = np.array([frame['Latitude'].iloc[0] * D2R,
                           frame['Longitude'].iloc[0] * D2R,
                           frame['Altitude'].iloc[0]])
        ned = fixes_to_ned(fixes, origin)
        if len(ned):
            ax.plot(ned[:, 1], ned[:, 0], 'x', label='Android fixes', markersize=4)

    ax.set_xlabel('East (m)')
    ax.set_ylabel('North (m)')
    ax.set_title('Receiver trajectory')
    ax.grid(True)
    ax.axis('equal')
    ax.legend()
    return ax


def plot_solution_summary(frame: pd.DataFrame):
    """Height, horizontal track and satellites used, side by side"""
    fig, axes = plt.subplots(1, 3, figsize=(15, 5))

    # Height plot
    axes[0].plot(frame['Epoch'], -frame['Down'])
    axes[0].set_xlabel('Epoch')
    axes[0].set_ylabel('Height change (m)')
    axes[0].set_title('Height vs Epoch')
    axes[0].grid(True)

    # Horizontal position
    plot_trajectory(frame, ax=axes[1])

    # Number of satellites
    axes[2].plot(frame['Epoch'], frame['NumSatellites'], '.')
    axes[2].set_xlabel('Epoch')
    axes[2].set_ylabel('Number of Satellites')
    axes[2].set_title('Satellites Used')
    axes[2].grid(True)

    fig.tight_layout()
    return fig
