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

"""Daily broadcast navigation (BRDC) file downloader using HTTPS"""

import gzip
import logging
import os
import shutil
import ssl
import urllib.error
import urllib.request
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

import certifi

logger = logging.getLogger(__name__)

# (base url, path template); {year} and {doy} are filled in per request
BRDC_SERVERS = [
    ("https://igs.bkg.bund.de", "/root_ftp/IGS/BRDC/{year:04d}/{doy:03d}/"),
    ("https://cddis.nasa.gov", "/archive/gnss/data/daily/{year:04d}/brdc/"),
]


def brdc_filename(day: Union[date, datetime]) -> str:
    """
    Name of the IGS daily merged multi-GNSS broadcast file (RINEX 3)

    Parameters
    ----------
    day : date or datetime
        UTC calendar day

    Returns
    -------
    str
        e.g. ``BRDC00IGS_R_20203380000_01D_MN.rnx``
    """
    doy = day.timetuple().tm_yday
    return f"BRDC00IGS_R_{day.year:04d}{doy:03d}0000_01D_MN.rnx"


def brdc_cache_path(day: Union[date, datetime], cache_dir: Union[str, Path]) -> Path:
    """Local path of the decompressed daily file: ``cache_dir/YYYY/DOY/<name>``"""
    doy = day.timetuple().tm_yday
    return Path(cache_dir) / f"{day.year:04d}" / f"{doy:03d}" / brdc_filename(day)


def download_brdc(day: Union[date, datetime], cache_dir: Union[str, Path] = "./ephemeris_cache",
                  overwrite: bool = False, timeout: float = 30.0,
                  servers=None) -> Optional[str]:
    """
    Download the daily broadcast navigation file for a UTC day

    Parameters
    ----------
    day : date or datetime
        UTC calendar day
    cache_dir : str or Path
        Directory to cache downloaded files
    overwrite : bool
        Whether to overwrite an existing file
    timeout : float
        Network timeout per server (s)
    servers : list, optional
        (base url, path template) pairs tried in order

    Returns
    -------
    str or None
        Path to the decompressed file or None if every server failed
    """
    local_path = brdc_cache_path(day, cache_dir)
    if local_path.exists() and not overwrite:
        logger.debug(f"Broadcast file already cached: {local_path}")
        return str(local_path)

    local_path.parent.mkdir(parents=True, exist_ok=True)
    compressed_path = local_path.with_suffix(local_path.suffix + '.gz')
    doy = day.timetuple().tm_yday

    # Create SSL context with certifi certificates
    ssl_context = ssl.create_default_context(cafile=certifi.where())

    for base_url, template in BRDC_SERVERS if servers is None else servers:
        full_url = base_url + template.format(year=day.year, doy=doy) + compressed_path.name
        logger.info(f"Trying to download broadcast ephemeris from: {full_url}")

        try:
            request = urllib.request.Request(full_url)
            request.add_header('User-Agent', 'pyrawgnss BRDC downloader')

            with urllib.request.urlopen(request, context=ssl_context, timeout=timeout) as response:
                with open(compressed_path, 'wb') as f:
                    shutil.copyfileobj(response, f)
            break

        except urllib.error.HTTPError as e:
            logger.warning(f"HTTP Error {e.code} from {base_url}: {e.reason}")
            continue
        except (urllib.error.URLError, OSError) as e:
            logger.warning(f"Download from {base_url} failed: {e}")
            continue
    else:
        logger.error(f"Failed to download {compressed_path.name} from all servers")
        if compressed_path.exists():
            os.remove(compressed_path)
        return None

    try:
        with gzip.open(compressed_path, 'rb') as f_in:
            with open(local_path, 'wb') as f_out:
                shutil.copyfileobj(f_in, f_out)
    except (OSError, EOFError) as e:
        logger.error(f"Error during decompression of {compressed_path}: {e}")
        if local_path.exists():
            os.remove(local_path)
        return None
    finally:
        if compressed_path.exists():
            os.remove(compressed_path)

    logger.info(f"Downloaded and decompressed: {local_path}")
    return str(local_path)
