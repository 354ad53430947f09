import os
import time
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def disk_write_test(path: str) -> float:
    """Measure disk write IOPS by repeatedly writing a probe file.

    The parent directory is created if it does not already exist so that callers
    may freely supply paths under non-existent directories.
    """

    dir_path = os.path.dirname(path)
    if dir_path:
        os.makedirs(dir_path, exist_ok=True)

    start = time.perf_counter()
    for _ in range(20):
        with open(path, 'wb') as fh:
            fh.write(b'0')
            fh.flush()
            os.fsync(fh.fileno())
    elapsed = time.perf_counter() - start
    os.remove(path)
    return 20 / elapsed if elapsed else float('inf')


def check_writable(root: Path) -> bool:
    """Return whether cached assets can be written below *root*."""
    probe = Path(root) / ".write-probe.tmp"
    try:
        iops = disk_write_test(str(probe))
    except OSError as e:
        logger.warning("asset root %s is not writable, lookups will not be cached: %s", root, e)
        return False
    logger.debug("asset root %s write rate %.0f ops/s", root, iops)
    return True
