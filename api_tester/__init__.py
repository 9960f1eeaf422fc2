"""
API Tester

Fires a fixed number of GET requests at a URL from a pool of threads and
reports the average response time and throughput.
"""

from .config import RunConfig
from .runner import run_load_test

__all__ = ["RunConfig", "run_load_test"]
__version__ = "1.0.0"
