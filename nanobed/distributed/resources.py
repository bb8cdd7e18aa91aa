"""Fit requested cores to what the resource manager allocated to the job.

External tools do the parallel work, so the pipeline only has to make sure
they are never told to use more threads than the scheduler gave us.
"""
import os

import toolz as tz

from nanobed.log import logger
from nanobed.pipeline import config_utils

def get_allocation(config, environ=None):
    """Retrieve cores allocated by the resource manager, or the configured default.
    """
    environ = os.environ if environ is None else environ
    default = int(tz.get_in(["allocation", "default"], config, config_utils.DEFAULT_THREADS))
    env_name = tz.get_in(["allocation", "env"], config)
    val = environ.get(env_name) if env_name else None
    if val is None or str(val).strip() == "":
        return default
    try:
        cores = int(str(val).strip())
    except ValueError:
        cores = 0
    if cores < 1:
        logger.warning("Ignoring invalid %s value %r, using %s cores" % (env_name, val, default))
        return default
    return cores

class ThreadBudget(object):
    """Clamp the requested thread count to the allocated resources.
    """
    def __init__(self, config, environ=None):
        self.config = config
        self.allocation = get_allocation(config, environ)

    def clamp(self, requested):
        requested = int(requested)
        if requested > self.allocation:
            logger.warning("Requested threads (%s) exceeds allocation (%s), reducing to %s threads"
                           % (requested, self.allocation, self.allocation))
            return self.allocation
        return requested

def stage_cores(name, cores, config):
    """Apply a program specific ceiling on threads, for tools that cannot use many.
    """
    max_cores = config_utils.get_resources(name, config).get("max_cores")
    if max_cores and cores > int(max_cores):
        logger.info("  (%s limited to %s threads)" % (name, max_cores))
        return int(max_cores)
    return cores
