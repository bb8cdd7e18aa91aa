"""Timing of pipeline steps for the run logs.
"""
import contextlib
import time

from nanobed.log import logger

@contextlib.contextmanager
def report(label):
    """Log wall clock timing for a step, yielding a dictionary filled with `elapsed`."""
    logger.debug("Timing: %s" % label)
    timing = {"label": label, "elapsed": None}
    start = time.time()
    try:
        yield timing
    finally:
        timing["elapsed"] = int(round(time.time() - start))
        logger.debug("Timing: %s finished in %s seconds" % (label, timing["elapsed"]))
