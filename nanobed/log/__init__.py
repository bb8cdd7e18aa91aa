"""Utility functionality for logging.

Progress messages go to the `nanobed` channel, command lines and the output of
external tools to `nanobed-commands`. A run writes a master log with progress
and one log per sample capturing both channels.
"""
import contextlib
import datetime
import os
import sys

import logbook

from nanobed import utils

LOG_NAME = "nanobed"
DEFAULT_LOG_DIR = "logs"
MASTER_LOG_PREFIX = "pipeline_master_log"

logger = logbook.Logger(LOG_NAME)
logger_cl = logbook.Logger(LOG_NAME + "-commands")

def _is_cl(record, _):
    return record.channel == LOG_NAME + "-commands"

def _not_cl(record, handler):
    return not _is_cl(record, handler)

def _format_str(include_time=True):
    return "".join(["[{record.time:%Y-%m-%dT%H:%M:%SZ}] " if include_time else "",
                    "{record.message}"])

class CloseableNestedSetup(logbook.NestedSetup):
    def close(self):
        for obj in self.objects:
            if hasattr(obj, "close"):
                obj.close()

def get_log_dir(output_dir):
    return os.path.join(output_dir, DEFAULT_LOG_DIR)

def master_log_file(output_dir, now=None):
    """Create the log directory and name a timestamped master log inside it.
    """
    now = now or datetime.datetime.now()
    log_dir = utils.safe_makedir(get_log_dir(output_dir))
    return os.path.join(log_dir, "%s_%s.txt" % (MASTER_LOG_PREFIX, now.strftime("%Y%m%d_%H%M%S")))

def setup_local_logging(include_time=True):
    """Setup logging to standard error for progress messages.

    Commands and tool output are only written to log files.
    """
    logbook.set_datetime_format("utc")
    handler = CloseableNestedSetup([
        logbook.NullHandler(),
        logbook.StreamHandler(sys.stderr, format_string=_format_str(include_time),
                              level="INFO", bubble=True, filter=_not_cl)])
    handler.push_thread()
    return handler

@contextlib.contextmanager
def master_logging(log_file):
    """Append progress messages to the master run log while active.
    """
    handler = logbook.FileHandler(log_file, mode="a", format_string=_format_str(),
                                  level="INFO", bubble=True, filter=_not_cl)
    handler.push_thread()
    try:
        yield log_file
    finally:
        handler.pop_thread()
        handler.close()

@contextlib.contextmanager
def unit_logging(log_file):
    """Append everything logged while processing a single sample to its own log.
    """
    utils.safe_makedir(os.path.dirname(log_file))
    handler = logbook.FileHandler(log_file, mode="a", format_string=_format_str(),
                                  level="DEBUG", bubble=True)
    handler.push_thread()
    try:
        yield log_file
    finally:
        handler.pop_thread()
        handler.close()
