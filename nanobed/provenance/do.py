"""Centralize running of external commands, providing logging and tracking.
"""
import collections
import os
import queue
import subprocess
import threading
import time

from nanobed.log import logger, logger_cl

ToolResult = collections.namedtuple("ToolResult", ["exitcode", "stdout", "stderr", "duration"])

class StageExecutionError(Exception):
    """An external command finished with a non-zero exit status.
    """
    def __init__(self, descr, exitcode, output=""):
        self.descr = descr
        self.exitcode = exitcode
        self.output = output
        super(StageExecutionError, self).__init__("%s failed with exit status %s" % (descr, exitcode))

class ExternalTool(object):
    """Run commands in a subprocess, streaming their output to the commands log.

    Piped commands are run with bash and `set -o pipefail` so an error in any
    intermediate step is reported.
    """
    def __init__(self, env=None, keep_lines=100):
        self.env = env
        self.keep_lines = keep_lines

    def invoke(self, cmd, work_dir=None):
        cmd, shell_arg, executable_arg = _normalize_cmd_args(cmd)
        start = time.time()
        s = subprocess.Popen(cmd, shell=shell_arg, executable=executable_arg,
                             stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                             close_fds=True, cwd=work_dir, env=self.env)
        captured = {"stdout": collections.deque(maxlen=self.keep_lines),
                    "stderr": collections.deque(maxlen=self.keep_lines)}
        lines = queue.Queue()
        readers = [threading.Thread(target=_drain, args=(s.stdout, "stdout", lines)),
                   threading.Thread(target=_drain, args=(s.stderr, "stderr", lines))]
        for t in readers:
            t.daemon = True
            t.start()
        # log from this thread, log handlers are bound to it
        finished = 0
        while finished < len(readers):
            name, line = lines.get()
            if line is None:
                finished += 1
            elif line.rstrip():
                captured[name].append(line)
                logger_cl.debug(line.rstrip())
        exitcode = s.wait()
        return ToolResult(exitcode, "".join(captured["stdout"]), "".join(captured["stderr"]),
                          time.time() - start)

def _drain(stream, name, lines):
    with stream:
        for line in iter(stream.readline, b""):
            lines.put((name, line.decode("utf-8", errors="replace")))
    lines.put((name, None))

def find_bash():
    for test_bash in [find_cmd("bash"), "/bin/bash", "/usr/bin/bash", "/usr/local/bin/bash"]:
        if test_bash and os.path.exists(test_bash):
            return test_bash
    raise IOError("Could not find bash in any standard location. Needed for unix pipes")

def find_cmd(cmd):
    try:
        return subprocess.check_output(["which", cmd]).decode().strip()
    except subprocess.CalledProcessError:
        return None

def _normalize_cmd_args(cmd):
    """Normalize subprocess arguments to handle list commands, string and pipes.
    Piped commands set pipefail and require use of bash to help with debugging
    intermediate errors.
    """
    if isinstance(cmd, str):
        if cmd.find(" | ") > 0:
            return "set -o pipefail; " + cmd, True, find_bash()
        else:
            return cmd, True, None
    else:
        return [str(x) for x in cmd], False, None

def run(cmd, descr, data, work_dir=None):
    """Run the provided command with the sample's tool, raising on failure.

    Returns the ToolResult of the finished command.
    """
    logger.debug(descr)
    logger_cl.debug(cmd if isinstance(cmd, str) else " ".join(str(x) for x in cmd))
    result = data["tool"].invoke(cmd, work_dir)
    if result.exitcode != 0:
        output = "".join([result.stderr, result.stdout]).strip()
        for line in output.splitlines()[-10:]:
            logger_cl.error(line)
        raise StageExecutionError(descr, result.exitcode, output)
    return result
