"""Quality control using Qualimap.

http://qualimap.bioinfo.cipf.es/
"""
import os
import shlex

from nanobed.distributed import resources
from nanobed.distributed.transaction import file_transaction
from nanobed.log import logger
from nanobed.ngsalign import minimap2
from nanobed.pipeline import config_utils
from nanobed.provenance import do

REPORT_FILE = "qualimapReport.html"

def out_dir(data):
    return os.path.join(data["work_dir"], "qualimap")

def is_complete(data, results_dir):
    return os.path.isfile(os.path.join(results_dir, REPORT_FILE))

def run(data):
    """Run qualimap bamqc to assess alignment quality metrics.
    """
    bam_file = shlex.quote(minimap2.out_file(data))
    results_dir = out_dir(data)
    qualimap = config_utils.get_program("qualimap", data["config"])
    qresources = config_utils.get_resources("qualimap", data["config"])
    window = qresources.get("window", 5000)
    options = config_utils.get_options("qualimap", data["config"])
    if qresources.get("memory"):
        options = ("--java-mem-size=%s %s" % (qresources["memory"], options)).strip()
    logger.info("  Running Qualimap bamqc...")
    logger.info("    Window size: %s" % window)
    num_cores = resources.stage_cores("qualimap", data["threads"], data["config"])
    logger.info("    Threads: %s" % num_cores)
    with file_transaction(data, results_dir) as tx_results_dir:
        tx_results_dir = shlex.quote(tx_results_dir)
        cmd = ("unset DISPLAY && {qualimap} bamqc -bam {bam_file} -nw {window} -nt {num_cores} "
               "-c -outdir {tx_results_dir} {options}")
        do.run(cmd.format(**locals()).strip(), "Qualimap: %s" % data["unit"].sample, data)
    return os.path.join(results_dir, REPORT_FILE)
