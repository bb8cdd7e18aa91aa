"""CpG methylation calling with modkit pileup.

https://github.com/nanoporetech/modkit
"""
import os
import shlex

from nanobed.distributed import resources
from nanobed.distributed.transaction import file_transaction
from nanobed.log import logger
from nanobed.ngsalign import minimap2
from nanobed.pipeline import config_utils
from nanobed.provenance import do

def out_file(data):
    return os.path.join(data["work_dir"], "%s.CpG.bed" % data["unit"].sample)

def run(data):
    aligned_bam = shlex.quote(minimap2.out_file(data))
    bed_file = out_file(data)
    ref_file = shlex.quote(data["run"].ref_file)
    num_cores = resources.stage_cores("modkit", data["threads"], data["config"])
    modkit = config_utils.get_program("modkit", data["config"])
    options = config_utils.get_options("modkit", data["config"])
    logger.info("  Running modkit pileup...")
    logger.info("    Mode: CpG methylation")
    logger.info("    Threads: %s" % num_cores)
    with file_transaction(data, bed_file) as tx_out_file:
        tx_out_file = shlex.quote(tx_out_file)
        cmd = ("{modkit} pileup {aligned_bam} {tx_out_file} --cpg --ref {ref_file} "
               "-t {num_cores} --combine-mods {options}")
        do.run(cmd.format(**locals()).strip(), "modkit pileup: %s" % data["unit"].sample, data)
    return bed_file
