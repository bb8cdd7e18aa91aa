"""Alignment with minimap2: https://github.com/lh3/minimap2

Reads are pulled back out of the merged BAM with their MM/ML modification
tags and minimap2 copies the tags into the alignments (-y).
"""
import os
import shlex

from nanobed.distributed import resources
from nanobed.distributed.transaction import file_transaction
from nanobed.log import logger
from nanobed.pipeline import config_utils, merge
from nanobed.provenance import do

def out_file(data):
    return os.path.join(data["work_dir"], "%s.minimap.bam" % data["unit"].sample)

def run(data):
    """Perform piped alignment of the merged BAM, generating a sorted, indexed BAM.
    """
    merged_bam = shlex.quote(merge.out_file(data))
    aligned_bam = out_file(data)
    ref_file = shlex.quote(data["run"].ref_file)
    num_cores = resources.stage_cores("minimap2", data["threads"], data["config"])
    samtools = config_utils.get_program("samtools", data["config"])
    minimap2 = config_utils.get_program("minimap2", data["config"])
    preset = config_utils.get_resources("minimap2", data["config"]).get("preset", "map-ont")
    options = config_utils.get_options("minimap2", data["config"])
    tmp_prefix = shlex.quote(os.path.join(data["work_dir"], "reads.tmp"))
    logger.info("  Running minimap2 alignment (preserving methylation tags)...")
    logger.info("    Threads: %s" % num_cores)
    logger.info("    Mode: %s with -y (copy tags)" % preset)
    with file_transaction(data, aligned_bam) as tx_out_file:
        tx_out_file = shlex.quote(tx_out_file)
        cmd = ("{samtools} fastq -@ {num_cores} -T MM,ML {merged_bam} | "
               "{minimap2} -ax {preset} -t {num_cores} -y --secondary=no {options} {ref_file} - | "
               "{samtools} view -@ {num_cores} -S -b - | "
               "{samtools} sort -@ {num_cores} -o {tx_out_file} -T {tmp_prefix} -")
        do.run(cmd.format(**locals()), "minimap2 alignment: %s" % data["unit"].sample, data)
        logger.info("  Creating BAM index...")
        cmd = "{samtools} index -@ {num_cores} {tx_out_file}"
        do.run(cmd.format(**locals()), "Index aligned BAM: %s" % data["unit"].sample, data)
    return aligned_bam
