"""Merge the raw basecalled BAM files of a sample into one sorted, indexed BAM.

Basecaller output keeps modification calls in MM/ML tags, so records are
concatenated under the header of the first file rather than re-encoded.
"""
import os
import shlex

from nanobed import bam
from nanobed.distributed import resources
from nanobed.distributed.transaction import file_transaction
from nanobed.log import logger
from nanobed.pipeline import config_utils
from nanobed.provenance import do

class NoInputFiles(Exception):
    pass

def out_file(data):
    return os.path.join(data["work_dir"], "%s.merged.bam" % data["unit"].sample)

def select_valid_bams(bam_files):
    """Keep readable BAM files, dropping corrupt ones after the first.

    The first file supplies the merged header, so an unreadable header there
    raises InputValidationError.
    """
    first = bam_files[0]
    try:
        bam.check_header(first)
    except bam.InputValidationError as e:
        logger.error("  BAM header problem in %s" % first)
        logger.debug(e.reason)
        raise
    valid = [first]
    for bam_file in bam_files[1:]:
        try:
            bam.check_records(bam_file)
        except bam.InputValidationError as e:
            logger.warning("  Corrupt BAM: %s" % bam_file)
            logger.debug(e.reason)
        else:
            valid.append(bam_file)
    return valid

def _write_bam_list(bam_files, list_file):
    with open(list_file, "w") as out_handle:
        for bam_file in bam_files:
            out_handle.write("%s\n" % bam_file)
    return list_file

def run(data):
    """Merge raw BAM files found below the sample input directory.
    """
    logger.info("  Searching for BAM files...")
    bam_files = bam.find_bams(data["unit"].input_dir)
    logger.info("    Found: %s BAM files" % len(bam_files))
    if not bam_files:
        raise NoInputFiles("No BAM files found in %s" % data["unit"].input_dir)
    valid = select_valid_bams(bam_files)
    if len(valid) < len(bam_files):
        logger.info("    Using %s of %s BAM files" % (len(valid), len(bam_files)))
    bam_list = _write_bam_list(valid, os.path.join(data["work_dir"], "bam_list.txt"))
    samtools = config_utils.get_program("samtools", data["config"])
    num_cores = resources.stage_cores("samtools", data["threads"], data["config"])
    merged_bam = out_file(data)
    logger.info("  Merging BAM files (using %s threads)..." % num_cores)
    with file_transaction(data, merged_bam) as tx_out_file:
        bam_list, tx_out_file = shlex.quote(bam_list), shlex.quote(tx_out_file)
        cmd = ("{samtools} cat -b {bam_list} | "
               "{samtools} sort -@ {num_cores} -o {tx_out_file} -")
        do.run(cmd.format(**locals()), "Merge BAM files: %s" % data["unit"].sample, data)
        cmd = "{samtools} index -@ {num_cores} {tx_out_file}"
        do.run(cmd.format(**locals()), "Index merged BAM: %s" % data["unit"].sample, data)
    return merged_bam
