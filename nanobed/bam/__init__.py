"""Functionality to validate raw BAM files before merging.
"""
import contextlib
import os

import pysam

class InputValidationError(Exception):
    """A raw input BAM file is truncated or otherwise unreadable.
    """
    def __init__(self, bam_file, reason):
        self.bam_file = bam_file
        self.reason = reason
        super(InputValidationError, self).__init__("%s: %s" % (bam_file, reason))

def is_bam(in_file):
    _, ext = os.path.splitext(in_file)
    return ext == ".bam"

def find_bams(in_dir):
    """Retrieve all BAM files below a directory, sorted by path.
    """
    out = []
    for root, dirs, files in os.walk(in_dir):
        dirs.sort()
        out.extend(os.path.join(root, f) for f in files if is_bam(f))
    return sorted(out)

@contextlib.contextmanager
def _open_bam(bam_file):
    try:
        # unaligned basecaller output has no @SQ lines
        in_bam = pysam.AlignmentFile(bam_file, "rb", check_sq=False)
    except (ValueError, OSError) as e:
        raise InputValidationError(bam_file, str(e))
    try:
        yield in_bam
    finally:
        in_bam.close()

def check_header(bam_file):
    """Ensure a BAM file has a readable header.
    """
    with _open_bam(bam_file) as in_bam:
        return in_bam.header

def check_records(bam_file):
    """Read every record of a BAM file, failing on truncation or corruption.
    """
    with _open_bam(bam_file) as in_bam:
        count = 0
        try:
            for _ in in_bam.fetch(until_eof=True):
                count += 1
        except (ValueError, OSError) as e:
            raise InputValidationError(bam_file, str(e))
    return count
