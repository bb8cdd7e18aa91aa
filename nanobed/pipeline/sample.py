"""Identify samples from their location in a sequencing run directory.

A sample directory sits below a library (run accession) directory, for
instance `SRR1/fastq_gpu_hac_only_5mc_mod/pass/20240101_A_meta/`. The library
is the first path component, the sample the last and the batch a date found in
the path, falling back to the second component.
"""
import collections
import os
import re

from nanobed.log import get_log_dir

WorkUnit = collections.namedtuple("WorkUnit", ["library", "batch", "sample", "input_dir"])

DATE_RE = re.compile(r"([0-9]{8}|[0-9]{4}-[0-9]{2}-[0-9]{2})")

def unit_identity(rel_path):
    """Derive (library, batch, sample) from a path relative to the input directory.

    Always succeeds; the batch is empty if there is no date and no second
    path component.
    """
    parts = [p for p in rel_path.replace(os.sep, "/").split("/") if p and p != "."]
    if not parts:
        return "", "", ""
    library = parts[0]
    sample = parts[-1]
    date = DATE_RE.search("/".join(parts))
    if date:
        batch = date.group(1)
    elif len(parts) > 1:
        batch = parts[1]
    else:
        batch = ""
    return library, batch, sample

def from_path(input_dir, path):
    """Build a WorkUnit for a sample directory inside `input_dir`.
    """
    path = os.path.normpath(path)
    library, batch, sample = unit_identity(os.path.relpath(path, input_dir))
    return WorkUnit(library, batch, sample, path)

def out_dir(unit, output_dir):
    return os.path.join(output_dir, unit.library, unit.batch, unit.sample)

def log_file(unit, output_dir):
    return os.path.join(get_log_dir(output_dir), unit.library, unit.batch,
                        "%s.log" % unit.sample)
