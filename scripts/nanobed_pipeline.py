#!/usr/bin/env python -Es
"""Process basecalled nanopore runs into CpG methylation calls.

Finds sample directories below an input directory of SRR folders and runs
each sample through BAM merging, minimap2 alignment, modkit methylation
calling and Qualimap QC. Completed steps are skipped on re-runs, so an
interrupted run is resumed by running again with the same output directory.

Usage:
  nanobed_pipeline.py -i <input_dir> -o <output_dir> -ref <reference_genome.fna>
     -t number of threads to use (default 40, reduced to the SLURM allocation)
     --dry-run to check configuration and samples without processing
     -c optional YAML system configuration
"""
import sys

from nanobed.clargs import parse_cl_args
from nanobed.pipeline.main import main

if __name__ == "__main__":
    kwargs = parse_cl_args(sys.argv[1:])
    main(**kwargs)
