"""Parsing of command line arguments into inputs for a pipeline run.
"""
import argparse

from nanobed.pipeline import config_utils, version

USAGE_EXAMPLE = """example:
  %(prog)s -i /data/nanopore -o /results -ref /ref/genome.fna -t 32
"""

def _positive_int(val):
    try:
        ival = int(val)
    except ValueError:
        ival = 0
    if ival < 1:
        raise argparse.ArgumentTypeError("Thread count must be a positive integer: %s" % val)
    return ival

def get_parser():
    description = ("Merge, align, call CpG methylation and run QC for basecalled "
                   "nanopore samples.")
    parser = argparse.ArgumentParser(description=description, epilog=USAGE_EXAMPLE,
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     allow_abbrev=False)
    required = parser.add_argument_group("required arguments")
    required.add_argument("-i", "--input", dest="input_dir", required=True,
                          help="Input directory containing SRR folders")
    required.add_argument("-o", "--output", dest="output_dir", required=True,
                          help="Output directory for processed data")
    required.add_argument("-ref", "--reference", dest="ref_file", required=True,
                          help="Path to reference genome FASTA file")
    parser.add_argument("-t", "--threads", type=_positive_int,
                        default=config_utils.DEFAULT_THREADS,
                        help="Number of threads to use (default: %(default)s)")
    parser.add_argument("--dry-run", dest="dry_run", action="store_true", default=False,
                        help="Run in test mode without processing")
    parser.add_argument("-c", "--config", dest="config_file",
                        help="YAML system configuration with program and layout settings")
    parser.add_argument("-v", "--version", action="version",
                        version="%(prog)s " + version.__version__)
    return parser

def parse_cl_args(in_args):
    """Parse input commandline arguments into keyword arguments for run_main.
    """
    args = get_parser().parse_args(in_args)
    return {"input_dir": args.input_dir,
            "output_dir": args.output_dir,
            "ref_file": args.ref_file,
            "threads": args.threads,
            "dry_run": args.dry_run,
            "config_file": args.config_file}
