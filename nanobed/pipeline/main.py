"""Main entry point for processing basecalled nanopore runs to methylation calls.

Handles discovery of samples and running each through merging, alignment,
methylation calling and quality control, one sample at a time.
"""
import collections
import sys

from nanobed import log, utils
from nanobed.distributed import resources
from nanobed.log import logger
from nanobed.pipeline import config_utils, discover, sample, stages, summary
from nanobed.provenance import do

def main(**kwargs):
    """Command line entry point, exiting with status 1 on configuration or discovery errors.

    Failed samples do not change the exit status; they are listed in the summary.
    """
    handler = log.setup_local_logging()
    try:
        return run_main(**kwargs)
    except (config_utils.ConfigurationError, discover.DiscoveryError) as e:
        sys.stderr.write("ERROR: %s\n" % e)
        sys.exit(1)
    finally:
        handler.pop_thread()

def run_main(input_dir, output_dir, ref_file, threads=config_utils.DEFAULT_THREADS,
             dry_run=False, config_file=None, tool=None, environ=None):
    """Run the pipeline over all samples found in `input_dir`.

    Raises ConfigurationError or DiscoveryError before anything is written;
    problems with individual samples are recorded in the returned RunSummary.
    """
    config = config_utils.load_system_config(config_file)
    run_config = config_utils.resolve_run_config(input_dir, output_dir, ref_file,
                                                 threads, dry_run)
    logger.info("Scanning for sample directories...")
    units = discover.scan_units(run_config.input_dir, config)
    log_file = log.master_log_file(run_config.output_dir)
    with log.master_logging(log_file):
        threads = resources.ThreadBudget(config, environ).clamp(run_config.threads)
        _log_configuration(run_config, config, threads, log_file)
        _log_distribution(units)
        if run_config.dry_run:
            logger.info("DRY RUN MODE - No processing will occur")
        run_summary = process_units(units, run_config, config, threads,
                                    tool or do.ExternalTool())
        logger.info("Pipeline complete!")
        for line in run_summary.report_lines():
            logger.info(line)
        logger.info("Output directory: %s" % run_config.output_dir)
        logger.info("Master log: %s" % log_file)
    return run_summary

def _log_configuration(run_config, config, threads, log_file):
    logger.info("NanoporeToBED pipeline")
    logger.info("Configuration:")
    logger.info("  Input directory:    %s" % run_config.input_dir)
    logger.info("  Output directory:   %s" % run_config.output_dir)
    logger.info("  Reference genome:   %s (%s)" % (run_config.ref_file,
                                                   utils.human_size(run_config.ref_file)))
    logger.info("  Threads:            %s" % threads)
    logger.info("  Dry run mode:       %s" % str(run_config.dry_run).lower())
    if config.get("nanobed_system"):
        logger.info("  System config:      %s" % config["nanobed_system"])
    logger.info("  Master log:         %s" % log_file)

def _log_distribution(units):
    logger.info("Found %s sample(s) to process" % len(units))
    logger.info("Sample distribution by library:")
    counts = collections.Counter(u.library for u in units)
    for library in sorted(counts):
        logger.info("  %s: %s sample(s)" % (library, counts[library]))

def process_units(units, run_config, config, threads, tool):
    """Process samples in order, continuing past any that fail.
    """
    run_summary = summary.RunSummary(threads, run_config.dry_run)
    for i, unit in enumerate(units):
        logger.info("Sample %s of %s" % (i + 1, len(units)))
        run_summary.add(unit, process_unit(unit, run_config, config, threads, tool))
    return run_summary

def prepare_unit(unit, run_config, config, threads, tool):
    """Create output and log directories for a sample, returning its data dictionary.
    """
    data = {"unit": unit, "run": run_config, "config": config, "threads": threads,
            "tool": tool,
            "work_dir": sample.out_dir(unit, run_config.output_dir),
            "log_file": sample.log_file(unit, run_config.output_dir)}
    utils.safe_makedir(data["work_dir"])
    return data

def process_unit(unit, run_config, config, threads, tool):
    """Run all steps for a single sample, returning its UnitOutcome.
    """
    logger.info("Sample ID:     %s" % unit.sample)
    logger.info("Library:       %s" % unit.library)
    logger.info("Batch:         %s" % unit.batch)
    logger.info("Input path:    %s" % unit.input_dir)
    data = prepare_unit(unit, run_config, config, threads, tool)
    logger.info("Output dir:    %s" % data["work_dir"])
    logger.info("Sample log:    %s" % data["log_file"])
    with log.unit_logging(data["log_file"]):
        if run_config.dry_run:
            for stage in stages.STAGES:
                stages.log_dry_run(stage, data)
            return summary.completed("dry run")
        for stage, skip in stages.plan_unit(data):
            if skip:
                stages.log_skipped(stage, data)
            else:
                outcome = stages.run_stage(stage, data)
                if outcome is not None:
                    return outcome
        logger.info("Sample %s complete!" % unit.sample)
    return summary.completed()
