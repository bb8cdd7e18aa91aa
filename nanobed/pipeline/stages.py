"""Ordered processing steps for a sample, with checks for completed outputs.

Each step produces one artifact. A step whose artifact is already complete is
skipped, which makes re-running a partially finished output directory resume
where it stopped.
"""
import collections
import os

from nanobed import bam, utils
from nanobed.distributed import resources
from nanobed.log import logger
from nanobed.methylation import modkit
from nanobed.ngsalign import minimap2
from nanobed.pipeline import config_utils, merge, summary
from nanobed.provenance import do, profile
from nanobed.qc import qualimap

Stage = collections.namedtuple("Stage", ["index", "name", "label", "out_file", "run",
                                         "is_complete", "requires", "program"])

def _larger_than_threshold(name):
    def check(data, out_file):
        return utils.file_larger_than(out_file, config_utils.get_threshold(name, data["config"]))
    return check

STAGES = [
    Stage(1, "merge", "Merging BAM files with methylation tags",
          merge.out_file, merge.run, _larger_than_threshold("merged"),
          [], "samtools"),
    Stage(2, "align", "Aligning reads with minimap2",
          minimap2.out_file, minimap2.run, _larger_than_threshold("aligned"),
          ["merge"], "minimap2"),
    Stage(3, "modcall", "Calling methylation with modkit",
          modkit.out_file, modkit.run, _larger_than_threshold("modcall"),
          ["align"], "modkit"),
    Stage(4, "qc", "Running Qualimap QC",
          qualimap.out_dir, qualimap.run, qualimap.is_complete,
          ["align"], "qualimap"),
]

def artifact_complete(stage, data):
    return bool(stage.is_complete(data, stage.out_file(data)))

def plan_unit(data):
    """Decide which steps to run for a sample.

    Returns (stage, skip) pairs. A complete QC report is only written at the
    end of a sample, so it marks every step done. Otherwise a step runs when
    its artifact is incomplete and either nothing consumes it or a step that
    consumes it will run.
    """
    done = dict((stage.name, artifact_complete(stage, data)) for stage in STAGES)
    if done[STAGES[-1].name]:
        return [(stage, True) for stage in STAGES]
    to_run = {}
    for stage in reversed(STAGES):
        consumers = [s.name for s in STAGES if stage.name in s.requires]
        to_run[stage.name] = (not done[stage.name] and
                              (not consumers or any(to_run[x] for x in consumers)))
    return [(stage, not to_run[stage.name]) for stage in STAGES]

def _header(stage):
    return "Step %s/%s: %s" % (stage.index, len(STAGES), stage.label)

def log_skipped(stage, data):
    logger.info(_header(stage))
    out_file = stage.out_file(data)
    if artifact_complete(stage, data):
        logger.info("  Already exists: %s (%s)" % (out_file, utils.human_size(out_file)))
    else:
        logger.info("  Not needed, later steps already complete")

def log_dry_run(stage, data):
    logger.info(_header(stage))
    num_cores = resources.stage_cores(stage.program, data["threads"], data["config"])
    logger.info("  [DRY RUN] Would run %s with %s threads -> %s"
                % (stage.name, num_cores, stage.out_file(data)))

def run_stage(stage, data):
    """Run a single step for a sample, converting expected failures into outcomes.

    Returns None when the step succeeded, otherwise the final UnitOutcome.
    """
    logger.info(_header(stage))
    try:
        with profile.report("%s: %s" % (stage.name, data["unit"].sample)) as timing:
            stage.run(data)
    except merge.NoInputFiles as e:
        logger.warning("  WARNING: %s - skipping this sample" % e)
        return summary.skipped_no_input(str(e))
    except bam.InputValidationError as e:
        reason = "BAM header problem in %s" % e.bam_file
        logger.error("  ERROR: %s" % reason)
        return summary.failed_stage(stage.index, reason)
    except do.StageExecutionError as e:
        logger.error("  ERROR: %s" % e)
        return summary.failed_stage(stage.index, str(e))
    except OSError as e:
        logger.error("  ERROR: %s failed: %s" % (stage.name, e))
        return summary.failed_stage(stage.index, "%s failed: %s" % (stage.name, e))
    out_file = stage.out_file(data)
    logger.info("  %s complete (%s seconds)" % (stage.label, timing["elapsed"]))
    if os.path.exists(out_file):
        logger.info("    Output: %s (%s)" % (out_file, utils.human_size(out_file)))
    return None
