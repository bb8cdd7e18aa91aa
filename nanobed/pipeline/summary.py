"""Collect per-sample outcomes and summarize them by library at the end of a run.
"""
import collections

import toolz as tz

COMPLETED = "Completed"
SKIPPED = "SkippedNoInput"
FAILED = "FailedStage"

UnitOutcome = collections.namedtuple("UnitOutcome", ["status", "stage", "reason"])

def completed(reason=""):
    return UnitOutcome(COMPLETED, None, reason)

def skipped_no_input(reason):
    return UnitOutcome(SKIPPED, None, reason)

def failed_stage(stage, reason):
    return UnitOutcome(FAILED, stage, reason)

class RunSummary(object):
    """Accumulate outcomes for each processed sample.
    """
    def __init__(self, threads=None, dry_run=False):
        self.threads = threads
        self.dry_run = dry_run
        self.results = []

    def add(self, unit, outcome):
        self.results.append((unit, outcome))
        return outcome

    def by_library(self):
        return tz.groupby(lambda x: x[0].library, self.results)

    def counts(self):
        return collections.Counter(o.status for _, o in self.results)

    def library_lines(self):
        out = []
        for library, results in sorted(self.by_library().items()):
            counts = collections.Counter(o.status for _, o in results)
            parts = ["%s completed" % counts[COMPLETED]]
            if counts[SKIPPED]:
                parts.append("%s skipped" % counts[SKIPPED])
            if counts[FAILED]:
                parts.append("%s failed" % counts[FAILED])
            out.append("%s: %s unit%s (%s)" % (library, len(results),
                                               "" if len(results) == 1 else "s",
                                               ", ".join(parts)))
        return out

    def problem_lines(self):
        out = []
        for unit, outcome in self.results:
            if outcome.status == SKIPPED:
                out.append("%s/%s: skipped, %s" % (unit.library, unit.sample, outcome.reason))
            elif outcome.status == FAILED:
                out.append("%s/%s: failed at step %s/4, %s" % (unit.library, unit.sample,
                                                                 outcome.stage, outcome.reason))
        return out

    def report_lines(self):
        counts = self.counts()
        lines = ["Processed: %s sample(s)%s" % (len(self.results),
                                                " (dry run)" if self.dry_run else "")]
        if self.threads:
            lines.append("Threads used: %s" % self.threads)
        lines.append("Summary by library:")
        lines.extend("  %s" % x for x in self.library_lines())
        lines.append("Totals: %s completed, %s skipped, %s failed"
                     % (counts[COMPLETED], counts[SKIPPED], counts[FAILED]))
        problems = self.problem_lines()
        if problems:
            lines.append("Incomplete samples (re-run with the same output directory to retry):")
            lines.extend("  %s" % x for x in problems)
        return lines
