import os
import re

import logbook
import pytest

from nanobed import bam
from nanobed.methylation import modkit
from nanobed.ngsalign import minimap2
from nanobed.pipeline import merge, stages, summary
from nanobed.qc import qualimap


@pytest.fixture
def small_data(sample_data):
    sample_data['config']['thresholds'] = {'merged': 10, 'aligned': 10, 'modcall': 10}
    return sample_data


def _complete(data, write_file, *names):
    paths = {'merge': merge.out_file(data), 'align': minimap2.out_file(data),
             'modcall': modkit.out_file(data),
             'qc': os.path.join(qualimap.out_dir(data), qualimap.REPORT_FILE)}
    for name in names:
        write_file(paths[name], 20)


def _skips(data):
    return [skip for _, skip in stages.plan_unit(data)]


def test_stage_order():
    assert [s.name for s in stages.STAGES] == ['merge', 'align', 'modcall', 'qc']
    assert [s.index for s in stages.STAGES] == [1, 2, 3, 4]


def test_plan_runs_everything_for_new_sample(small_data):
    assert _skips(small_data) == [False, False, False, False]


def test_plan_resumes_after_completed_steps(small_data, write_file):
    _complete(small_data, write_file, 'merge', 'align')
    assert _skips(small_data) == [True, True, False, False]


def test_plan_skips_everything_when_final_step_complete(small_data, write_file):
    _complete(small_data, write_file, 'qc')
    assert _skips(small_data) == [True, True, True, True]


def test_plan_reruns_missing_inputs_for_incomplete_steps(small_data, write_file):
    _complete(small_data, write_file, 'merge', 'modcall')
    assert _skips(small_data) == [True, False, True, False]


def test_plan_skips_inputs_of_completed_steps(small_data, write_file):
    _complete(small_data, write_file, 'align')
    assert _skips(small_data) == [True, True, False, False]


def test_artifact_below_threshold_is_incomplete(sample_data, write_file):
    write_file(merge.out_file(sample_data), 1000)
    assert not stages.artifact_complete(stages.STAGES[0], sample_data)
    sample_data['config']['thresholds']['merged'] = 999
    assert stages.artifact_complete(stages.STAGES[0], sample_data)


def test_qc_complete_needs_report(sample_data, write_file):
    write_file(os.path.join(qualimap.out_dir(sample_data), 'genome_results.txt'), 100)
    assert not stages.artifact_complete(stages.STAGES[3], sample_data)


def test_run_stage_success(sample_data):
    assert stages.run_stage(stages.STAGES[2], sample_data) is None
    assert sample_data['tool'].calls[0].startswith('modkit pileup ')


def test_run_stage_tool_failure(sample_data, tool_factory):
    sample_data['tool'] = tool_factory(fail_on='minimap2')
    outcome = stages.run_stage(stages.STAGES[1], sample_data)
    assert outcome.status == summary.FAILED
    assert outcome.stage == 2
    assert 'minimap2 alignment' in outcome.reason


def test_run_stage_no_input(sample_data):
    outcome = stages.run_stage(stages.STAGES[0], sample_data)
    assert outcome == summary.skipped_no_input(
        'No BAM files found in %s' % sample_data['unit'].input_dir)


def test_run_stage_bad_first_bam(sample_data, write_file, mocker):
    first = write_file(os.path.join(sample_data['unit'].input_dir, 'a.bam'), 10)
    mocker.patch('nanobed.bam.check_header',
                 side_effect=bam.InputValidationError(first, 'invalid BAM binary header'))
    outcome = stages.run_stage(stages.STAGES[0], sample_data)
    assert outcome == summary.failed_stage(1, 'BAM header problem in %s' % first)
    assert sample_data['tool'].calls == []


def test_all_commands_use_thread_count(sample_data, write_file, valid_bams):
    write_file(os.path.join(sample_data['unit'].input_dir, 'a.bam'), 10)
    for stage in stages.STAGES:
        assert stages.run_stage(stage, sample_data) is None
    calls = sample_data['tool'].calls
    assert len(calls) == 6
    for cmd in calls:
        counts = re.findall(r'(?:-@|-t|-nt) (\d+)', cmd)
        assert counts and all(c == '8' for c in counts), cmd


def test_dry_run_reports_threads_each_program_uses(sample_data):
    sample_data['threads'] = 40
    with logbook.TestHandler() as handler:
        for stage in stages.STAGES:
            stages.log_dry_run(stage, sample_data)
    would_run = [m for m in handler.formatted_records if '[DRY RUN] Would run' in m]
    assert len(would_run) == 4
    assert 'Would run merge with 40 threads' in would_run[0]
    assert 'Would run modcall with 40 threads' in would_run[2]
    assert 'Would run qc with 32 threads' in would_run[3]
