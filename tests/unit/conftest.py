import os

import pytest

from nanobed.pipeline import config_utils
from nanobed.provenance.do import ToolResult

RUN_SUBPATH = "fastq_gpu_hac_only_5mc_mod"


class FakeTool(object):
    """Stand in for ExternalTool, recording commands instead of running them.

    fail_on: substring of a command line that should exit with status 1.
    """
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.calls = []

    def invoke(self, cmd, work_dir=None):
        self.calls.append(cmd)
        if self.fail_on and self.fail_on in cmd:
            return ToolResult(1, "", "[E::fake] failed on %s\n" % self.fail_on, 0.0)
        return ToolResult(0, "", "", 0.0)


def make_sample(input_dir, library, sample, bams=0, subpath=RUN_SUBPATH):
    parts = [input_dir, library] + ([subpath] if subpath else []) + ["pass", sample]
    sample_dir = os.path.join(*parts)
    os.makedirs(sample_dir)
    for i in range(bams):
        with open(os.path.join(sample_dir, "reads_%s.bam" % i), "w") as out_handle:
            out_handle.write("BAM\1")
    return sample_dir


def write_file(fname, size):
    os.makedirs(os.path.dirname(fname), exist_ok=True)
    with open(fname, "wb") as out_handle:
        out_handle.write(b"x" * size)
    return fname


@pytest.fixture
def fake_tool():
    return FakeTool()


@pytest.fixture
def tool_factory():
    return FakeTool


@pytest.fixture(name="make_sample")
def make_sample_fixture():
    return make_sample


@pytest.fixture(name="write_file")
def write_file_fixture():
    return write_file


@pytest.fixture
def ref_file(tmp_path):
    return write_file(str(tmp_path / "ref" / "genome.fna"), 100)


@pytest.fixture
def input_dir(tmp_path):
    d = tmp_path / "input"
    d.mkdir()
    return str(d)


@pytest.fixture
def output_dir(tmp_path):
    return str(tmp_path / "results")


@pytest.fixture
def small_thresholds(tmp_path):
    """System configuration with small artifact size thresholds."""
    config_file = tmp_path / "nanobed_system.yaml"
    config_file.write_text("thresholds:\n  merged: 10\n  aligned: 10\n  modcall: 10\n")
    return str(config_file)


@pytest.fixture
def valid_bams(mocker):
    """Treat every raw BAM file as readable."""
    mocker.patch("nanobed.bam.check_header", return_value={})
    mocker.patch("nanobed.bam.check_records", return_value=10)
    yield


@pytest.fixture
def sample_data(tmp_path, ref_file, fake_tool):
    """Data dictionary for a single sample, as prepared by the pipeline driver."""
    from nanobed.pipeline import sample
    input_dir = str(tmp_path / "input")
    sample_dir = make_sample(input_dir, "SRR1", "20240101_A_meta", bams=0)
    unit = sample.from_path(input_dir, sample_dir)
    output_dir = str(tmp_path / "results")
    run_config = config_utils.RunConfig(input_dir, output_dir, ref_file, 8, False)
    work_dir = sample.out_dir(unit, output_dir)
    os.makedirs(work_dir)
    return {"unit": unit, "run": run_config, "config": config_utils.load_system_config(),
            "threads": 8, "tool": fake_tool, "work_dir": work_dir,
            "log_file": sample.log_file(unit, output_dir)}
