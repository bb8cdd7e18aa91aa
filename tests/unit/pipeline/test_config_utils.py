import os

import pytest

from nanobed.pipeline import config_utils


def test_load_system_config_defaults():
    config = config_utils.load_system_config()
    assert config_utils.get_program('samtools', config) == 'samtools'
    assert config_utils.get_threshold('merged', config) == 100000000
    assert config_utils.get_threshold('modcall', config) == 100000
    assert config_utils.get_resources('qualimap', config)['max_cores'] == 32
    assert config['nanobed_system'] is None


def test_load_system_config_merges_file(tmp_path, monkeypatch):
    monkeypatch.setenv('TOOLS_DIR', '/opt/tools')
    config_file = tmp_path / 'system.yaml'
    config_file.write_text(
        'resources:\n'
        '  Minimap2:\n'
        '    cmd: $TOOLS_DIR/minimap2\n'
        '    options: [-k, 17]\n'
        'thresholds:\n'
        '  merged: 5\n')
    config = config_utils.load_system_config(str(config_file))
    assert config_utils.get_program('minimap2', config) == '/opt/tools/minimap2'
    assert config_utils.get_options('minimap2', config) == '-k 17'
    assert config_utils.get_resources('minimap2', config)['preset'] == 'map-ont'
    assert config_utils.get_threshold('merged', config) == 5
    assert config_utils.get_threshold('aligned', config) == 100000000


def test_load_system_config_missing_file(tmp_path):
    with pytest.raises(config_utils.ConfigurationError):
        config_utils.load_system_config(str(tmp_path / 'missing.yaml'))


def test_load_system_config_not_a_dictionary(tmp_path):
    config_file = tmp_path / 'system.yaml'
    config_file.write_text('- a\n- b\n')
    with pytest.raises(config_utils.ConfigurationError):
        config_utils.load_system_config(str(config_file))


def test_get_resources_falls_back_to_default():
    config = config_utils.load_system_config()
    assert config_utils.get_resources('unknown', config) == {'cores': 40}


def test_resolve_run_config(input_dir, output_dir, ref_file):
    run_config = config_utils.resolve_run_config(input_dir, output_dir, ref_file, '8')
    assert run_config.threads == 8
    assert run_config.dry_run is False
    assert os.path.isabs(run_config.output_dir)
    assert not os.path.exists(run_config.output_dir)


def test_resolve_run_config_makes_paths_absolute(input_dir, ref_file, tmp_path, monkeypatch):
    monkeypatch.chdir(str(tmp_path))
    run_config = config_utils.resolve_run_config('input', 'results', ref_file, 1, True)
    assert run_config.input_dir == os.path.realpath(input_dir)
    assert run_config.output_dir == os.path.realpath(str(tmp_path / 'results'))
    assert run_config.dry_run is True


@pytest.mark.parametrize('threads', [0, -1, 'many', None])
def test_resolve_run_config_invalid_threads(input_dir, output_dir, ref_file, threads):
    with pytest.raises(config_utils.ConfigurationError):
        config_utils.resolve_run_config(input_dir, output_dir, ref_file, threads)


def test_resolve_run_config_missing_reference(input_dir, output_dir, tmp_path):
    with pytest.raises(config_utils.ConfigurationError) as excinfo:
        config_utils.resolve_run_config(input_dir, output_dir, str(tmp_path / 'none.fna'))
    assert 'Reference genome not found' in str(excinfo.value)


def test_resolve_run_config_missing_input(output_dir, ref_file, tmp_path):
    with pytest.raises(config_utils.ConfigurationError):
        config_utils.resolve_run_config(str(tmp_path / 'none'), output_dir, ref_file)


@pytest.mark.parametrize('missing', ['input_dir', 'output_dir', 'ref_file'])
def test_resolve_run_config_missing_argument(input_dir, output_dir, ref_file, missing):
    args = {'input_dir': input_dir, 'output_dir': output_dir, 'ref_file': ref_file}
    args[missing] = None
    with pytest.raises(config_utils.ConfigurationError) as excinfo:
        config_utils.resolve_run_config(**args)
    assert 'Missing required argument' in str(excinfo.value)
