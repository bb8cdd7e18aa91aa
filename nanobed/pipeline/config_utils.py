"""Loads configurations from .yaml files and expands environment variables.

The system configuration holds the settings that rarely change between runs:
program locations and resources, artifact completion thresholds and the
directory layout of basecalled runs. Run specific settings come from the
command line and are resolved into an immutable `RunConfig`.
"""
import collections
import copy
import os

import toolz as tz
import yaml

DEFAULT_THREADS = 40

RunConfig = collections.namedtuple("RunConfig", ["input_dir", "output_dir", "ref_file",
                                                 "threads", "dry_run"])

DEFAULT_CONFIG = {
    "resources": {
        "default": {"cores": DEFAULT_THREADS},
        "samtools": {"cmd": "samtools"},
        "minimap2": {"cmd": "minimap2", "preset": "map-ont"},
        "modkit": {"cmd": "modkit"},
        "qualimap": {"cmd": "qualimap", "max_cores": 32, "window": 5000},
    },
    "allocation": {"env": "SLURM_CPUS_PER_TASK", "default": DEFAULT_THREADS},
    "thresholds": {
        "merged": 100000000,
        "aligned": 100000000,
        "modcall": 100000,
    },
    "layout": {
        "library": "SRR*",
        "subpath": "fastq_gpu_hac_only_5mc_mod",
        "pass_dir": "pass",
        "sample": "*_*",
        "exclude": "unclassified",
    },
}

class ConfigurationError(Exception):
    """Invalid run arguments or configuration. Nothing has been processed.
    """
    pass

# ## Retrieval functions

def load_system_config(config_file=None):
    """Load the system configuration, merged over built in defaults.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_file:
        if not os.path.exists(config_file):
            raise ConfigurationError("Could not find input system configuration file %s"
                                     % config_file)
        config = _merge_configs(config, load_config(config_file))
    config["nanobed_system"] = os.path.abspath(config_file) if config_file else None
    return config

def load_config(config_file):
    """Load YAML config file, replacing environmental variables.
    """
    with open(config_file) as in_handle:
        try:
            config = yaml.safe_load(in_handle)
        except yaml.YAMLError as e:
            raise ConfigurationError("Could not parse configuration file %s: %s"
                                     % (config_file, e))
    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigurationError("Configuration file %s needs to be a YAML dictionary"
                                 % config_file)
    config = _expand_paths(config)
    # lowercase resource names, the preferred way to specify
    if isinstance(config.get("resources"), dict):
        config["resources"] = dict((k.lower(), v) for k, v in config["resources"].items())
    return config

def _merge_configs(base, override):
    """Merge nested dictionaries, preferring values in `override`.
    """
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge_configs(out[k], v)
        else:
            out[k] = v
    return out

def _expand_paths(config):
    for field, setting in config.items():
        if isinstance(config[field], dict):
            config[field] = _expand_paths(config[field])
        else:
            config[field] = expand_path(setting)
    return config

def expand_path(path):
    """ Combines os.path.expandvars with replacing ~ with $HOME.
    """
    try:
        return os.path.expandvars(path.replace("~", "$HOME"))
    except AttributeError:
        return path

def get_resources(name, config):
    """Retrieve resources for a program, pulling from multiple config sources.
    """
    return tz.get_in(["resources", name], config,
                     tz.get_in(["resources", "default"], config, {}))

def get_program(name, config, default=None):
    """Retrieve the command line used to call a program.
    """
    pconfig = tz.get_in(["resources", name], config)
    if pconfig is None:
        return default or name
    elif isinstance(pconfig, str):
        return pconfig
    elif "cmd" in pconfig:
        return expand_path(pconfig["cmd"])
    else:
        return default or name

def get_options(name, config):
    """Additional command line options configured for a program.
    """
    options = get_resources(name, config).get("options", [])
    if isinstance(options, str):
        options = [options]
    return " ".join(str(x) for x in options)

def get_threshold(name, config):
    return int(tz.get_in(["thresholds", name], config, 0))

# ## Run configuration from arguments

def resolve_run_config(input_dir, output_dir, ref_file, threads=DEFAULT_THREADS, dry_run=False):
    """Validate run arguments, converting paths to absolute ones.
    """
    for name, val in [("input directory", input_dir), ("output directory", output_dir),
                      ("reference genome", ref_file)]:
        if not val:
            raise ConfigurationError("Missing required argument: %s" % name)
    try:
        threads = int(threads)
    except (TypeError, ValueError):
        raise ConfigurationError("Thread count must be a positive integer: %s" % threads)
    if threads < 1:
        raise ConfigurationError("Thread count must be a positive integer: %s" % threads)
    input_dir = os.path.realpath(input_dir)
    output_dir = os.path.realpath(output_dir)
    ref_file = os.path.realpath(ref_file)
    if not os.path.isdir(input_dir) or not os.access(input_dir, os.R_OK | os.X_OK):
        raise ConfigurationError("Input directory not found or not readable: %s" % input_dir)
    if not os.path.isfile(ref_file) or not os.access(ref_file, os.R_OK):
        raise ConfigurationError("Reference genome not found: %s" % ref_file)
    if os.path.exists(output_dir) and not os.path.isdir(output_dir):
        raise ConfigurationError("Output directory is not a directory: %s" % output_dir)
    return RunConfig(input_dir, output_dir, ref_file, threads, bool(dry_run))
