"""Handle file based transactions allowing safe restarts at any point.

To handle interrupts, this defines output files written to temporary
locations during processing and moved to the final location when finished.
This ensures output files will be complete independent of method of
interruption.
"""
import contextlib
import os
import shutil
import tempfile

import toolz as tz

from nanobed import utils


DEFAULT_TMP = 'nanobedtx'


@contextlib.contextmanager
def tx_tmpdir(data=None, base_dir=None, remove=True):
    """Context manager to create and remove a transactional temporary directory.

    Uses a configured temporary directory, or a `nanobedtx` directory inside
    `base_dir` (the current directory if not given). Each call gets a unique
    directory to prevent collisions.
    """
    base_dir = base_dir or os.getcwd()
    tmpdir_base = utils.get_abspath(_get_base_tmpdir(data, base_dir))
    utils.safe_makedir(tmpdir_base)
    tmp_dir = tempfile.mkdtemp(dir=tmpdir_base)
    try:
        yield tmp_dir
    finally:
        if remove:
            utils.remove_safe(tmp_dir)
            # drop the base directory too once no other transaction is using it
            if not _get_configured_tmpdir(data) and os.path.isdir(tmpdir_base) \
                    and not os.listdir(tmpdir_base):
                utils.remove_safe(tmpdir_base)


def _get_configured_tmpdir(data):
    config_tmpdir = tz.get_in(("config", "resources", "tmp", "dir"), data)
    if not config_tmpdir:
        config_tmpdir = tz.get_in(("resources", "tmp", "dir"), data)
    return config_tmpdir


def _get_base_tmpdir(data, fallback_base_dir):
    return _get_configured_tmpdir(data) or os.path.join(fallback_base_dir, DEFAULT_TMP)


@contextlib.contextmanager
def file_transaction(data, *files):
    """Wrap file generation in a transaction, moving to output if finishes.

    `data` is the sample dictionary (or None); its `work_dir` is where the
    temporary directory is created unless a temporary directory is configured.
    """
    with _flatten_plus_safe(data, files) as (safe_names, orig_names):
        # remove any half-finished transactions
        for safe in safe_names:
            utils.remove_safe(safe)
        if len(safe_names) == 1:
            yield safe_names[0]
        else:
            yield tuple(safe_names)

        for safe, orig in zip(safe_names, orig_names):
            if os.path.exists(safe):
                _move_tmp_files(safe, orig)


def _move_tmp_files(safe, orig):
    exts = {".bam": ".bai"}

    utils.safe_makedir(os.path.dirname(orig))
    # If we are rolling back a directory and it already exists
    # this will avoid making a nested set of directories
    if os.path.isdir(orig) and os.path.isdir(safe):
        utils.remove_safe(orig)

    _move_file_with_sizecheck(safe, orig)
    # Move additional, associated files in the same manner
    for check_ext, check_idx in exts.items():
        if not safe.endswith(check_ext):
            continue
        safe_idx = safe + check_idx
        if os.path.exists(safe_idx):
            _move_file_with_sizecheck(safe_idx, orig + check_idx)


def _move_file_with_sizecheck(tx_file, final_file):
    """Move transaction file to final location,
       with size checks avoiding failed transfers.

       Creates an empty file with '.nanobedtmp' extension in the destination
       location, which serves as a flag. If a file like that is present,
       it means that transaction didn't finish successfully.
    """
    tmp_file = final_file + ".nanobedtmp"
    open(tmp_file, 'wb').close()

    want_size = utils.get_size(tx_file)
    shutil.move(tx_file, final_file)
    transfer_size = utils.get_size(final_file)

    if want_size != transfer_size:
        raise IOError(
            'File copy error: file or directory on temporary storage ({}) size {} bytes '
            'does not equal size after transfer to the output directory ({}) size {} '
            'bytes'.format(tx_file, want_size, final_file, transfer_size))
    utils.remove_safe(tmp_file)


@contextlib.contextmanager
def _flatten_plus_safe(data, files):
    """Flatten names of files and create temporary file names.
    """
    rollback_files = [f for f in _flatten(files) if f]
    base_dir = tz.get_in(["work_dir"], data) if data else None
    with tx_tmpdir(data, base_dir) as tmpdir:
        tx_files = [os.path.join(tmpdir, os.path.basename(f))
                    for f in rollback_files]
        yield tx_files, rollback_files


def _flatten(iterable):
    for elem in iterable:
        if isinstance(elem, (tuple, list)):
            for i in elem:
                yield i
        else:
            yield elem
