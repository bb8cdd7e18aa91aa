"""Find sample directories in basecalled sequencing runs.

Layouts are tried in priority order. A later layout is only used when no
earlier one matches any sample in the whole input directory.
"""
import fnmatch
import glob
import os

import toolz as tz

from nanobed.log import logger
from nanobed.pipeline import sample

class DiscoveryError(Exception):
    """No sample directories found in the input directory.
    """
    pass

class LayoutPattern(object):
    """A directory layout, one glob pattern per path component below the input directory.
    """
    def __init__(self, name, parts, exclude=None):
        self.name = name
        self.parts = list(parts)
        self.exclude = exclude

    def __repr__(self):
        return "LayoutPattern(%s: %s)" % (self.name, self.describe())

    def describe(self):
        return "/".join(self.parts) + "/"

    def candidates(self, input_dir):
        return glob.glob(os.path.join(glob.escape(input_dir), *self.parts))

    def match(self, input_dir, path):
        """Return the WorkUnit for `path` if it is a sample directory in this layout.
        """
        if not os.path.isdir(path):
            return None
        rel_path = os.path.relpath(os.path.normpath(path), input_dir)
        components = rel_path.split(os.sep)
        if len(components) != len(self.parts) or rel_path.startswith(os.pardir):
            return None
        if not all(fnmatch.fnmatchcase(c, p) for c, p in zip(components, self.parts)):
            return None
        if self.exclude and self.exclude in rel_path:
            return None
        return sample.from_path(input_dir, path)

def get_layouts(config):
    """Ordered layouts to search, configurable under `layout`.
    """
    layout = tz.get_in(["layout"], config, {})
    library = layout.get("library", "SRR*")
    pass_dir = layout.get("pass_dir", "pass")
    sample_pattern = layout.get("sample", "*_*")
    exclude = layout.get("exclude", "unclassified")
    layouts = []
    if layout.get("subpath"):
        layouts.append(LayoutPattern("run", [library, layout["subpath"], pass_dir, sample_pattern],
                                     exclude))
    layouts.append(LayoutPattern("direct pass", [library, pass_dir, sample_pattern], exclude))
    return layouts

def _scan_layout(input_dir, layout):
    units = {}
    for path in layout.candidates(input_dir):
        unit = layout.match(input_dir, path)
        if unit is not None:
            units[unit.input_dir] = unit
    return [units[k] for k in sorted(units)]

def scan_units(input_dir, config):
    """Retrieve sorted sample units from the first layout that matches anything.
    """
    layouts = get_layouts(config)
    for i, layout in enumerate(layouts):
        if i > 0:
            logger.info("  Checking alternative structure (%s folders)..." % layout.name)
        units = _scan_layout(input_dir, layout)
        if units:
            return units
    msg = ["No sample directories found matching pattern",
           "Searched in: %s" % input_dir,
           "Looking for patterns:"]
    msg += ["  %s. %s" % (i + 1, l.describe()) for i, l in enumerate(layouts)]
    msg += ["Please check:",
            "  1. Input directory is correct",
            "  2. Sample directories exist in pass/ folders",
            "  3. Sample names contain underscores for metadata separation"]
    raise DiscoveryError("\n".join(msg))
