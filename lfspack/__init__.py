r"""
LFS pack (``lfspack``) is a Python package to move the Git-LFS objects
of a repository in bulk. It provides both an API (see
:class:`LFSPackRepo`) and a command-line interface (see
:mod:`lfspack.cli`).

The package works by grouping the objects in ``.git/lfs/objects`` into
a few gzipped tar archives, each no larger than a set size, and
committing them to an orphan branch along with scripts that restore the
objects after a clone. One large download replaces many small ones.

"""

# Local imports
from .lfspackrepo import LFSPackRepo
