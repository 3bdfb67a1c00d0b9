r"""
``lfsboot``: Command-line interface for ``git-lfspack-boot``
=============================================================

The boot step has a separate module (this one) in order to create a
separate entry point (:func:`main`). This is used for the command
``git-lfspack-boot``, which is a convenience executable. Users who
cloned a pack branch may use

    .. code-block:: console

        $ git lfspack-boot [-q] [--no-restore]

or

    .. code-block:: console

        $ lfspack unpack [-q] [--no-restore]

interchangeably.
"""

# Standard library
import sys

# Local imports
from .cli import (
    HELP_UNPACK,
    IERR_ARGS,
    IERR_ERROR,
    IERR_OK,
    LFSPackArgError,
    _genr8_unpack_parser)
from .lfspackerror import LFSPackError
from .lfspackrepo import LFSPackRepo


def lfspack_boot(**kw) -> int:
    r"""Extract pack archives, then check out the packed branch

    :Call:
        >>> n = lfspack_boot(branch=None, restore=True, quiet=False)
    :Inputs:
        *branch*: {``None``} | :class:`str`
            Branch to check out (default from ``lfspack.yaml``)
        *restore*: {``True``} | ``False``
            Check out *branch* and run ``git lfs checkout``
        *quiet*: ``True`` | {``False``}
            Suppress status updates
    :Outputs:
        *n*: :class:`int`
            Number of objects restored
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Instantiate
    repo = LFSPackRepo()
    # Restore objects and working tree
    return repo.lfs_unpack(**kw)


def main() -> int:
    r"""Main function for ``git-lfspack-boot``

    :Call:
        >>> ierr = main()
    :Outputs:
        *ierr*: :class:`int`
            Return code
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Parse args
    parser = _genr8_unpack_parser("git-lfspack-boot")
    try:
        ns = parser.parse_args(sys.argv[1:])
    except LFSPackArgError as err:
        print(f"git-lfspack-boot: {err}")
        return IERR_ARGS
    kw = vars(ns)
    # Check for "help" option
    if kw.pop("help", False):
        print(HELP_UNPACK)
        return IERR_OK
    # Run it
    try:
        lfspack_boot(**kw)
    except LFSPackError as err:
        print(f"{err.__class__.__name__}:")
        print(f"  {err}")
        return IERR_ERROR
    # Normal exit
    return IERR_OK
