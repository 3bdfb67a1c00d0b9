r"""
``cli``: Command-line interface to ``lfspack``
=============================================

This module provides several functions that are the main user interface
to ``lfspack``. There is a function :func:`main` that reads ``sys.argv``
(the command-line strings of the current command). Then :func:`main`
dispatches one of several other functions, for example

    * :func:`lfspack_pack`
    * :func:`lfspack_plan`
    * :func:`lfspack_unpack`
    * :func:`lfspack_config`

These secondary commands read Python arguments and keyword arguments
rather than parsing ``sys.argv``, so they are usable to Python API
programmers as well.
"""

# Standard library
import argparse
import sys

# Local imports
from .lfspackerror import LFSPackError
from .lfspackrepo import ENV_FORCE, LFSPackRepo


# Help message
HELP_LFSPACK = r"""LFS pack (lfspack)

Bundle many small Git-LFS objects into a few large archives.

:Usage:
    .. code-block:: console

        $ lfspack CMD [OPTIONS]

:Inputs:
    * *CMD*: name of command to run

    Available commands are:

    ==================  ===========================================
    Command             Description
    ==================  ===========================================
    ``config``          View or set an lfspack config variable
    ``pack``            Pack LFS objects onto an orphan branch
    ``plan``            Show archives that ``pack`` would write
    ``unpack``          Restore LFS objects from pack archives
    ==================  ===========================================
"""

HELP_CONFIG = r"""
``lfspack-config``: View or set an lfspack config variable
===============================================================

Settings are stored in ``.lfspack/config`` at the top of the working
repo. Options in the ``core`` section are

    * ``branch``: name of pack branch (``lfs-pack``)
    * ``maxsize``: max bytes per archive (``268435456``)
    * ``remote``: remote to push pack branch to (``origin``)
    * ``push``: whether to push after packing (``true``)

:Usage:
    .. code-block:: console

        $ lfspack config get SECTION.OPT
        $ lfspack config set SECTION.OPT VAL

:Options:
    -h, --help
        Display this help message and exit
"""

HELP_PACK = r"""
``lfspack-pack``: Pack LFS objects onto an orphan branch
===============================================================

Download and prune LFS objects for the current branch, group them into
gzipped tar archives no larger than *MAXSIZE*, and commit the archives
with ``boot.sh``, ``boot.bat``, and ``lfspack.yaml`` to a new orphan
branch. Objects at least *MAXSIZE* bytes are not packed.

Refuses to run if the pack branch exists unless ``-f`` is given or the
environment variable ``$%s`` is set.

:Usage:
    .. code-block:: console

        $ lfspack pack [OPTIONS]

:Options:
    -h, --help
        Display this help message and exit

    -b, --branch BRANCH
        Name of pack branch (default from ``core.branch``)

    -m, --maxsize MAXSIZE
        Max bytes per archive, like ``256M`` (``core.maxsize``)

    -r, --remote REMOTE
        Remote to push to (default from ``core.remote``)

    -f, --force
        Replace existing pack branch

    --no-fetch
        Don't run ``git lfs pull`` first

    --no-prune
        Don't run ``git lfs prune`` first

    --push, --no-push
        Push pack branch or not (default from ``core.push``)

    -q, --quiet
        Suppress status updates
""" % ENV_FORCE

HELP_PLAN = r"""
``lfspack-plan``: Show archives that ``pack`` would write
===============================================================

:Usage:
    .. code-block:: console

        $ lfspack plan [OPTIONS]

:Options:
    -h, --help
        Display this help message and exit

    -m, --maxsize MAXSIZE
        Max bytes per archive, like ``256M`` (``core.maxsize``)
"""

HELP_UNPACK = r"""
``lfspack-unpack``: Restore LFS objects from pack archives
===============================================================

Run from the top of a clone of a pack branch. Extract each archive
listed in ``lfspack.yaml`` into ``.git/lfs/objects``, then check out the
branch that was packed and run ``git lfs checkout``. Safe to repeat.

:Usage:
    .. code-block:: console

        $ lfspack unpack [OPTIONS]

:Options:
    -h, --help
        Display this help message and exit

    -b, --branch BRANCH
        Branch to check out (default from ``lfspack.yaml``)

    --no-restore
        Only extract objects

    -q, --quiet
        Suppress status updates
"""

# Dictionary of help messages
HELP_DICT = {
    "config": HELP_CONFIG,
    "pack": HELP_PACK,
    "plan": HELP_PLAN,
    "unpack": HELP_UNPACK,
}


# Error for invalid command-line args
class LFSPackArgError(Exception):
    pass


# Customized CLI parser
class LFSPackArgParser(argparse.ArgumentParser):
    r"""Command-line parser that raises instead of exiting

    :Call:
        >>> parser = LFSPackArgParser(prog)
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    def __init__(self, prog: str):
        argparse.ArgumentParser.__init__(
            self, prog=prog, add_help=False, allow_abbrev=False)
        # Common option
        self.add_argument("-h", "--help", action="store_true")

    def error(self, message):
        raise LFSPackArgError(message)


def _genr8_pack_parser(prog: str) -> LFSPackArgParser:
    parser = LFSPackArgParser(prog)
    parser.add_argument("-b", "--branch")
    parser.add_argument("-m", "--maxsize")
    parser.add_argument("-r", "--remote")
    parser.add_argument("-f", "--force", action="store_const", const=True)
    parser.add_argument("--no-fetch", dest="fetch", action="store_false")
    parser.add_argument("--no-prune", dest="prune", action="store_false")
    parser.add_argument("--push", dest="push", action="store_const", const=True)
    parser.add_argument(
        "--no-push", dest="push", action="store_const", const=False)
    parser.add_argument("-q", "--quiet", action="store_true")
    return parser


def _genr8_plan_parser(prog: str) -> LFSPackArgParser:
    parser = LFSPackArgParser(prog)
    parser.add_argument("-m", "--maxsize")
    return parser


def _genr8_unpack_parser(prog: str) -> LFSPackArgParser:
    parser = LFSPackArgParser(prog)
    parser.add_argument("-b", "--branch")
    parser.add_argument("--no-restore", dest="restore", action="store_false")
    parser.add_argument("-q", "--quiet", action="store_true")
    return parser


def _genr8_config_parser(prog: str) -> LFSPackArgParser:
    parser = LFSPackArgParser(prog)
    parser.add_argument("args", nargs="*")
    return parser


# Return codes
IERR_OK = 0
IERR_ERROR = 1
IERR_CMD = 16
IERR_ARGS = 32


def lfspack_pack(*a, **kw):
    r"""Pack LFS objects of current branch onto an orphan branch

    :Call:
        >>> lfspack_pack(**kw)
    :Inputs:
        *branch*: {``None``} | :class:`str`
            Name of pack branch
        *maxsize*: {``None``} | :class:`int` | :class:`str`
            Max bytes per archive
        *remote*: {``None``} | :class:`str`
            Remote for push
        *force*: {``None``} | ``True`` | ``False``
            Replace existing pack branch
        *fetch*: {``True``} | ``False``
            Run ``git lfs pull`` first
        *prune*: {``True``} | ``False``
            Run ``git lfs prune`` first
        *push*: {``None``} | ``True`` | ``False``
            Push pack branch
        *quiet*: ``True`` | {``False``}
            Suppress status updates
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Check for args
    if len(a):
        print("lfspack-pack got %i arguments; expected 0" % len(a))
        return IERR_ARGS
    # Read the repo
    repo = LFSPackRepo()
    # Pack it
    repo.lfs_pack(**kw)


def lfspack_plan(*a, **kw):
    r"""Show which archives ``lfspack pack`` would create

    :Call:
        >>> lfspack_plan(maxsize=None)
    :Inputs:
        *maxsize*: {``None``} | :class:`int` | :class:`str`
            Max bytes per archive
    :STDOUT:
        One line per archive, then one per skipped object
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Check for args
    if len(a):
        print("lfspack-plan got %i arguments; expected 0" % len(a))
        return IERR_ARGS
    # Read the repo
    repo = LFSPackRepo()
    # Show plan
    repo.lfs_plan(**kw)


def lfspack_unpack(*a, **kw):
    r"""Restore LFS objects from archives in current pack branch

    :Call:
        >>> lfspack_unpack(branch=None, restore=True, quiet=False)
    :Inputs:
        *branch*: {``None``} | :class:`str`
            Branch to check out (default from ``lfspack.yaml``)
        *restore*: {``True``} | ``False``
            Check out *branch* and run ``git lfs checkout``
        *quiet*: ``True`` | {``False``}
            Suppress status updates
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Check for args
    if len(a):
        print("lfspack-unpack got %i arguments; expected 0" % len(a))
        return IERR_ARGS
    # Read the repo
    repo = LFSPackRepo()
    # Unpack
    repo.lfs_unpack(**kw)


def lfspack_config(*a, **kw):
    r"""View or set an ``lfspack`` config variable

    :Call:
        >>> lfspack_config("get", fullopt)
        >>> lfspack_config("set", fullopt, val)
    :Inputs:
        *fullopt*: :class:`str`
            Option name, like ``"core.branch"``
        *val*: :class:`str`
            New value
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Check command
    if len(a) < 1:
        print("lfspack-config got %i arguments; at least 1 required" % len(a))
        return IERR_ARGS
    # Get command name
    cmdname = a[0]
    # Get function
    func = CMD_CONFIG_DICT.get(cmdname)
    # Check it
    if func is None:
        # Unrecognized function
        print("Unexpected 'lfspack-config' command '%s'" % cmdname)
        print("Options are: " + " | ".join(list(CMD_CONFIG_DICT.keys())))
        return IERR_CMD
    # Check number of args: "get OPT" or "set OPT VAL"
    nargs = 2 if cmdname == "get" else 3
    if len(a) != nargs:
        print(
            "lfspack-config %s got %i arguments; expected %i" %
            (cmdname, len(a) - 1, nargs - 1))
        return IERR_ARGS
    # Read the repo
    repo = LFSPackRepo()
    # Run function
    func(repo, *a[1:], **kw)


# Commands for ``lfspack config``
CMD_CONFIG_DICT = {
    "get": LFSPackRepo._print_pack_config_get,
    "set": LFSPackRepo.pack_config_set,
}

# Command dictionary
CMD_DICT = {
    "config": lfspack_config,
    "pack": lfspack_pack,
    "plan": lfspack_plan,
    "unpack": lfspack_unpack,
}

# Parser for each command
PARSER_DICT = {
    "config": _genr8_config_parser,
    "pack": _genr8_pack_parser,
    "plan": _genr8_plan_parser,
    "unpack": _genr8_unpack_parser,
}


# Main function
def main(argv=None) -> int:
    r"""Main command-line interface to ``lfspack``

    The function works by reading the second word of ``sys.argv`` and
    dispatching a dedicated function for that purpose.

    :Call:
        >>> ierr = main(argv=None)
    :Inputs:
        *argv*: {``None``} | :class:`list`\ [:class:`str`]
            Command-line args, defaults to ``sys.argv``
    :Outputs:
        *ierr*: :class:`int`
            Return code
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Default args
    argv = list(sys.argv if argv is None else argv)
    # Remove program name
    args = argv[1:]
    # Check for no commands
    if len(args) == 0 or args[0] in ("-h", "--help"):
        print(HELP_LFSPACK)
        return IERR_OK
    # Get command name
    cmdname = args[0]
    # Get function
    func = CMD_DICT.get(cmdname)
    # Check it
    if func is None:
        # Unrecognized function
        print("Unexpected command '%s'" % cmdname)
        print("Options are: " + " | ".join(list(CMD_DICT.keys())))
        return IERR_CMD
    # Parse options for this command
    parser = PARSER_DICT[cmdname](f"lfspack {cmdname}")
    try:
        ns = parser.parse_args(args[1:])
    except LFSPackArgError as err:
        print(f"lfspack-{cmdname}: {err}")
        return IERR_ARGS
    # Convert to args and kwargs
    kw = vars(ns)
    a = kw.pop("args", [])
    # Check for "help" option
    if kw.pop("help", False):
        print(HELP_DICT.get(cmdname, HELP_LFSPACK))
        return IERR_OK
    # Run function
    try:
        ierr = func(*a, **kw)
    except LFSPackError as err:
        print(f"{err.__class__.__name__}:")
        print(f"  {err}")
        return IERR_ERROR
    # Convert None -> 0
    ierr = IERR_OK if ierr is None else ierr
    # Normal exit
    return ierr
