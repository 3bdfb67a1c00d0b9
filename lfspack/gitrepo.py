# -*- coding: utf-8 -*-
r"""
:mod:`lfspack.gitrepo`: Interact with git repos using system interface
========================================================================

This module provides the :class:`GitRepo` class, which provides a
basic interface to a git repository (whether working or bare) by
calling ``git`` in a subprocess. The :mod:`lfspack` workflow needs
only a small set of git actions: branch queries, orphan checkouts,
staging, commits, and pushes.

"""

# Standard library
import functools
import os
import subprocess
from subprocess import Popen, PIPE

# Local imports
from .lfspackerror import (
    LFSPackRepoError,
    LFSPackSystemError,
    LFSPackValueError)


# Decorator for moving directories
def run_gitdir(func):
    r"""Decorator to run a function within the repo's top-level folder

    :Call:
        >>> func = run_gitdir(func)
    :Wrapper Signature:
        >>> v = repo.func(*a, **kw)
    :Inputs:
        *func*: :class:`func`
            Name of function
        *repo*: :class:`GitRepo`
            Repo instance from which to use *repo.gitdir*
        *a*: :class:`tuple`
            Positional args to :func:`repo.func`
        *kw*: :class:`dict`
            Keyword args to :func:`repo.func`
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Declare wrapper function to change directory
    @functools.wraps(func)
    def wrapper_func(self, *args, **kwargs):
        # Recall current directory
        fpwd = os.getcwd()
        # Go to specified directory
        os.chdir(self.gitdir)
        # Run the function, always returning to original folder
        try:
            return func(self, *args, **kwargs)
        finally:
            os.chdir(fpwd)
    # Apply the wrapper
    return wrapper_func


# Class to interface one repo
class GitRepo(object):
    r"""Git repository interface class

    :Call:
        >>> repo = GitRepo(where=None)
    :Inputs:
        *where*: {``None``} | :class:`str`
            Path from which to look for git repo (default is CWD)
    :Outputs:
        *repo*: :class:`GitRepo`
            Interface to git repository
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
   # --- Class attributes ---
    # Class attributes
    __slots__ = (
        "bare",
        "gitdir")

   # --- __dunder__ ---
    def __init__(self, where=None):
        # Check for a bare repo
        self.bare = is_bare(where)
        # Record root directory
        self.gitdir = get_gitdir(where, bare=self.bare)

   # --- Status Operations ---
    def assert_working(self, cmd=None):
        r"""Assert that current repo is working (non-bare)

        :Call:
            >>> repo.assert_working(cmd=None)
        :Inputs:
            *repo*: :class:`GitRepo`
                Inteface to git repository
            *cmd*: {``None``} | :class:`list`\ [:class:`str`]
                Command for error message
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Check if a bare repo
        if self.bare:
            # Form message
            msg = "Cannot run command in bare repo"
            # Check for a command
            if cmd:
                msg += "\n> %s" % " ".join(cmd)
            # Exception
            raise LFSPackRepoError(msg)

    def assert_toplevel(self, where=None):
        r"""Assert that *where* is the top-level folder of working repo

        :Call:
            >>> repo.assert_toplevel(where=None)
        :Inputs:
            *repo*: :class:`GitRepo`
                Inteface to git repository
            *where*: {``None``} | :class:`str`
                Folder to test (default is CWD)
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Only working repos have a top level
        self.assert_working()
        # Default folder
        where = os.getcwd() if where is None else where
        # Compare real paths
        if os.path.realpath(where) != os.path.realpath(self.gitdir):
            raise LFSPackRepoError(
                "Must be run from top level of repo '%s'" % self.gitdir)

    def assert_clean(self):
        r"""Assert that no tracked files have uncommitted changes

        Untracked files are allowed.

        :Call:
            >>> repo.assert_clean()
        :Inputs:
            *repo*: :class:`GitRepo`
                Inteface to git repository
        :Versions:
            * 2026-10-16 ``@lfspack``: v1.0
        """
        # Get changes to tracked files
        changes = self.get_modified()
        # Check for any
        if changes:
            raise LFSPackRepoError(
                "Commit or stash changes to %i tracked file(s) first:\n  %s"
                % (len(changes), "\n  ".join(changes)))

    def get_modified(self) -> list:
        r"""List tracked files with staged or unstaged changes

        :Call:
            >>> fnames = repo.get_modified()
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
        :Outputs:
            *fnames*: :class:`list`\ [:class:`str`]
                Names of modified files, relative to top level
        :Versions:
            * 2026-10-16 ``@lfspack``: v1.0
        """
        # Only working repos have changes
        self.assert_working()
        # Short status, ignoring untracked files
        stdout = self.check_o(
            ["git", "status", "--porcelain", "--untracked-files=no"])
        # Strip the two-letter status code
        return [line[3:] for line in stdout.splitlines() if line.strip()]

    def check_track(self, fname: str) -> bool:
        r"""Check if a file is tracked by git

        :Call:
            >>> q = repo.check_track(fname)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *fname*: :class:`str`
                Name of file
        :Outputs:
            *q*: ``True`` | ``False``
                Whether file is tracked
        :Versions:
            * 2026-10-16 ``@lfspack``: v1.0
        """
        # If tracked, it will be listed in stdout
        stdout = self.check_o(["git", "ls-files", "--", fname])
        return stdout.strip() != ""

    def check_branch(self, branch: str) -> bool:
        r"""Check if a local branch exists

        :Call:
            >>> q = repo.check_branch(branch)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *branch*: :class:`str`
                Name of branch
        :Outputs:
            *q*: ``True`` | ``False``
                Whether ``refs/heads/{branch}`` exists
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Verify ref quietly; exit code is 1 if missing
        ierr = self.call(
            ["git", "rev-parse", "--verify", "--quiet",
             f"refs/heads/{branch}"], quiet=True)
        # Exists if 0
        return ierr == 0

    def get_branch(self) -> str:
        r"""Get name of the currently checked-out branch

        :Call:
            >>> branch = repo.get_branch()
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
        :Outputs:
            *branch*: :class:`str`
                Name of current branch
        :Raises:
            :class:`LFSPackRepoError` if HEAD is detached
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Read symbolic ref; exit code 128 if detached
        stdout = self.check_o(
            ["git", "symbolic-ref", "--quiet", "--short", "HEAD"],
            codes=(0, 1, 128))
        # Check for detached HEAD
        branch = stdout.strip()
        if not branch:
            raise LFSPackRepoError("HEAD is detached; check out a branch")
        # Output
        return branch

    def get_branch_list(self) -> list:
        r"""Get list of local branches, current branch first

        :Call:
            >>> branches = repo.get_branch_list()
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
        :Outputs:
            *branches*: :class:`list`\ [:class:`str`]
                Names of local branches
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # List branches
        stdout = self.check_o(["git", "branch", "--list"])
        # Initialize
        current = []
        others = []
        # Loop through lines, like "* main" or "  devel"
        for line in stdout.splitlines():
            # Skip empty lines
            if not line.strip():
                continue
            # Check for current-branch marker
            if line.startswith("*"):
                current.append(line[1:].strip())
            else:
                others.append(line.strip())
        # Output
        return current + others

    def get_configdir(self) -> str:
        r"""Get absolute path to ``.git`` folder (or bare repo root)

        :Call:
            >>> fdir = repo.get_configdir()
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
        :Outputs:
            *fdir*: :class:`str`
                Absolute path to git-dir
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Bare repos are their own git-dir
        if self.bare:
            return self.gitdir
        # Get relative git dir
        stdout = self.check_o(
            ["git", "rev-parse", "--git-dir"], cwd=self.gitdir)
        # Absolute path
        return os.path.realpath(os.path.join(self.gitdir, stdout.strip()))

    def get_commondir(self) -> str:
        r"""Get absolute path to git-dir shared by all worktrees

        This is the same as :func:`get_configdir` except in a linked
        worktree, where the latter is ``.git/worktrees/{name}``.

        :Call:
            >>> fdir = repo.get_commondir()
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
        :Outputs:
            *fdir*: :class:`str`
                Absolute path to common git-dir
        :Versions:
            * 2026-10-16 ``@lfspack``: v1.0
        """
        # Get (possibly relative) common dir
        stdout = self.check_o(
            ["git", "rev-parse", "--git-common-dir"], cwd=self.gitdir)
        # Absolute path
        return os.path.realpath(os.path.join(self.gitdir, stdout.strip()))

   # --- Add ---
    def add(self, *fnames):
        # Only perform on working repo
        self.assert_working()
        # Perform 'git add' command
        self._add(*fnames)

    def _add(self, *fnames):
        self.check_call(["git", "add", "--", *fnames], quiet=True)

   # --- Remove ---
    def rm(self, fname: str, *fnames, r=False, f=False):
        r"""Remove files or folders and stage deletions for git

        :Call:
            >>> repo.rm(fname, *fnames, r=False, f=False)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *fname*: :class:`str`
                Name of first file/folder to remove
            *fnames*: :class:`tuple`\ [:class:`str`]
                Additional file/folder names or patterns to remove
            *r*: ``True`` | {``False``}
                Recursive option needed to delete folders
            *f*: ``True`` | {``False``}
                Force removal of modified files
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Only perform on working repo
        self.assert_working()
        # Form command
        cmd_list = ["git", "rm", "-q", "--ignore-unmatch"]
        # Options
        if r:
            cmd_list.append("-r")
        if f:
            cmd_list.append("-f")
        # Add files/folders
        cmd_list.extend(["--", fname, *fnames])
        # Attempt to remove the files and inform git
        self.check_call(cmd_list)

   # --- Commit ---
    def commit(self, m: str, a=False):
        r"""Commit currently staged changes

        :Call:
            >>> repo.commit(m, a=False)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *m*: :class:`str`
                Commit message
            *a*: ``True`` | {``False``}
                Also stage modifications of tracked files
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Only perform on working repo
        self.assert_working()
        # Form command
        cmd_list = ["git", "commit", "-q", "-m", m]
        # Check for -a
        if a:
            cmd_list.append("-a")
        # Commit
        self.check_call(cmd_list)

   # --- Branches ---
    def checkout_branch(self, branch=None, f=False):
        r"""Check out an existing branch

        :Call:
            >>> repo.checkout_branch(branch=None, f=False)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *branch*: {``None``} | :class:`str`
                Name of branch; ``None`` does nothing
            *f*: ``True`` | {``False``}
                Discard local changes
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Only perform on working repo
        self.assert_working()
        # Nothing to do for no branch
        if branch is None:
            return
        # Form command
        cmd_list = ["git", "checkout", "-q"]
        if f:
            cmd_list.append("-f")
        cmd_list.append(branch)
        # Check out
        self.check_call(cmd_list)

    def checkout_orphan(self, branch: str):
        r"""Create and check out a branch with no history

        The index and working tree are left as they were; use
        :func:`rm` to clear them.

        :Call:
            >>> repo.checkout_orphan(branch)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *branch*: :class:`str`
                Name of new branch
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Only perform on working repo
        self.assert_working()
        # Create orphan branch
        self.check_call(["git", "checkout", "-q", "--orphan", branch])

    def delete_branch(self, branch: str):
        r"""Delete a local branch, even if unmerged

        :Call:
            >>> repo.delete_branch(branch)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *branch*: :class:`str`
                Name of branch to delete
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        self.check_call(["git", "branch", "-q", "-D", branch])

    def validate_branch(self, branch=None):
        r"""Check that a branch exists, if specified

        :Call:
            >>> repo.validate_branch(branch=None)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *branch*: {``None``} | :class:`str`
                Name of branch
        :Raises:
            :class:`LFSPackValueError` if *branch* does not exist
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Nothing to check for ``None``
        if branch is None:
            return
        # Check it
        if not self.check_branch(branch):
            raise LFSPackValueError(f"No branch named '{branch}'")

   # --- Remotes ---
    def push(self, remote: str, branch: str, force=False):
        r"""Push a branch to a remote and set upstream

        :Call:
            >>> repo.push(remote, branch, force=False)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *remote*: :class:`str`
                Name of git remote
            *branch*: :class:`str`
                Name of local branch
            *force*: ``True`` | {``False``}
                Overwrite remote branch
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Form command
        cmd_list = ["git", "push", "-u"]
        if force:
            cmd_list.append("--force")
        cmd_list.extend([remote, branch])
        # Push
        self.check_call(cmd_list)

   # --- Shell utilities ---
    def check_o(self, cmd, codes=None, cwd=None):
        r"""Run a command, capturing STDOUT and checking return code

        :Call:
            >>> stdout = repo.check_o(cmd, codes=None, cwd=None)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *cmd*: :class:`list`\ [:class:`str`]
                Command to run in list form
            *codes*: {``None``} | :class:`list`\ [:class:`int`]
                Collection of allowed return codes (default only ``0``)
            *cwd*: {``None``} | :class:`str`
                Location in which to run subprocess (default *gitdir*)
        :outputs:
            *stdout*: :class:`str`
                Captured STDOUT from command, if any
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Default location
        cwd = self.gitdir if cwd is None else cwd
        # Run the command as requested, capturing STDOUT and STDERR
        stdout, stderr, ierr = call_oe(cmd, cwd=cwd)
        # Check for errors, perhaps *fname* starts with --
        if codes and ierr in codes:
            # This exit code is allowed
            return stdout
        # Check for errors, perhaps mal-formed command
        if ierr:
            raise LFSPackSystemError(
                ("Unexpected exit code %i from command\n" % ierr) +
                ("> %s\n\n" % " ".join(cmd)) +
                ("Original error message:\n%s" % stderr))
        # Output
        return stdout

    def check_call(self, cmd, codes=None, cwd=None, quiet=False):
        r"""Run a command and check return code

        :Call:
            >>> ierr = repo.check_call(cmd, codes=None, cwd=None)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *cmd*: :class:`list`\ [:class:`str`]
                Command to run in list form
            *codes*: {``None``} | :class:`list`\ [:class:`int`]
                Collection of allowed return codes (default only ``0``)
            *cwd*: {``None``} | :class:`str`
                Location in which to run subprocess (default *gitdir*)
            *quiet*: ``True`` | {``False``}
                Option to suppress STDOUT of subprocess
        :outputs:
            *ierr*: :class:`int`
                Return code from subprocess
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Run the command as requested
        ierr = self.call(cmd, cwd=cwd, quiet=quiet)
        # Check for errors, perhaps *fname* starts with --
        if codes and ierr in codes:
            # This exit code is allowed
            return ierr
        # Check for errors, perhaps mal-formed command
        if ierr:
            raise LFSPackSystemError(
                ("Unexpected exit code %i from command\n" % ierr) +
                ("> %s\n\n" % " ".join(cmd)))
        # Output
        return ierr

    def call(self, cmd, cwd=None, quiet=False) -> int:
        r"""Run a command and return its exit code without checking

        :Call:
            >>> ierr = repo.call(cmd, cwd=None, quiet=False)
        :Inputs:
            *repo*: :class:`GitRepo`
                Interface to git repository
            *cmd*: :class:`list`\ [:class:`str`]
                Command to run in list form
            *cwd*: {``None``} | :class:`str`
                Location in which to run subprocess (default *gitdir*)
            *quiet*: ``True`` | {``False``}
                Option to suppress STDOUT of subprocess
        :outputs:
            *ierr*: :class:`int`
                Return code from subprocess
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Default location
        cwd = self.gitdir if cwd is None else cwd
        # Where to send STDOUT
        stdout = subprocess.DEVNULL if quiet else None
        # Run it
        return subprocess.call(cmd, cwd=cwd, stdout=stdout)


def call_oe(cmd, cwd=None):
    r"""Run a command, capturing STDOUT and STDERR

    :Call:
        >>> stdout, stderr, ierr = call_oe(cmd, cwd=None)
    :Inputs:
        *cmd*: :class:`list`\ [:class:`str`]
            Command to run in list form
        *cwd*: {``None``} | :class:`str`
            Location in which to run subprocess
    :Outputs:
        *stdout*: :class:`str`
            Decoded STDOUT
        *stderr*: :class:`str`
            Decoded STDERR
        *ierr*: :class:`int`
            Return code
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Run command using subprocess
    try:
        proc = Popen(cmd, stdout=PIPE, stderr=PIPE, cwd=cwd)
    except FileNotFoundError as err:
        # Executable (probably ``git``) not found
        raise LFSPackSystemError(
            "Cannot run '%s': %s" % (cmd[0], err)) from err
    # Wait for command
    stdout, stderr = proc.communicate()
    # Output
    return (
        stdout.decode("utf-8", "replace"),
        stderr.decode("utf-8", "replace"),
        proc.returncode)


def get_gitdir(where=None, bare=None):
    r"""Get absolute path to git repo root, even on bare repos

    :Call:
        >>> gitdir = get_gitdir(where=None, bare=None)
    :Inputs:
        *where*: {``None``} | :class:`str`
            Working directory (default is CWD)
        *bare*: {``None``} | ``True`` | ``False``
            Whether repo is bare (can be detected automatically)
    :Outputs:
        *gitdir*: :class:`str`
            Full path to top-level of working repo or git-dir of bare
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Default location
    cwd = os.getcwd() if where is None else where
    # Check if bare if needed
    if bare is None:
        bare = is_bare(where)
    # Get the "git-dir" for bare repos and "toplevel" for working repos
    if bare:
        cmd = ["git", "rev-parse", "--git-dir"]
    else:
        cmd = ["git", "rev-parse", "--show-toplevel"]
    # Run it
    stdout, stderr, ierr = call_oe(cmd, cwd=cwd)
    # Check for errors
    if ierr:
        raise LFSPackRepoError(
            "Path is not a git repo: %s\n%s" % (cwd, stderr.strip()))
    # Absolute *gitdir* (--absolute-git-dir not avail on older git)
    return os.path.realpath(os.path.join(cwd, stdout.strip()))


def is_bare(where=None) -> bool:
    r"""Check if a location is in a bare git repo

    :Call:
        >>> q = is_bare(where=None)
    :Inputs:
        *where*: {``None``} | :class:`str`
            Location to check
    :Outputs:
        *q*: ``True`` | ``False``
            Whether or not *where* is in a bare git repo
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Default location
    cwd = os.getcwd() if where is None else where
    # Check for folder
    if not os.path.isdir(cwd):
        raise LFSPackRepoError("Path is not a git repo: %s" % cwd)
    # Check if bare
    bare, _, ierr = call_oe(
        ["git", "rev-parse", "--is-bare-repository"], cwd=cwd)
    # Check for issues
    if ierr:
        raise LFSPackRepoError("Path is not a git repo: %s" % cwd)
    # Otherwise output
    return bare.strip() == "true"
