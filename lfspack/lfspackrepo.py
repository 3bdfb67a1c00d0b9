r"""
``lfspackrepo``: Pack and unpack the Git-LFS objects of a repo
==================================================================

This module provides the :class:`LFSPackRepo`, which extends
:class:`lfspack.gitrepo.GitRepo` with the two halves of ``lfspack``:

    * :func:`LFSPackRepo.lfs_pack` bundles the repo's LFS objects into
      a few compressed archives and commits them, together with restore
      scripts, to an orphan branch;
    * :func:`LFSPackRepo.lfs_unpack` extracts those archives back into
      the object store and checks out the branch that was packed.

Settings are read from the optional file ``.lfspack/config`` at the top
of the working repo.
"""

# Standard library
import os
import shutil
import time
from configparser import ConfigParser

# Third-party
import yaml

# Local imports
from .archive import (
    REGEX_ARCHIVE,
    extract_archive,
    format_size,
    genr8_archive_name,
    list_archives,
    write_archives)
from .binpack import (
    MAXSIZE_DEFAULT,
    find_skipped,
    pack_objects,
    parse_size,
    scan_objects,
    validate_maxsize)
from .bootscript import (
    BOOT_SCRIPTS,
    validate_branch_name,
    write_boot_scripts)
from .gitrepo import GitRepo, run_gitdir
from .lfspackerror import (
    LFSPackArchiveError,
    LFSPackBranchError,
    LFSPackFileNotFoundError,
    LFSPackKeyError,
    LFSPackRepoError,
    LFSPackValueError,
    assert_isfile,
    assert_isinstance,
    trunc8_fname)


# Name of manifest written to packed branch
MANIFEST_FILE = "lfspack.yaml"

# Location of settings relative to top of working repo
CONFIG_DIR = ".lfspack"
CONFIG_FILE = "config"

# Staging folder relative to git-dir
STAGE_DIR = "lfspack"

# Environment variable to allow replacing an existing pack branch
ENV_FORCE = "LFSPACK_FORCE"

# Values of environment variables interpreted as ``True``
TRUE_STRINGS = ("1", "true", "yes", "on")

# Default settings
DEFAULT_CONFIG = {
    "core": {
        "branch": "lfs-pack",
        "maxsize": str(MAXSIZE_DEFAULT),
        "remote": "origin",
        "push": "true",
    },
}


# Create new class
class LFSPackRepo(GitRepo):
    r"""Interface to pack and unpack LFS objects of one repository

    :Call:
        >>> repo = LFSPackRepo(where=None)
    :Inputs:
        *where*: {``None``} | :class:`str`
            Location of repo (``None`` -> ``os.getcwd()``)
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
   # --- Class attributes ---
    # Class attributes
    __slots__ = (
        "pack_config",
        "_t_pack_config")

   # --- __dunder__ ---
    def __init__(self, where=None):
        # Parent initializtion
        GitRepo.__init__(self, where)
        # Initialize other slots
        self.pack_config = None
        self._t_pack_config = None

   # --- Pack ---
    def lfs_pack(
            self, branch=None, maxsize=None, remote=None, force=None,
            fetch=True, prune=True, push=None, quiet=False) -> int:
        r"""Pack all LFS objects into archives on an orphan branch

        :Call:
            >>> count = repo.lfs_pack(**kw)
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
            *branch*: {``None``} | :class:`str`
                Name of pack branch (default from ``core.branch``)
            *maxsize*: {``None``} | :class:`int` | :class:`str`
                Max bytes per archive (default from ``core.maxsize``)
            *remote*: {``None``} | :class:`str`
                Remote for push (default from ``core.remote``)
            *force*: {``None``} | ``True`` | ``False``
                Replace existing pack branch (default ``$LFSPACK_FORCE``)
            *fetch*: {``True``} | ``False``
                Run ``git lfs pull`` first
            *prune*: {``True``} | ``False``
                Run ``git lfs prune`` first
            *push*: {``None``} | ``True`` | ``False``
                Push pack branch (default from ``core.push``)
            *quiet*: ``True`` | {``False``}
                Option to suppress status updates
        :Outputs:
            *count*: :class:`int`
                Number of objects packed
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
            * 2026-10-16 ``@lfspack``: v1.1; check for uncommitted work
        """
        # Must start from the top of a working repo
        self.assert_toplevel()
        # Branch to pack
        orig = self.get_branch()
        validate_branch_name(orig)
        # Resolve options
        packbranch = self.get_pack_branch(branch)
        maxsize = self.get_pack_maxsize(maxsize)
        remote = self.get_pack_remote(remote)
        force = self.get_pack_force(force)
        push = self.get_pack_push(push)
        # Check pack branch
        if packbranch == orig:
            raise LFSPackBranchError(
                f"Cannot pack branch '{orig}' into itself")
        # Check for existing pack branch
        qbranch = self.check_branch(packbranch)
        if qbranch and not force:
            raise LFSPackBranchError(
                f"Pack branch '{packbranch}' already exists; " +
                f"delete it or set {ENV_FORCE}=1")
        # Switching branches must not lose any work
        self.assert_clean()
        self.assert_no_artifacts()
        # Get the objects
        if fetch:
            self.lfs_pull(quiet=quiet)
        if prune:
            self.lfs_prune(quiet=quiet)
        # Find objects
        objects = scan_objects(self.get_objdir())
        # Put them in bins
        bins, count = pack_objects(objects, maxsize)
        skipped = find_skipped(objects, maxsize)
        # Status update
        if not quiet:
            print(
                f"Packing {count} LFS objects from '{orig}' "
                f"into {len(bins)} archive(s)")
            for obj in skipped:
                f1 = trunc8_fname(obj.oid, 40)
                print(f"  Skipping {f1} ({format_size(obj.size)})")
        # Clear any leftovers from a failed run
        stagedir = self.get_stagedir()
        if os.path.isdir(stagedir):
            shutil.rmtree(stagedir)
        # Write archives outside the working tree
        farchives = write_archives(bins, stagedir, quiet=quiet)
        # Replace the existing pack branch
        if qbranch:
            self.delete_branch(packbranch)
        # Create empty branch
        self.checkout_orphan(packbranch)
        self.rm(".", r=True, f=True)
        # Move archives into working tree
        fnames = []
        for farchive in farchives:
            fname = os.path.basename(farchive)
            os.replace(farchive, os.path.join(self.gitdir, fname))
            fnames.append(fname)
        # Write restore scripts and manifest
        write_boot_scripts(self.gitdir, orig, count)
        self.write_manifest(orig, count, maxsize, bins)
        # Stage and commit
        fnames.extend(script.name for script in BOOT_SCRIPTS)
        fnames.append(MANIFEST_FILE)
        self.add(*fnames)
        self.commit(f"Pack {count} LFS objects from '{orig}'")
        # Publish
        if push:
            self.push(remote, packbranch, force=force)
        # Go back to original branch
        self.checkout_branch(orig, f=True)
        # Clean up
        if os.path.isdir(stagedir):
            shutil.rmtree(stagedir)
        # Status update
        if not quiet:
            print(f"Committed {len(farchives)} archive(s) to '{packbranch}'")
        # Output
        return count

    def lfs_plan(self, maxsize=None, quiet=False):
        r"""Show how the current objects would be packed

        Nothing is written.

        :Call:
            >>> bins, count = repo.lfs_plan(maxsize=None)
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
            *maxsize*: {``None``} | :class:`int` | :class:`str`
                Max bytes per archive (default from ``core.maxsize``)
            *quiet*: ``True`` | {``False``}
                Option to suppress printing the plan
        :Outputs:
            *bins*: :class:`list`\ [:class:`lfspack.binpack.LFSBin`]
                Bins that would be written
            *count*: :class:`int`
                Number of objects that would be packed
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Resolve option
        maxsize = self.get_pack_maxsize(maxsize)
        # Find objects and put them in bins
        objects = scan_objects(self.get_objdir())
        bins, count = pack_objects(objects, maxsize)
        # Print the plan
        if not quiet:
            for j, lfsbin in enumerate(bins):
                print(
                    "%-16s %6i objects  %12s" %
                    (genr8_archive_name(j + 1), len(lfsbin),
                     format_size(lfsbin.size)))
            for obj in find_skipped(objects, maxsize):
                print(
                    "%-16s %6s          %12s  %s" %
                    ("(skipped)", "", format_size(obj.size), obj.oid))
            print(
                f"{count} of {len(objects)} objects in {len(bins)} archive(s)")
        # Output
        return bins, count

   # --- Unpack ---
    def lfs_unpack(self, branch=None, restore=True, quiet=False) -> int:
        r"""Extract pack archives and check out the packed branch

        Every archive is attempted even if an earlier one fails, so that
        as many objects as possible are restored. If any archive fails,
        an exception is raised before checking out *branch*.

        :Call:
            >>> n = repo.lfs_unpack(branch=None, restore=True)
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
            *branch*: {``None``} | :class:`str`
                Branch to check out (default from manifest)
            *restore*: {``True``} | ``False``
                Check out *branch* and run ``git lfs checkout``
            *quiet*: ``True`` | {``False``}
                Option to suppress status updates
        :Outputs:
            *n*: :class:`int`
                Number of objects restored or already present
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Must start from the top of a working repo
        self.assert_toplevel()
        # Find archives
        if os.path.isfile(os.path.join(self.gitdir, MANIFEST_FILE)):
            # Use manifest
            manifest = self.read_manifest()
            archives = [info["name"] for info in manifest["archives"]]
            # Use branch from manifest
            if branch is None:
                branch = manifest["branch"]
        else:
            # Look for files
            archives = list_archives(self.gitdir)
        # Object store
        objdir = self.get_objdir()
        os.makedirs(objdir, exist_ok=True)
        # Extract each archive
        n = 0
        errors = []
        for fname in archives:
            farchive = os.path.join(self.gitdir, fname)
            try:
                n += extract_archive(farchive, objdir, quiet=quiet)
            except LFSPackArchiveError as err:
                errors.append(str(err))
        # Check for failures
        if errors:
            raise LFSPackArchiveError(
                f"Failed to extract {len(errors)} of {len(archives)} "
                "archive(s):\n  " + "\n  ".join(errors))
        # Status update
        if not quiet:
            print(f"Restored {n} LFS objects from {len(archives)} archive(s)")
        # Check out working tree
        if restore:
            # Need a branch
            if branch is None:
                raise LFSPackFileNotFoundError(
                    f"No '{MANIFEST_FILE}' found; specify branch to restore")
            self.checkout_branch(branch, f=True)
            self.lfs_checkout(quiet=quiet)
        # Output
        return n

    def assert_no_artifacts(self):
        r"""Assert that no untracked file would be replaced by packing

        Archives, restore scripts, and manifest are written to the top
        level of the pack branch, so untracked files with those names
        would be overwritten.

        :Call:
            >>> repo.assert_no_artifacts()
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
        :Versions:
            * 2026-10-16 ``@lfspack``: v1.0
        """
        # Names written to top level
        fnames = [script.name for script in BOOT_SCRIPTS]
        fnames.append(MANIFEST_FILE)
        fnames.extend(
            fname for fname in os.listdir(self.gitdir)
            if REGEX_ARCHIVE.match(fname))
        # Find existing ones not tracked by git
        conflicts = [
            fname for fname in fnames
            if os.path.exists(os.path.join(self.gitdir, fname))
            and not self.check_track(fname)
        ]
        # Check for any
        if conflicts:
            raise LFSPackRepoError(
                "Untracked file(s) would be overwritten by pack:\n  " +
                "\n  ".join(conflicts))

   # --- Manifest ---
    def write_manifest(self, branch: str, count: int, maxsize: int, bins):
        r"""Write ``lfspack.yaml`` describing archives to top of repo

        :Call:
            >>> repo.write_manifest(branch, count, maxsize, bins)
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
            *branch*: :class:`str`
                Name of branch that was packed
            *count*: :class:`int`
                Number of packed objects
            *maxsize*: :class:`int`
                Max bytes per archive
            *bins*: :class:`list`\ [:class:`lfspack.binpack.LFSBin`]
                Bins in archive order
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Only working repos
        self.assert_working()
        # Create contents
        manifest = {
            "branch": branch,
            "count": count,
            "maxsize": maxsize,
            "archives": [
                {
                    "name": genr8_archive_name(j + 1),
                    "objects": len(lfsbin),
                    "size": lfsbin.size,
                }
                for j, lfsbin in enumerate(bins)
            ],
        }
        # Write it
        fname = os.path.join(self.gitdir, MANIFEST_FILE)
        with open(fname, "w") as fp:
            yaml.safe_dump(manifest, fp, sort_keys=False)

    @run_gitdir
    def read_manifest(self) -> dict:
        r"""Read ``lfspack.yaml`` from top of working repo

        :Call:
            >>> manifest = repo.read_manifest()
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
        :Outputs:
            *manifest*: :class:`dict`
                Contents, with keys *branch*, *count*, *maxsize*, and
                *archives*
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Check for file
        assert_isfile(MANIFEST_FILE)
        # Read it
        with open(MANIFEST_FILE, "r") as fp:
            manifest = yaml.safe_load(fp)
        # Check contents
        if not isinstance(manifest, dict):
            raise LFSPackValueError(f"Invalid '{MANIFEST_FILE}'")
        for key in ("branch", "count", "archives"):
            if key not in manifest:
                raise LFSPackValueError(
                    f"Missing '{key}' in '{MANIFEST_FILE}'")
        # Check archives
        assert_isinstance(manifest["archives"], list, "manifest archives")
        for info in manifest["archives"]:
            if not isinstance(info, dict) or "name" not in info:
                raise LFSPackValueError(
                    f"Invalid archive entry in '{MANIFEST_FILE}'")
            if os.path.basename(info["name"]) != info["name"]:
                raise LFSPackValueError(
                    f"Archive '{info['name']}' must be in top-level folder")
        # Output
        return manifest

   # --- git-lfs ---
    def lfs_pull(self, quiet=False):
        r"""Download LFS objects for current branch (``git lfs pull``)
        """
        self.check_call(["git", "lfs", "pull"], quiet=quiet)

    def lfs_prune(self, quiet=False):
        r"""Delete old, unreferenced LFS objects (``git lfs prune``)
        """
        self.check_call(["git", "lfs", "prune"], quiet=quiet)

    def lfs_checkout(self, quiet=False):
        r"""Replace LFS pointer files with content (``git lfs checkout``)
        """
        self.check_call(["git", "lfs", "checkout"], quiet=quiet)

   # --- Folders ---
    def get_objdir(self) -> str:
        r"""Get absolute path to the LFS object store

        :Call:
            >>> fdir = repo.get_objdir()
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
        :Outputs:
            *fdir*: :class:`str`
                Usually ``{gitdir}/.git/lfs/objects``, shared by worktrees
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
            * 2026-10-16 ``@lfspack``: v1.1; shared by linked worktrees
        """
        return os.path.join(self.get_commondir(), "lfs", "objects")

    def get_stagedir(self) -> str:
        # Archives are written here before the orphan checkout
        return os.path.join(self.get_configdir(), STAGE_DIR)

   # --- Options ---
    def get_pack_branch(self, branch=None) -> str:
        r"""Get name of pack branch

        :Call:
            >>> branch = repo.get_pack_branch(branch=None)
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
            *branch*: {``None``} | :class:`str`
                Explicit name, else ``core.branch``
        :Outputs:
            *branch*: :class:`str`
                Name of pack branch
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Default
        if branch is None:
            branch = str(self.pack_config_get("core.branch"))
        # Check it
        validate_branch_name(branch)
        # Output
        return branch

    def get_pack_maxsize(self, maxsize=None) -> int:
        r"""Get maximum number of bytes per archive

        :Call:
            >>> maxsize = repo.get_pack_maxsize(maxsize=None)
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
            *maxsize*: {``None``} | :class:`int` | :class:`str`
                Explicit size like ``1048576`` or ``"1M"``, else
                ``core.maxsize``
        :Outputs:
            *maxsize*: :class:`int`
                Size in bytes
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Default
        if maxsize is None:
            maxsize = self.pack_config_get("core.maxsize")
        # Convert "256M" -> bytes
        maxsize = parse_size(maxsize)
        validate_maxsize(maxsize)
        # Output
        return maxsize

    def get_pack_remote(self, remote=None) -> str:
        # Explicit remote or ``core.remote``
        if remote is None:
            remote = str(self.pack_config_get("core.remote"))
        return remote

    def get_pack_push(self, push=None) -> bool:
        # Explicit option or ``core.push``
        if push is None:
            push = self.pack_config_get("core.push")
        return push is True or str(push).lower() in TRUE_STRINGS

    def get_pack_force(self, force=None) -> bool:
        r"""Check whether an existing pack branch may be replaced

        :Call:
            >>> force = repo.get_pack_force(force=None)
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
            *force*: {``None``} | ``True`` | ``False``
                Explicit option; if ``None`` use ``$LFSPACK_FORCE``
        :Outputs:
            *force*: ``True`` | ``False``
                Whether to replace pack branch
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Explicit option
        if force is not None:
            return bool(force)
        # Environment override
        val = os.environ.get(ENV_FORCE, "")
        return val.strip().lower() in TRUE_STRINGS

   # --- Config ---
    def pack_config_get(self, fullopt: str, vdef=None):
        r"""Get an option from the ``lfspack`` configuration

        :Call:
            >>> val = repo.pack_config_get(fullopt, vdef=None)
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
            *fullopt*: :class:`str`
                Option name, like ``"core.branch"``
            *vdef*: {``None``} | :class:`object`
                Value to return if option is missing
        :Outputs:
            *val*: :class:`str` | :class:`int` | :class:`bool`
                Value of option, converted from INI text
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Split option name
        sec, opt = self._split_fullopt(fullopt)
        # Read settings
        config = self.make_pack_config()
        # Check for section
        if not config.has_section(sec):
            if vdef is not None:
                return vdef
            raise LFSPackKeyError(f"No lfspack config section '{sec}'")
        # Check for option
        if not config.has_option(sec, opt):
            if vdef is not None:
                return vdef
            raise LFSPackKeyError(
                f"No option '{opt}' in lfspack config section '{sec}'")
        # Output
        return self._from_ini(config.get(sec, opt))

    def pack_config_set(self, fullopt: str, val):
        r"""Set an option in ``.lfspack/config``

        :Call:
            >>> repo.pack_config_set(fullopt, val)
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
            *fullopt*: :class:`str`
                Option name, like ``"core.maxsize"``
            *val*: :class:`object`
                Value to set
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Split option name
        sec, opt = self._split_fullopt(fullopt)
        # Read settings
        config = self.make_pack_config()
        # Only known sections
        if not config.has_section(sec):
            raise LFSPackKeyError(f"No lfspack config section '{sec}'")
        # Set value
        config.set(sec, opt, self._to_ini(val))
        # Write it
        self.write_pack_config(config)

    def _print_pack_config_get(self, fullopt: str):
        # Get value
        val = self.pack_config_get(fullopt)
        # Show it
        print(self._to_ini(val))

    def make_pack_config(self) -> ConfigParser:
        r"""Read ``lfspack`` config file, or access current

        :Call:
            >>> config = repo.make_pack_config()
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
        :Outputs:
            *config*: :class:`configparser.ConfigParser`
                Python interface to ``lfspack`` configuration
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Get config
        config = self.pack_config
        # Check if already read
        if isinstance(config, ConfigParser):
            # Path to config file
            fcfg = self.get_pack_configfile()
            # Check time stamp
            if (
                    not os.path.isfile(fcfg) or
                    self._t_pack_config >= os.path.getmtime(fcfg)):
                # Config is up-to-date (or better)
                return config
        # Config is either empty or older than the config file
        config = self.read_pack_config()
        # Save it
        self._t_pack_config = time.time()
        self.pack_config = config
        # Output
        return config

    def read_pack_config(self) -> ConfigParser:
        r"""Read ``lfspack`` config file on top of defaults

        :Call:
            >>> config = repo.read_pack_config()
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
        :Outputs:
            *config*: :class:`configparser.ConfigParser`
                Python interface to ``lfspack`` configuration
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Initialize config interface with defaults
        config = ConfigParser()
        config.read_dict(DEFAULT_CONFIG)
        # Path to config file
        fcfg = self.get_pack_configfile()
        # Read file if present
        if os.path.isfile(fcfg):
            config.read(fcfg)
        # Output
        return config

    def write_pack_config(self, config: ConfigParser):
        r"""Write current ``lfspack`` configuration to file

        :Call:
            >>> repo.write_pack_config(config)
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
            *config*: :class:`configparser.ConfigParser`
                Python interface to ``lfspack`` configuration
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Do nothing on bare repo
        self.assert_working()
        # Get path to config file
        fcfg = self.get_pack_configfile()
        # Create folder
        fdir = os.path.dirname(fcfg)
        if not os.path.isdir(fdir):
            os.mkdir(fdir)
        # Write
        with open(fcfg, "w") as fp:
            config.write(fp)
        # Save it
        self.pack_config = config
        self._t_pack_config = time.time()

    def get_pack_configfile(self) -> str:
        r"""Get absolute path to ``.lfspack/config``

        :Call:
            >>> fcfg = repo.get_pack_configfile()
        :Inputs:
            *repo*: :class:`LFSPackRepo`
                Interface to git repository
        :Outputs:
            *fcfg*: :class:`str`
                Name of ``lfspack`` configuration file
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        return os.path.join(self.gitdir, CONFIG_DIR, CONFIG_FILE)

    def _split_fullopt(self, fullopt: str):
        # Check type
        assert_isinstance(fullopt, str, "config option name")
        # Need exactly "section.option"
        parts = fullopt.split(".")
        if len(parts) != 2 or not all(parts):
            raise LFSPackValueError(
                f"Config option '{fullopt}' must be 'section.option'")
        # Output
        return parts[0], parts[1]

    def _from_ini(self, txt: str):
        # Check for special cases
        if txt.lower() == "true":
            return True
        elif txt.lower() == "false":
            return False
        elif txt.isdigit():
            return int(txt)
        else:
            return txt

    def _to_ini(self, val) -> str:
        # Check for special cases
        if val is True:
            return "true"
        elif val is False:
            return "false"
        else:
            return str(val)
