r"""
``bootscript``: Generated restore scripts for packed branches
==================================================================

A packed branch carries two small scripts, ``boot.sh`` for POSIX shells
and ``boot.bat`` for the Windows command interpreter. Run from the top
of a fresh clone of the packed branch, either one

    * extracts every ``pack-*.tar.gz`` into ``.git/lfs/objects``,
    * checks out the branch that was packed, and
    * runs ``git lfs checkout`` to replace pointer files with content.

If ``lfspack`` itself is installed, the scripts defer to
``lfspack unpack``, which does the same with atomic per-object writes.

The scripts are rendered from the templates below, which have exactly
two slots: *branch* and *count*.
"""

# Standard library
import os
import re

# Local imports
from .lfspackerror import LFSPackValueError, assert_isinstance


# Template for POSIX shells
TEMPLATE_SH = r"""#!/bin/sh
# Restore {count} Git LFS objects packed from branch '{branch}'
#
# Generated by lfspack. Run from the top level of a clone of this branch.
set -e

BRANCH='{branch}'

if command -v lfspack >/dev/null 2>&1; then
    exec lfspack unpack
fi

OBJDIR="$(git rev-parse --git-dir)/lfs/objects"
mkdir -p "$OBJDIR"
for f in pack-*.tar.gz; do
    [ -f "$f" ] || continue
    echo "Extracting $f"
    tar -xzf "$f" -C "$OBJDIR"
done
git checkout -f "$BRANCH"
git lfs checkout
echo "Restored {count} LFS objects; now on branch $BRANCH"
"""

# Template for Windows cmd.exe
TEMPLATE_BAT = r"""@echo off
rem Restore {count} Git LFS objects packed from branch '{branch}'
rem
rem Generated by lfspack. Run from the top level of a clone of this branch.
setlocal
set "BRANCH={branch}"

where lfspack >nul 2>nul
if errorlevel 1 goto :untar
lfspack unpack
exit /b %ERRORLEVEL%

:untar
for /f "delims=" %%d in ('git rev-parse --git-dir') do set "GITDIR=%%d"
set "OBJDIR=%GITDIR%\lfs\objects"
if not exist "%OBJDIR%" mkdir "%OBJDIR%"
for %%f in (pack-*.tar.gz) do (
    echo Extracting %%f
    tar -xzf "%%f" -C "%OBJDIR%" || exit /b 1
)
git checkout -f "%BRANCH%" || exit /b 1
git lfs checkout || exit /b 1
echo Restored {count} LFS objects; now on branch %BRANCH%
"""

# Characters that can't be quoted safely in both sh and cmd
REGEX_UNSAFE_BRANCH = re.compile(r"""['"%&|<>^!\s\x00-\x1f\x7f]""")


# Single script
class BootScript(object):
    r"""Template for one generated restore script

    :Call:
        >>> script = BootScript(name, template, newline="\n", mode=0o755)
    :Inputs:
        *name*: :class:`str`
            File name of script
        *template*: :class:`str`
            Text with ``{branch}`` and ``{count}`` slots
        *newline*: {``"\n"``} | ``"\r\n"``
            Line ending to write
        *mode*: {``0o755``} | :class:`int`
            File permissions
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
   # --- Class attributes ---
    __slots__ = (
        "mode",
        "name",
        "newline",
        "template",
    )

   # --- __dunder__ ---
    def __init__(self, name: str, template: str, newline="\n", mode=0o755):
        self.name = name
        self.template = template
        self.newline = newline
        self.mode = mode

   # --- Operations ---
    def render(self, branch: str, count: int) -> str:
        r"""Fill in the template

        :Call:
            >>> txt = script.render(branch, count)
        :Inputs:
            *script*: :class:`BootScript`
                Restore script template
            *branch*: :class:`str`
                Name of branch that was packed
            *count*: :class:`int`
                Number of packed objects
        :Outputs:
            *txt*: :class:`str`
                Script contents with ``\n`` line endings
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        validate_branch_name(branch)
        assert_isinstance(count, int, "object count")
        return self.template.format(branch=branch, count=count)

    def write(self, outdir: str, branch: str, count: int) -> str:
        r"""Render the template and write it to *outdir*

        :Call:
            >>> fname = script.write(outdir, branch, count)
        :Inputs:
            *script*: :class:`BootScript`
                Restore script template
            *outdir*: :class:`str`
                Folder in which to write script
            *branch*: :class:`str`
                Name of branch that was packed
            *count*: :class:`int`
                Number of packed objects
        :Outputs:
            *fname*: :class:`str`
                Absolute path to script written
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        # Contents
        txt = self.render(branch, count)
        # File name
        fname = os.path.join(outdir, self.name)
        # Write with platform-specific line endings
        with open(fname, "w", newline=self.newline) as fp:
            fp.write(txt)
        # Set permissions
        os.chmod(fname, self.mode)
        # Output
        return fname


# Both variants
BOOT_SCRIPTS = (
    BootScript("boot.sh", TEMPLATE_SH, "\n", 0o755),
    BootScript("boot.bat", TEMPLATE_BAT, "\r\n", 0o644),
)


def render_boot_scripts(branch: str, count: int) -> dict:
    r"""Render every restore script

    :Call:
        >>> scripts = render_boot_scripts(branch, count)
    :Inputs:
        *branch*: :class:`str`
            Name of branch that was packed
        *count*: :class:`int`
            Number of packed objects
    :Outputs:
        *scripts*: :class:`dict`\ [:class:`str`]
            Contents of each script by file name
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    return {
        script.name: script.render(branch, count)
        for script in BOOT_SCRIPTS
    }


def write_boot_scripts(outdir: str, branch: str, count: int) -> list:
    r"""Write every restore script to *outdir*

    :Call:
        >>> fnames = write_boot_scripts(outdir, branch, count)
    :Outputs:
        *fnames*: :class:`list`\ [:class:`str`]
            Absolute paths of scripts written
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    return [script.write(outdir, branch, count) for script in BOOT_SCRIPTS]


def validate_branch_name(branch: str):
    r"""Check that a branch name can be quoted in ``sh`` and ``cmd``

    :Call:
        >>> validate_branch_name(branch)
    :Inputs:
        *branch*: :class:`str`
            Name of a git branch
    :Raises:
        * :class:`LFSPackTypeError` if *branch* is not a string
        * :class:`LFSPackValueError` if *branch* is empty or contains
          characters special to either shell
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Check type
    assert_isinstance(branch, str, "branch name")
    # Check value
    if branch == "" or REGEX_UNSAFE_BRANCH.search(branch):
        raise LFSPackValueError(
            f"Branch name '{branch}' cannot be used in restore scripts")
