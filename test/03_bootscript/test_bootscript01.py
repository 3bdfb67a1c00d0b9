
# Standard library
import os
import stat

# Third-party
import pytest

# Local imports
from lfspack.bootscript import (
    BOOT_SCRIPTS,
    render_boot_scripts,
    validate_branch_name,
    write_boot_scripts)
from lfspack.lfspackerror import LFSPackTypeError, LFSPackValueError


# Both variants get both slots
def test_render01():
    scripts = render_boot_scripts("main", 4)
    assert sorted(scripts) == ["boot.bat", "boot.sh"]
    # POSIX variant
    sh = scripts["boot.sh"]
    assert sh.startswith("#!/bin/sh\n")
    assert "Restore 4 Git LFS objects packed from branch 'main'" in sh
    assert "BRANCH='main'" in sh
    assert 'git checkout -f "$BRANCH"' in sh
    assert "git lfs checkout" in sh
    assert "tar -xzf" in sh
    # Windows variant
    bat = scripts["boot.bat"]
    assert bat.startswith("@echo off\n")
    assert 'set "BRANCH=main"' in bat
    assert 'git checkout -f "%BRANCH%"' in bat
    assert "git lfs checkout" in bat
    # No unfilled slots
    for txt in scripts.values():
        assert "{branch}" not in txt
        assert "{count}" not in txt


# Branch names with slashes and dots are fine
def test_render02():
    scripts = render_boot_scripts("feature/v1.2-rc", 0)
    assert "BRANCH='feature/v1.2-rc'" in scripts["boot.sh"]


# Writing uses proper line endings and permissions
def test_write01(sandbox):
    fnames = write_boot_scripts(sandbox, "devel", 12)
    assert [os.path.basename(f) for f in fnames] == [
        s.name for s in BOOT_SCRIPTS]
    # Read raw bytes
    with open(os.path.join(sandbox, "boot.sh"), "rb") as fp:
        sh = fp.read()
    with open(os.path.join(sandbox, "boot.bat"), "rb") as fp:
        bat = fp.read()
    assert b"\r\n" not in sh
    assert b"12 Git LFS objects" in sh
    assert bat.count(b"\r\n") == bat.count(b"\n")
    # Shell script is executable
    if os.name != "nt":
        fmode = os.stat(os.path.join(sandbox, "boot.sh")).st_mode
        assert fmode & stat.S_IXUSR


# Names that can't be quoted in both shells
def test_validate01():
    validate_branch_name("main")
    for branch in ("", "it's", 'a"b', "50%", "a&b", "a|b", "x y", "a\nb"):
        with pytest.raises(LFSPackValueError):
            validate_branch_name(branch)
    with pytest.raises(LFSPackTypeError):
        validate_branch_name(None)
    with pytest.raises(LFSPackValueError):
        render_boot_scripts("bad'name", 1)
    with pytest.raises(LFSPackTypeError):
        render_boot_scripts("main", "4")
