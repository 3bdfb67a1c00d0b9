
# Standard library
import os

# Third-party
import pytest

# Local imports
from conftest import git
from lfspack.gitrepo import (
    GitRepo,
    get_gitdir,
    is_bare,
    run_gitdir)
from lfspack.lfspackerror import (
    LFSPackRepoError,
    LFSPackSystemError,
    LFSPackValueError)


# Subclass to test wrapper
class MyRepo(GitRepo):
    # Show the path
    @run_gitdir
    def getcwd(self):
        return os.getcwd()

    # List files or something
    @run_gitdir
    def ls(self, fdir="."):
        return os.listdir(fdir)


# Basic queries
def test_repo01(workrepo):
    # Instantiate
    repo = GitRepo()
    assert not repo.bare
    assert repo.gitdir == os.path.realpath(workrepo)
    # Config dir
    assert repo.get_configdir() == os.path.join(repo.gitdir, ".git")
    # Branches
    assert repo.get_branch() == "main"
    assert repo.check_branch("main")
    assert not repo.check_branch("devel")
    git("branch", "devel")
    assert repo.get_branch_list() == ["main", "devel"]
    # Validator
    repo.validate_branch(None)
    repo.validate_branch("devel")
    with pytest.raises(LFSPackValueError):
        repo.validate_branch("debug")
    # Delete a branch
    repo.delete_branch("devel")
    assert not repo.check_branch("devel")
    # Top-level check
    repo.assert_toplevel()
    os.mkdir("subdir")
    with pytest.raises(LFSPackRepoError):
        repo.assert_toplevel("subdir")


# Orphan branch, remove, add, commit
def test_repo02(workrepo):
    repo = GitRepo()
    # New branch with no history
    repo.checkout_orphan("empty")
    repo.rm(".", r=True, f=True)
    assert not os.path.isfile("sample.rst")
    # Add a new file
    with open("new.txt", "w") as fp:
        fp.write("new\n")
    repo.add("new.txt")
    repo.commit("Orphan commit")
    assert repo.get_branch() == "empty"
    # Only one commit in history
    stdout = repo.check_o(["git", "rev-list", "--count", "HEAD"])
    assert stdout.strip() == "1"
    # Go back
    repo.checkout_branch("main", f=True)
    assert os.path.isfile("sample.rst")
    assert not os.path.isfile("new.txt")


# Detached HEAD has no branch
def test_repo03(workrepo):
    repo = GitRepo()
    git("checkout", "-q", "--detach")
    with pytest.raises(LFSPackRepoError):
        repo.get_branch()


# Wrapper
def test_repo04(workrepo):
    repo = MyRepo()
    # Create a folder
    os.mkdir("testdir")
    os.chdir("testdir")
    cwd = os.getcwd()
    # Function runs from top level
    assert repo.getcwd() == repo.gitdir
    assert repo.getcwd() != os.getcwd()
    # Test an exception
    with pytest.raises(FileNotFoundError):
        repo.ls("not_there")
    # Make sure we're back to original location
    assert os.getcwd() == cwd


# Shell utilities
def test_shell01(workrepo):
    repo = GitRepo()
    # check_output() w/ allowed nonzero status
    repo.check_o(["git", "show", "HEAD:nothing"], codes=(0, 128))
    with pytest.raises(LFSPackSystemError):
        repo.check_o(["git", "show", "HEAD:nothing"])
    # check_call() w/ allowed nonzero status
    repo.check_call(["git", "show", "HEAD:nothing"], codes=(0, 128))
    with pytest.raises(LFSPackSystemError):
        repo.check_call(["git", "show", "HEAD:nothing"])
    # call()
    ierr = repo.call(["git", "show", "HEAD:nothing"])
    assert ierr == 128


# Not a repo at all
def test_norepo01(sandbox):
    with pytest.raises(LFSPackRepoError):
        is_bare(os.path.join(sandbox, "nope"))


# Bare repo
def test_bare01(workrepo):
    os.chdir("..")
    git("clone", "-q", "--bare", "repo", "repo.git")
    assert is_bare("repo.git")
    gitdir = get_gitdir("repo.git")
    assert gitdir == os.path.realpath("repo.git")
    repo = GitRepo("repo.git")
    assert repo.bare
    assert repo.get_configdir() == gitdir
    with pytest.raises(LFSPackRepoError):
        repo.assert_working()


# Changes to tracked files
def test_status01(workrepo):
    repo = GitRepo()
    assert repo.get_modified() == []
    repo.assert_clean()
    assert repo.check_track("sample.rst")
    # Untracked files don't count
    with open("new.txt", "w") as fp:
        fp.write("new\n")
    assert not repo.check_track("new.txt")
    repo.assert_clean()
    # Modify tracked file
    with open("sample.rst", "a") as fp:
        fp.write("more\n")
    assert repo.get_modified() == ["sample.rst"]
    with pytest.raises(LFSPackRepoError):
        repo.assert_clean()
