
# Standard library
import hashlib
import os
import shutil
from subprocess import check_call

# Third-party
import pytest


# Names of executables needed by some tests
HAS_GIT = shutil.which("git") is not None


# Run each test in its own empty folder
@pytest.fixture
def sandbox(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return str(tmp_path)


# Create a working repo with one commit on "main"
@pytest.fixture
def workrepo(sandbox):
    if not HAS_GIT:
        pytest.skip("git not installed")
    fdir = os.path.join(sandbox, "repo")
    os.mkdir(fdir)
    os.chdir(fdir)
    git("init", "-q")
    git("checkout", "-q", "-b", "main")
    git("config", "user.name", "Test User")
    git("config", "user.email", "test@example.com")
    git("config", "commit.gpgsign", "false")
    with open("sample.rst", "w") as fp:
        fp.write("A sample file\n")
    git("add", "sample.rst")
    git("commit", "-q", "-m", "Initial commit")
    return fdir


def git(*a):
    check_call(["git", *a])


def write_object(objdir, data: bytes) -> str:
    # Content-addressed path like ab/cd/abcd...
    oid = hashlib.sha256(data).hexdigest()
    fdir = os.path.join(objdir, oid[:2], oid[2:4])
    os.makedirs(fdir, exist_ok=True)
    with open(os.path.join(fdir, oid), "wb") as fp:
        fp.write(data)
    return oid


def read_store(objdir) -> dict:
    # Map relative path -> contents
    store = {}
    for fdir, _, fnames in os.walk(objdir):
        for fname in fnames:
            fabs = os.path.join(fdir, fname)
            frel = os.path.relpath(fabs, objdir).replace(os.sep, "/")
            with open(fabs, "rb") as fp:
                store[frel] = fp.read()
    return store
