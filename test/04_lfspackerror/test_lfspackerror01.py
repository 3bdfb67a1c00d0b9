
# Standard library
import shutil

# Third-party
import pytest

# Local imports
from lfspack import lfspackerror


# Test file checker
def test_isfile(sandbox):
    # Name of existing, then nonexistent files
    fname00 = "sample.rst"
    fname01 = "nope.txt"
    with open(fname00, "w") as fp:
        fp.write("A sample file\n")
    # Assert that a file does *not* exist
    try:
        lfspackerror.assert_isfile(fname01)
    except lfspackerror.LFSPackFileNotFoundError as err:
        # Check message
        assert fname01 in err.args[0]
    else:
        # Error expected
        raise ValueError("Exception expected")
    # Test file that does exist
    lfspackerror.assert_isfile(fname00)
    # Test truncation of long file name
    f1 = lfspackerror.trunc8_fname("a"*400, n=40)
    twidth = shutil.get_terminal_size().columns
    assert f1.startswith("...")
    assert len(f1) + 40 <= max(twidth, 48)
    # Short names are not changed
    assert lfspackerror.trunc8_fname("ab/cd", n=40) == "ab/cd"


# Test type checker
def test_isinstance():
    # Null check should always pass
    lfspackerror.assert_isinstance(1, None)
    # Normal valid check
    lfspackerror.assert_isinstance(1, int)
    # Failed check: single type
    with pytest.raises(lfspackerror.LFSPackTypeError) as excinfo:
        lfspackerror.assert_isinstance(1, float)
    assert "float" in excinfo.value.args[0]
    # Failed check: multiple types
    with pytest.raises(lfspackerror.LFSPackTypeError) as excinfo:
        lfspackerror.assert_isinstance(1, (str, float), "abcdef")
    assert "abcdef" in excinfo.value.args[0]


# Errors can be caught as package errors or builtins
def test_hierarchy():
    for cls in (
            lfspackerror.LFSPackArchiveError,
            lfspackerror.LFSPackBranchError,
            lfspackerror.LFSPackRepoError,
            lfspackerror.LFSPackSystemError):
        assert issubclass(cls, SystemError)
        assert issubclass(cls, lfspackerror.LFSPackError)
    assert issubclass(lfspackerror.LFSPackKeyError, KeyError)
    assert issubclass(lfspackerror.LFSPackValueError, ValueError)
    assert issubclass(lfspackerror.LFSPackFileNotFoundError, FileNotFoundError)


# Missing-key message isn't quoted like a dict key
def test_keyerror01():
    err = lfspackerror.LFSPackKeyError("No option 'nope'")
    assert str(err) == "No option 'nope'"
    with pytest.raises(KeyError):
        raise err
