r"""
``lfspackerror``: Errors for :mod:`lfspack` modules
===========================================================

This module provides a collection of error types relevant to the
:mod:`lfspack` package. They are essentially the same as standard error
types such as :class:`KeyError`, :class:`TypeError`, etc. but with an
extra parent of :class:`LFSPackError` to enable catching all errors
specifically raised by this package

"""

# Standard library
import os
import shutil


# Basic error family
class LFSPackError(Exception):
    r"""Parent error class for :mod:`lfspack` errors

    Inherits from :class:`Exception`
    """
    pass


class LFSPackArchiveError(SystemError, LFSPackError):
    r"""Error for corrupt, truncated, or unsafe pack archives

    Raised while extracting objects; objects already restored from
    other archives are left in place
    """
    pass


class LFSPackBranchError(SystemError, LFSPackError):
    r"""Error class for an existing pack branch

    Usually raised if ``lfspack pack`` would overwrite a pack branch
    and neither *force* nor ``$LFSPACK_FORCE`` is set"""
    pass


class LFSPackFileNotFoundError(FileNotFoundError, LFSPackError):
    r"""Exception for missing files in :mod:`lfspack`
    """
    pass


class LFSPackKeyError(KeyError, LFSPackError):
    r"""Exception for missing key in :mod:`lfspack`

    Inherits from :class:`KeyError` and :class:`LFSPackError`
    """
    # Show message as-is rather than quoted like a dict key
    __str__ = Exception.__str__


class LFSPackRepoError(SystemError, LFSPackError):
    r"""Error for commands run from the wrong place

    Raised if not in a working repo, not at the top level, or HEAD is
    detached
    """
    pass


class LFSPackSystemError(SystemError, LFSPackError):
    r"""Exception for failed ``git`` or ``git lfs`` commands
    """
    pass


class LFSPackTypeError(TypeError, LFSPackError):
    r"""Exception for unexpected type of parameter in :mod:`lfspack`
    """
    pass


class LFSPackValueError(ValueError, LFSPackError):
    r"""Exception for unexpected value of parameter in :mod:`lfspack`
    """
    pass


# Assert type of a variable
def assert_isinstance(obj, cls_or_tuple, desc=None):
    r"""Conveniently check types

    Applies ``isinstance(obj, cls_or_tuple)`` but also constructs
    a :class:`TypeError` and appropriate message if test fails

    :Call:
        >>> assert_isinstance(obj, cls, desc=None)
        >>> assert_isinstance(obj, cls_tuple, desc=None)
    :Inputs:
        *obj*: :class:`object`
            Object whose type is checked
        *cls*: :class:`type`
            Single permitted class
        *cls_tuple*: :class:`tuple`\ [:class:`type`]
            Tuple of allowed classes
        *desc*: {``None``} | :class:`str`
            Description of *obj* for error message
    :Raises:
        :class:`LFSPackTypeError`
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Special case for ``None``
    if cls_or_tuple is None:
        return
    # Check for passed test
    if isinstance(obj, cls_or_tuple):
        return
    # Generate type error message
    msg = _genr8_type_error(obj, cls_or_tuple, desc)
    # Raise
    raise LFSPackTypeError(msg)


# Assert that file exists
def assert_isfile(fname: str):
    r"""Raise an exception unless *fname* is an existing file

    :Call:
        >>> assert_isfile(fname)
    :Inputs:
        *fname*: :class:`str`
            Name of file, absolute or relative to CWD
    :Raises:
        :class:`LFSPackFileNotFoundError`
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Check for file
    if not os.path.isfile(fname):
        # Start message
        msg = "File '%s' does not exist" % fname
        # Check for absolute path
        if not os.path.isabs(fname):
            # Show working directory
            msg += "\n  relative to '%s'" % os.getcwd()
        raise LFSPackFileNotFoundError(msg)


# Shorten a file name for status lines
def trunc8_fname(fname: str, n: int) -> str:
    r"""Truncate a file name to fit in terminal with *n* chars to spare

    :Call:
        >>> f1 = trunc8_fname(fname, n)
    :Inputs:
        *fname*: :class:`str`
            Original file name
        *n*: :class:`int`
            Number of columns reserved for other text
    :Outputs:
        *f1*: :class:`str`
            *fname*, with leading characters replaced by ``...`` if
            needed
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Available width
    twidth = shutil.get_terminal_size().columns
    maxlen = max(8, twidth - n)
    # Check if already short enough
    if len(fname) <= maxlen:
        return fname
    # Keep the tail, which has the informative part of an OID path
    return "..." + fname[-(maxlen - 3):]


# Create error message for type errors
def _genr8_type_error(obj, cls_or_tuple, desc=None):
    # Check for single type
    if isinstance(cls_or_tuple, tuple):
        # Multiple types
        names = [cls.__name__ for cls in cls_or_tuple]
    else:
        # Single type
        names = [cls_or_tuple.__name__]
    # Create error message
    if desc is None:
        # No description; msg2 is "Got type"
        msg1 = "G"
    else:
        # Add description; msg is "got type"
        msg1 = "For %s: g" % desc
    msg2 = "ot type '%s'; " % type(obj).__name__
    msg3 = "expected '%s'" % ("' | '".join(names))
    # Output
    return msg1 + msg2 + msg3
