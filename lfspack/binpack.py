r"""
``binpack``: Group LFS objects into size-bounded bins
==========================================================

This module provides the greedy packing used by ``lfspack pack``. The
objects of a Git-LFS object store are streamed, in a fixed order, into
bins whose total size never exceeds a threshold. Each bin later becomes
one tar archive.

The policy is first-fit-by-accumulation: an object goes into the open
bin unless it would overflow it, in which case the bin is closed and a
new one opened. There is no backtracking, so the result is predictable
from the input order alone. Objects at least as large as the threshold
are skipped; they stay in the store and are fetched individually by
``git lfs`` later.
"""

# Standard library
import os
import re
from collections import namedtuple

# Local imports
from .lfspackerror import (
    LFSPackValueError,
    assert_isinstance)


# Default maximum bin size, 256 MiB
MAXSIZE_DEFAULT = 256 * 1024 * 1024

# Binary multipliers for sizes like "256M"
SIZE_SUFFIXES = {
    "": 1,
    "k": 1024,
    "m": 1024 ** 2,
    "g": 1024 ** 3,
}

# Regular expression for sizes like "256M", "64 KiB", "1000"
REGEX_SIZE = re.compile(r"^\s*(\d+)\s*([kmg]?)(?:i?b)?\s*$", re.IGNORECASE)


# One file of the object store
LFSObject = namedtuple("LFSObject", ("path", "size", "oid"))


# Working group of objects
class LFSBin(object):
    r"""Ordered collection of objects destined for one archive

    :Call:
        >>> lfsbin = LFSBin()
    :Attributes:
        *objects*: :class:`list`\ [:class:`LFSObject`]
            Objects in encounter order
        *size*: :class:`int`
            Total size of *objects* in bytes
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
   # --- Class attributes ---
    __slots__ = (
        "objects",
        "size",
    )

   # --- __dunder__ ---
    def __init__(self):
        self.objects = []
        self.size = 0

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self):
        return iter(self.objects)

    def __repr__(self) -> str:
        return "<LFSBin objects=%i size=%i>" % (len(self.objects), self.size)

   # --- Operations ---
    def append(self, obj: LFSObject):
        r"""Add an object to the bin

        :Call:
            >>> lfsbin.append(obj)
        :Inputs:
            *lfsbin*: :class:`LFSBin`
                Bin of LFS objects
            *obj*: :class:`LFSObject`
                Object to add
        :Versions:
            * 2026-09-21 ``@lfspack``: v1.0
        """
        self.objects.append(obj)
        self.size += obj.size

    def fits(self, obj: LFSObject, maxsize: int) -> bool:
        # Check if *obj* can join without exceeding *maxsize*
        return self.size + obj.size <= maxsize


def pack_objects(objects, maxsize=MAXSIZE_DEFAULT):
    r"""Pack objects into bins no larger than *maxsize*

    :Call:
        >>> bins, count = pack_objects(objects, maxsize=MAXSIZE_DEFAULT)
    :Inputs:
        *objects*: :class:`list`\ [:class:`LFSObject`]
            Objects in the order they should be packed
        *maxsize*: {``268435456``} | :class:`int`
            Maximum total size of one bin, in bytes
    :Outputs:
        *bins*: :class:`list`\ [:class:`LFSBin`]
            Closed bins, in the order they were closed
        *count*: :class:`int`
            Number of objects placed in *bins*
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Check threshold
    validate_maxsize(maxsize)
    # Initialize
    bins = []
    lfsbin = None
    count = 0
    # Loop through objects in order
    for obj in objects:
        # Objects this big never go in any bin
        if obj.size >= maxsize:
            continue
        # Start a new bin if needed
        if lfsbin is None or not lfsbin.fits(obj, maxsize):
            # Close current bin
            if lfsbin is not None:
                bins.append(lfsbin)
            # Open a new one
            lfsbin = LFSBin()
        # Add the object
        lfsbin.append(obj)
        count += 1
    # Close last bin
    if lfsbin is not None:
        bins.append(lfsbin)
    # Output
    return bins, count


def find_skipped(objects, maxsize=MAXSIZE_DEFAULT) -> list:
    r"""List objects too large to be packed

    :Call:
        >>> skipped = find_skipped(objects, maxsize=MAXSIZE_DEFAULT)
    :Inputs:
        *objects*: :class:`list`\ [:class:`LFSObject`]
            Objects of the store
        *maxsize*: {``268435456``} | :class:`int`
            Maximum total size of one bin, in bytes
    :Outputs:
        *skipped*: :class:`list`\ [:class:`LFSObject`]
            Objects whose size is at least *maxsize*
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    validate_maxsize(maxsize)
    return [obj for obj in objects if obj.size >= maxsize]


def scan_objects(objdir: str) -> list:
    r"""Find all files in an object store

    Folders and files are visited in sorted order so that repeated
    scans of the same store give the same list.

    :Call:
        >>> objects = scan_objects(objdir)
    :Inputs:
        *objdir*: :class:`str`
            Absolute path to store, usually ``.git/lfs/objects``
    :Outputs:
        *objects*: :class:`list`\ [:class:`LFSObject`]
            One entry per regular file; empty if *objdir* is missing
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Initialize
    objects = []
    # Missing store is just empty
    if not os.path.isdir(objdir):
        return objects
    # Walk the store
    for fdir, dirnames, fnames in os.walk(objdir):
        # Visit subfolders in stable order
        dirnames.sort()
        # Loop through files
        for fname in sorted(fnames):
            # Absolute path
            fabs = os.path.join(fdir, fname)
            # Skip links and other oddities
            if os.path.islink(fabs) or not os.path.isfile(fabs):
                continue
            # Path relative to store, "/" on every platform
            oid = os.path.relpath(fabs, objdir).replace(os.sep, "/")
            # Save it
            objects.append(LFSObject(fabs, os.path.getsize(fabs), oid))
    # Output
    return objects


def parse_size(val) -> int:
    r"""Convert a size like ``"256M"`` to a number of bytes

    :Call:
        >>> nbytes = parse_size(val)
    :Inputs:
        *val*: :class:`int` | :class:`str`
            Size in bytes, optionally with ``k``, ``M``, or ``G``
            binary suffix
    :Outputs:
        *nbytes*: :class:`int`
            Size in bytes
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Pass through integers
    if isinstance(val, int) and not isinstance(val, bool):
        return val
    # Otherwise must be a string
    assert_isinstance(val, str, "size")
    # Parse it
    match = REGEX_SIZE.match(val)
    if match is None:
        raise LFSPackValueError(f"Could not interpret size '{val}'")
    # Scale
    return int(match.group(1)) * SIZE_SUFFIXES[match.group(2).lower()]


def validate_maxsize(maxsize):
    # Check type (bool is an int, but not a size)
    assert_isinstance(maxsize, int, "maximum bin size")
    if isinstance(maxsize, bool) or maxsize <= 0:
        raise LFSPackValueError(
            f"Maximum bin size must be a positive integer; got {maxsize}")
