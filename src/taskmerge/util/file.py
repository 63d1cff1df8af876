# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Utilties for dealing with on disk files.
"""

import os
import stat
from datetime import datetime
from errno import ENOENT

import attr
from twisted.python.filepath import FilePath


@attr.s(frozen=True, order=False)
class PathState(object):
    """
    The filesystem information we record about a regular file.
    """

    mtime_ns = attr.ib(validator=attr.validators.instance_of(int))


@attr.s(frozen=True, order=False)
class PathInfo(object):
    """
    Whether a path is a regular file (symlinks are not followed) and, if it
    is, its state.
    """

    is_file = attr.ib(validator=attr.validators.instance_of(bool))
    state = attr.ib(
        validator=attr.validators.optional(attr.validators.instance_of(PathState))
    )


def ns_to_seconds_float(t):
    """
    :param int t: nanoseconds
    :returns float: the seconds representation of 't'
    """
    if t is None:
        return None
    return float(t) / 1000000000.0


def get_pathinfo(path):
    # type: (FilePath) -> PathInfo
    try:
        statinfo = os.lstat(path.path)
    except OSError as e:
        if e.errno == ENOENT:
            return PathInfo(is_file=False, state=None)
        raise
    if not stat.S_ISREG(statinfo.st_mode):
        return PathInfo(is_file=False, state=None)
    return PathInfo(
        is_file=True,
        state=PathState(mtime_ns=statinfo.st_mtime_ns),
    )


def local_mtime(path_state):
    """
    :param PathState path_state: the state of a regular file

    :returns datetime: the modification time of the file as a naive
        datetime in the local timezone (the same civil time Syncthing
        writes into conflict filenames).
    """
    return datetime.fromtimestamp(ns_to_seconds_float(path_state.mtime_ns))
