# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Scan a Taskwarrior data directory for Syncthing conflict snapshots.
"""

import re
from datetime import datetime

import attr
from eliot import (
    MessageType,
    start_action,
)
from twisted.python.filepath import FilePath

from .common import (
    CANONICAL_DB_NAME,
    ScanError,
)
from .util.eliotutil import (
    CONFLICT_TIME,
    ORIGIN_ID,
    PATH,
)
from .util.file import (
    get_pathinfo,
    local_mtime,
)

# Syncthing renames the losing side of a concurrent write to
# "<stem>.sync-conflict-<YYYYMMDD>-<HHMMSS>-<device id prefix>.<ext>"
CONFLICT_PATTERN = re.compile(
    r"^taskchampion\.sync-conflict-(\d{8}-\d{6})-([A-Z0-9]{7})\.sqlite3$"
)
CONFLICT_TIME_FORMAT = "%Y%m%d-%H%M%S"

# The canonical database was not produced by a sync fork so it has no
# device id of its own.
CANONICAL_ORIGIN_ID = u"-------"


CONFLICT_FOUND = MessageType(
    u"taskmerge:scan:conflict",
    [CONFLICT_TIME, ORIGIN_ID, PATH],
    u"A database snapshot which takes part in the merge.",
)


def _is_filepath(inst, attribute, value):
    if not isinstance(value, FilePath):
        raise TypeError(
            "'{}' must be a FilePath, not {!r}".format(attribute.name, value)
        )


@attr.s(frozen=True)
class ConflictDescriptor(object):
    """
    One database snapshot which takes part in a merge.

    :ivar datetime timestamp: the naive, local time the snapshot was written

    :ivar unicode origin_id: the (truncated) id of the device which produced
        the snapshot; bookkeeping only, it never decides a merge.

    :ivar FilePath path: where the snapshot lives
    """

    timestamp = attr.ib(validator=attr.validators.instance_of(datetime))
    origin_id = attr.ib(validator=attr.validators.instance_of(str))
    path = attr.ib(validator=_is_filepath)

    @property
    def is_canonical(self):
        return self.origin_id == CANONICAL_ORIGIN_ID

    def log(self):
        CONFLICT_FOUND(
            conflict_time=self.timestamp,
            origin_id=self.origin_id,
            path=self.path,
        ).write()


def parse_conflict_name(name):
    """
    :param unicode name: the basename of a file in the task directory

    :returns: a 2-tuple of (datetime, origin id) if ``name`` is a conflict
        snapshot name, otherwise ``None``.

    :raises ScanError: if ``name`` looks like a conflict snapshot but the
        timestamp is not a real date and time.
    """
    match = CONFLICT_PATTERN.match(name)
    if match is None:
        return None
    timestamp_str, origin_id = match.groups()
    try:
        timestamp = datetime.strptime(timestamp_str, CONFLICT_TIME_FORMAT)
    except ValueError as e:
        raise ScanError.from_exception(
            e,
            u"Conflict file '{}' has an invalid timestamp".format(name),
        )
    return timestamp, origin_id


def find_conflicts(task_dir):
    """
    Find every Syncthing conflict snapshot of the task database.

    Children are visited in name order; that order breaks ties between
    snapshots with the same timestamp.

    :param FilePath task_dir: the Taskwarrior data directory

    :returns list[ConflictDescriptor]: one entry per regular file whose name
        matches :py:`CONFLICT_PATTERN`.

    :raises ScanError: if the directory can't be listed or a conflict name
        has an impossible timestamp.
    """
    with start_action(action_type=u"taskmerge:scan", task_dir=task_dir.path) as action:
        try:
            children = sorted(task_dir.children(), key=lambda child: child.basename())
        except OSError as e:
            raise ScanError.from_exception(
                e,
                u"Unable to read task directory '{}'".format(task_dir.path),
            )

        conflicts = []
        for child in children:
            # only regular files take part; a directory or symlink is never
            # a snapshot, whatever its name
            if not get_pathinfo(child).is_file:
                continue
            parsed = parse_conflict_name(child.basename())
            if parsed is None:
                continue
            timestamp, origin_id = parsed
            conflict = ConflictDescriptor(timestamp, origin_id, child)
            conflict.log()
            conflicts.append(conflict)

        action.add_success_fields(conflicts=len(conflicts))
        return conflicts


def canonical_descriptor(task_dir):
    """
    Describe the canonical database as if it were one more conflict snapshot,
    so that its contents always take part in a merge.

    :param FilePath task_dir: the Taskwarrior data directory

    :returns ConflictDescriptor: timestamped with the database's mtime.

    :raises ScanError: if there is no canonical database.
    """
    path = task_dir.child(CANONICAL_DB_NAME)
    info = get_pathinfo(path)
    if not info.is_file:
        raise ScanError(
            u"Canonical task database '{}' is missing or not a regular file".format(
                path.path,
            )
        )
    conflict = ConflictDescriptor(local_mtime(info.state), CANONICAL_ORIGIN_ID, path)
    conflict.log()
    return conflict


def sort_conflicts(conflicts):
    """
    :returns list[ConflictDescriptor]: ``conflicts`` ordered oldest first;
        entries with equal timestamps keep their relative order.
    """
    return sorted(conflicts, key=lambda conflict: conflict.timestamp)
