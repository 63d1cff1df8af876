# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Task records as exported from (and imported into) a Taskwarrior database.
"""

from datetime import (
    datetime,
    timezone,
)
from uuid import (
    UUID,
)

import attr
from attr.validators import (
    instance_of,
    optional,
)

# Taskwarrior writes every date in its JSON as UTC in this compact form.
TASKWARRIOR_DATE_FORMAT = "%Y%m%dT%H%M%SZ"


class InvalidTaskRecord(ValueError):
    """
    A JSON object exported by Taskwarrior is not a usable task.
    """


def parse_task_date(value):
    """
    :param unicode value: a Taskwarrior date, e.g. ``"20240115T093000Z"``

    :returns datetime: the timezone-aware (UTC) date
    """
    if not isinstance(value, str):
        raise InvalidTaskRecord("Expected a date string, not {!r}".format(value))
    try:
        parsed = datetime.strptime(value, TASKWARRIOR_DATE_FORMAT)
    except ValueError as e:
        raise InvalidTaskRecord("Invalid date {!r}: {}".format(value, e))
    return parsed.replace(tzinfo=timezone.utc)


def format_task_date(value):
    """
    :param datetime value: a timezone-aware date

    :returns unicode: ``value`` in Taskwarrior's JSON date format
    """
    return value.astimezone(timezone.utc).strftime(TASKWARRIOR_DATE_FORMAT)


@attr.s(frozen=True)
class TaskRecord(object):
    """
    One observed version of a task.

    :ivar UUID item_id: the stable identity of the task across snapshots

    :ivar datetime entry_at: when the task was created

    :ivar datetime modified_at: when the task was last modified, or ``None``
        if it never was

    :ivar dict payload: every field of the task exactly as Taskwarrior
        exported it; this is what gets re-imported.
    """

    item_id = attr.ib(validator=instance_of(UUID))
    entry_at = attr.ib(validator=instance_of(datetime))
    modified_at = attr.ib(validator=optional(instance_of(datetime)))
    payload = attr.ib(validator=instance_of(dict), repr=False)

    @property
    def effective_time(self):
        """
        The time this version was written: the modification time, or the
        creation time for tasks which were never modified.
        """
        if self.modified_at is not None:
            return self.modified_at
        return self.entry_at

    def to_json(self):
        """
        :returns: a representation of this task suitable for JSON encoding
            (and for ``task import``).
        """
        return self.payload

    @classmethod
    def from_json(cls, task):
        """
        :param dict task: one element of the ``task export`` JSON array

        :raises InvalidTaskRecord: if ``task`` lacks a valid ``uuid`` or
            ``entry``, or has an invalid ``modified``.
        """
        if not isinstance(task, dict):
            raise InvalidTaskRecord("Expected a JSON object, not {!r}".format(task))
        try:
            item_id = UUID(task["uuid"])
        except KeyError:
            raise InvalidTaskRecord("Task has no 'uuid': {!r}".format(task))
        except (TypeError, ValueError, AttributeError):
            raise InvalidTaskRecord("Task has an invalid 'uuid': {!r}".format(task["uuid"]))
        if "entry" not in task:
            raise InvalidTaskRecord("Task {} has no 'entry'".format(item_id))
        modified = task.get("modified")
        return cls(
            item_id=item_id,
            entry_at=parse_task_date(task["entry"]),
            modified_at=None if modified is None else parse_task_date(modified),
            payload=task,
        )
