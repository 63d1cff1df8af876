# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Common functions and types used by other modules.
"""

from contextlib import contextmanager

import attr


# The basename Taskwarrior 3 uses for its database inside TASKDATA.
CANONICAL_DB_NAME = u"taskchampion.sqlite3"


@attr.s(auto_exc=True)
class TaskMergeError(Exception):
    """
    Base class of every fatal error this package raises.

    :ivar unicode reason: A human-readable description of the problem.
    """

    reason = attr.ib(validator=attr.validators.instance_of(str))

    @classmethod
    def from_exception(cls, exception, prefix=None):
        """
        Return an error whose reason is taken from another exception.

        :param Exception exception: The exception to get the message from.
        :param unicode prefix: A prefix to add to the message.

        :returns TaskMergeError: An error with a message that is
            ``"{prefix}: {exception message}"``.
        """
        if prefix is not None:
            reason = u"{}: {}".format(prefix, exception)
        else:
            reason = u"{}".format(exception)
        return cls(reason)

    def __str__(self):
        return self.reason


class ScanError(TaskMergeError):
    """
    The task directory could not be read, or a conflict filename carries a
    timestamp that is not a real date.
    """


class ExtractionError(TaskMergeError):
    """
    A database snapshot could not be exported as a set of task records.
    """


class ReimportError(TaskMergeError):
    """
    The merged task records could not be imported into a fresh database.
    """


class BackupError(TaskMergeError):
    """
    A conflict participant could not be backed up (or, once backed up,
    removed).
    """


class InstallError(TaskMergeError):
    """
    The merged database could not be moved into place. Every participant
    is still in the backup directory.
    """


class RetentionError(TaskMergeError):
    """
    The backup state directory contains an entry whose name is not a backup
    timestamp.
    """


class ConfigurationError(TaskMergeError):
    """
    The configuration file is not valid.
    """


@contextmanager
def atomic_makedirs(path):
    """
    Call `path.makedirs()` but if an error occurs before this
    context-manager exits we will delete the directory.

    :param FilePath path: the directory/ies to create
    """
    path.makedirs()
    try:
        yield path
    except Exception:
        # on error, clean up our directory
        path.remove()
        # ...and pass on the error
        raise
