# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Keep a copy of every database taking part in a merge, and bound how many of
those copies are kept around.

The state directory holds one sub-directory per merge, named by the (UTC)
time of the merge, containing the participating files under their original
names.
"""

from datetime import datetime

from eliot import (
    Message,
    start_action,
)

from .common import (
    BackupError,
    RetentionError,
    atomic_makedirs,
)

BACKUP_DIR_FORMAT = "%Y-%m-%d_%H-%M-%S"

DEFAULT_KEEP = 100


def backup_dir_name(now):
    """
    :param datetime now: the time of the merge (UTC)

    :returns unicode: the name of the backup directory for that merge
    """
    return now.strftime(BACKUP_DIR_FORMAT)


def parse_backup_dir_name(name):
    """
    :returns datetime: the time encoded in a backup directory name

    :raises RetentionError: if ``name`` isn't a backup directory name
    """
    try:
        return datetime.strptime(name, BACKUP_DIR_FORMAT)
    except ValueError as e:
        raise RetentionError.from_exception(
            e,
            u"Unexpected entry '{}' in the backup directory".format(name),
        )


def backup_and_remove(state_dir, now, paths):
    """
    Copy every one of ``paths`` into a fresh backup directory and then remove
    the originals.

    Nothing is removed unless every copy succeeded. If a copy fails the
    partial backup directory is deleted again and the originals are left
    exactly as they were.

    :param FilePath state_dir: where backup directories live

    :param datetime now: the time of the merge (UTC)

    :param list[FilePath] paths: the files to back up and remove

    :returns FilePath: the new backup directory

    :raises BackupError: if the backup directory already exists, or a file
        can't be copied or removed.
    """
    backup_dir = state_dir.child(backup_dir_name(now))
    with start_action(action_type=u"taskmerge:backup", backup_dir=backup_dir.path):
        try:
            with atomic_makedirs(backup_dir):
                for path in paths:
                    Message.log(
                        message_type=u"taskmerge:backup:copy",
                        path=path.path,
                    )
                    path.copyTo(backup_dir.child(path.basename()))
        except OSError as e:
            raise BackupError.from_exception(
                e,
                u"Unable to back up into '{}'".format(backup_dir.path),
            )

        for path in paths:
            Message.log(
                message_type=u"taskmerge:backup:remove",
                path=path.path,
            )
            try:
                path.remove()
            except OSError as e:
                raise BackupError.from_exception(
                    e,
                    u"Backed up but unable to remove '{}'".format(path.path),
                )
        return backup_dir


def prune_backups(state_dir, keep, dry_run=False):
    """
    Delete the oldest backup directories until at most ``keep`` remain.

    :param FilePath state_dir: where backup directories live; if it doesn't
        exist there is nothing to prune.

    :param int keep: how many backup directories to retain

    :param bool dry_run: if ``True``, only report what would be deleted

    :returns list[FilePath]: the backup directories deleted (or that would
        have been), oldest first.

    :raises RetentionError: if an entry of ``state_dir`` isn't named like a
        backup directory.
    """
    with start_action(
        action_type=u"taskmerge:prune",
        state_dir=state_dir.path,
        keep=keep,
        dry_run=dry_run,
    ) as action:
        if not state_dir.isdir():
            action.add_success_fields(pruned=0)
            return []

        entries = [
            (parse_backup_dir_name(child.basename()), child)
            for child in state_dir.children()
        ]
        excess = len(entries) - keep
        if excess <= 0:
            action.add_success_fields(pruned=0)
            return []

        entries.sort(key=lambda entry: entry[0])
        doomed = [path for _, path in entries[:excess]]
        for path in doomed:
            Message.log(
                message_type=u"taskmerge:prune:remove",
                path=path.path,
            )
            if not dry_run:
                path.remove()
        action.add_success_fields(pruned=len(doomed))
        return doomed
