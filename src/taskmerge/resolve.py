# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Resolve Syncthing conflicts of a Taskwarrior database.

The order of operations is what keeps this safe to interrupt or re-run:

1. find the conflict snapshots; with none, only prune old backups
2. add the canonical database and sort everything oldest first
3. export every snapshot and fold its tasks into one ``History``
4. merge (last write wins per task)
5. import the merged tasks into a brand new database elsewhere
6. back up every participant, and only then remove them
7. move the new database into place
8. prune old backups

Any failure before step 6 leaves the task directory untouched.
"""

from datetime import (
    datetime,
    timezone,
)
from tempfile import (
    mkdtemp,
)

import attr
from eliot import (
    start_action,
)
from eliot.twisted import (
    inline_callbacks,
)
from twisted.internet.defer import (
    returnValue,
)
from twisted.python.filepath import (
    FilePath,
)

from .backup import (
    DEFAULT_KEEP,
    backup_and_remove,
    prune_backups,
)
from .common import (
    CANONICAL_DB_NAME,
    InstallError,
)
from .history import (
    History,
)
from .scanner import (
    canonical_descriptor,
    find_conflicts,
    sort_conflicts,
)
from .taskwarrior import (
    extract_records,
    reimport_records,
)


def _utcnow():
    return datetime.now(timezone.utc)


@attr.s(frozen=True)
class ResolveResult(object):
    """
    What one run did (or, for a dry-run, would do).

    :ivar list[ConflictDescriptor] conflicts: every participant in processing
        order, the canonical database included; empty if there was nothing
        to merge.

    :ivar int tasks: how many tasks the merged database holds (``None`` if
        nothing was merged)

    :ivar FilePath backup_dir: where the participants were backed up to
        (``None`` if nothing was merged)

    :ivar list[FilePath] pruned: backup directories removed
    """

    conflicts = attr.ib()
    tasks = attr.ib()
    backup_dir = attr.ib()
    pruned = attr.ib()
    dry_run = attr.ib(default=False)


@attr.s
class ConflictResolver(object):
    """
    Merge the conflict snapshots in one Taskwarrior data directory.

    :ivar unicode task_bin: the ``task`` executable

    :ivar FilePath task_dir: the Taskwarrior data directory

    :ivar FilePath state_dir: where backup directories live

    :ivar int keep: how many backup directories to retain

    :ivar bool dry_run: if set, only report what would happen

    :ivar Callable[[], datetime] now: the current UTC time
    """

    _reactor = attr.ib()
    _task_bin = attr.ib()
    _task_dir = attr.ib()
    _state_dir = attr.ib()
    _keep = attr.ib(default=DEFAULT_KEEP)
    _dry_run = attr.ib(default=False)
    _now = attr.ib(default=_utcnow)

    @inline_callbacks
    def run(self):
        """
        :returns Deferred[ResolveResult]:
        """
        with start_action(
            action_type=u"taskmerge:resolve",
            task_dir=self._task_dir.path,
            dry_run=self._dry_run,
        ):
            conflicts = find_conflicts(self._task_dir)
            tasks = backup_dir = None
            if conflicts:
                conflicts.append(canonical_descriptor(self._task_dir))
                conflicts = sort_conflicts(conflicts)
                if not self._dry_run:
                    tasks, backup_dir = yield self._merge(conflicts)

            pruned = prune_backups(self._state_dir, self._keep, self._dry_run)
            returnValue(ResolveResult(
                conflicts=conflicts,
                tasks=tasks,
                backup_dir=backup_dir,
                pruned=pruned,
                dry_run=self._dry_run,
            ))

    @inline_callbacks
    def _merge(self, conflicts):
        """
        Replace the canonical database with the merge of ``conflicts``.

        :param list[ConflictDescriptor] conflicts: every participant,
            oldest first

        :returns Deferred[tuple[int, FilePath]]: the number of merged tasks
            and the backup directory
        """
        history = History()
        for conflict in conflicts:
            records = yield extract_records(
                self._reactor,
                self._task_bin,
                conflict.path,
            )
            history.extend(records)
        merged = history.merge()

        import_dir = FilePath(mkdtemp(prefix=u"taskmerge-import-"))
        try:
            imported = yield reimport_records(
                self._reactor,
                self._task_bin,
                merged,
                import_dir,
            )
            backup_dir = backup_and_remove(
                self._state_dir,
                self._now(),
                [conflict.path for conflict in conflicts],
            )
            self._install(imported, backup_dir)
        finally:
            import_dir.remove()
        returnValue((len(merged), backup_dir))

    def _install(self, imported, backup_dir):
        """
        Put the merged database in place of the canonical one. The copy goes
        to a sibling first so the final step is a rename within the task
        directory.
        """
        canonical = self._task_dir.child(CANONICAL_DB_NAME)
        with start_action(
            action_type=u"taskmerge:install",
            source=imported.path,
            destination=canonical.path,
        ):
            staged = canonical.temporarySibling(u".tmp")
            try:
                imported.copyTo(staged)
                staged.moveTo(canonical)
            except OSError as e:
                raise InstallError.from_exception(
                    e,
                    u"Unable to install the merged database as '{}' "
                    u"(the originals are in '{}')".format(
                        canonical.path,
                        backup_dir.path,
                    ),
                )
