# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Fold the task records of many database snapshots into one history per task
and pick a winning version of each task.
"""

import attr


@attr.s
class History(object):
    """
    Every version of every task seen so far, keyed by task UUID.

    Versions are kept in the order they were inserted, which is the order the
    snapshots were processed in (oldest snapshot first). That order only
    matters for breaking ties.
    """

    _tasks = attr.ib(init=False, factory=dict)

    def insert(self, record):
        """
        Append one version of a task to its history.

        :param TaskRecord record: the version to add
        """
        self._tasks.setdefault(record.item_id, []).append(record)

    def extend(self, records):
        for record in records:
            self.insert(record)

    def __len__(self):
        return len(self._tasks)

    def merge(self):
        """
        Resolve each task to a single version: last write wins.

        The version with the latest effective time is chosen. On a tie the
        version seen first is kept, so the result only depends on insertion
        order. Whole records win; fields are never combined across versions.

        :returns list[TaskRecord]: one record per task, in the order the
            tasks were first seen.
        """
        merged = []
        for versions in self._tasks.values():
            chosen = versions[0]
            for candidate in versions[1:]:
                if candidate.effective_time > chosen.effective_time:
                    chosen = candidate
            merged.append(chosen)
        return merged
