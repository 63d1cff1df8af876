# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Common fixtures to let the test suite focus on application logic.

Real Taskwarrior databases are SQLite files only ``task`` understands. The
fake ``task`` used here stores a database as the JSON array ``task export``
would print, which is all the merge logic ever sees.
"""

import json
import os
import sys
from datetime import (
    datetime,
)

import attr
from fixtures import (
    Fixture,
)

from ..common import (
    CANONICAL_DB_NAME,
)
from ..snapshot import (
    format_task_date,
)

_FAKE_TASK_BODY = u'''
import json
import os
import sys
import time

data_dir = os.environ["TASKDATA"]
database = os.path.join(data_dir, "taskchampion.sqlite3")
command = sys.argv[1:]
with open(CALLS, "a") as f:
    f.write(json.dumps({"argv": command, "taskdata": data_dir}) + "\\n")

if command == ["export"]:
    if EXPORT_OUTPUT is not None:
        sys.stdout.write(EXPORT_OUTPUT)
    else:
        with open(database) as f:
            sys.stdout.write(f.read())
    sys.exit(EXPORT_EXIT_CODE)

if command == ["import"]:
    if not IMPORT_READS_INPUT:
        # drop stdin unread, then "succeed" with an empty database
        os.close(0)
        time.sleep(0.5)
        if IMPORT_CREATES_DATABASE:
            with open(database, "w") as f:
                f.write("[]")
        sys.exit(0)
    tasks = json.load(sys.stdin)
    if IMPORT_CREATES_DATABASE:
        with open(database, "w") as f:
            json.dump(tasks, f)
    sys.stdout.write("Importing 'stdin'\\n")
    sys.stderr.write("Imported {} tasks.\\n".format(len(tasks)))
    sys.exit(IMPORT_EXIT_CODE)

sys.stderr.write("Unknown command {!r}\\n".format(command))
sys.exit(2)
'''


def task_json(uuid, description, entry, modified=None, **extra):
    """
    Build a task as ``task export`` would print it.

    :param UUID uuid: the task's identity

    :param datetime entry: creation time (timezone-aware)

    :param datetime modified: modification time (timezone-aware), if any
    """
    task = {
        u"uuid": str(uuid),
        u"description": description,
        u"status": u"pending",
        u"entry": format_task_date(entry),
    }
    if modified is not None:
        task[u"modified"] = format_task_date(modified)
    task.update(extra)
    return task


@attr.s
class FakeTaskwarrior(Fixture):
    """
    Provide a ``task`` executable that implements ``export`` and ``import``
    against JSON "databases", and records how it was called.

    :ivar FilePath path: a non-existent directory to put the executable in
    """
    path = attr.ib()
    export_exit_code = attr.ib(default=0)
    export_output = attr.ib(default=None)
    import_exit_code = attr.ib(default=0)
    import_reads_input = attr.ib(default=True)
    import_creates_database = attr.ib(default=True)

    @property
    def executable(self):
        return self.path.child(u"task")

    @property
    def calls_log(self):
        return self.path.child(u"calls.jsonl")

    @property
    def calls(self):
        """
        :returns list[dict]: ``argv`` and ``taskdata`` of every invocation
        """
        if not self.calls_log.exists():
            return []
        return [
            json.loads(line)
            for line in self.calls_log.getContent().decode("utf8").splitlines()
        ]

    def _setUp(self):
        self.path.makedirs()
        header = u"#!{}\n".format(sys.executable)
        constants = u"".join(
            u"{} = {!r}\n".format(name, value)
            for name, value in [
                (u"CALLS", self.calls_log.path),
                (u"EXPORT_EXIT_CODE", self.export_exit_code),
                (u"EXPORT_OUTPUT", self.export_output),
                (u"IMPORT_EXIT_CODE", self.import_exit_code),
                (u"IMPORT_READS_INPUT", self.import_reads_input),
                (u"IMPORT_CREATES_DATABASE", self.import_creates_database),
            ]
        )
        self.executable.setContent(
            (header + constants + _FAKE_TASK_BODY).encode("utf8")
        )
        self.executable.chmod(0o755)


@attr.s
class TaskDirectory(Fixture):
    """
    A Taskwarrior data directory holding fake databases.

    :ivar FilePath path: a non-existent directory to use
    """
    path = attr.ib()

    @property
    def canonical(self):
        return self.path.child(CANONICAL_DB_NAME)

    def conflict(self, timestamp, origin_id):
        """
        :param datetime timestamp: the (naive) time in the conflict name

        :returns FilePath: where Syncthing would put that conflict copy
        """
        return self.path.child(
            u"taskchampion.sync-conflict-{}-{}.sqlite3".format(
                timestamp.strftime("%Y%m%d-%H%M%S"),
                origin_id,
            )
        )

    def write_database(self, path, tasks, mtime=None):
        """
        :param list[dict] tasks: the tasks the database holds

        :param datetime mtime: the (naive, local) modification time to give
            the file
        """
        path.setContent(json.dumps(tasks).encode("utf8"))
        if mtime is not None:
            stamp = mtime.timestamp()
            os.utime(path.path, (stamp, stamp))
        return path

    def read_database(self, path):
        return json.loads(path.getContent().decode("utf8"))

    def _setUp(self):
        self.path.makedirs()


def fixed_now(when=None):
    """
    :returns: a replacement for the resolver's clock, always returning
        ``when`` (a UTC datetime)
    """
    if when is None:
        when = datetime(2024, 5, 1, 8, 30, 0)
    return lambda: when


def make_backup_dirs(state_dir, timestamps):
    """
    Create one (non-empty) backup directory per timestamp.

    :returns list[FilePath]: the directories, in the order given
    """
    dirs = []
    for when in timestamps:
        backup = state_dir.child(when.strftime("%Y-%m-%d_%H-%M-%S"))
        backup.makedirs()
        backup.child(CANONICAL_DB_NAME).setContent(b"[]")
        dirs.append(backup)
    return dirs
