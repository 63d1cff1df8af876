# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Run the Taskwarrior ``task`` program against a particular data directory to
export task records from a database, or import them into a new one.
"""

import json
import os
from io import (
    BytesIO,
)
from tempfile import (
    mkdtemp,
)

import attr
from eliot import (
    Message,
    start_action,
)
from eliot.twisted import (
    inline_callbacks,
)
from twisted.internet.defer import (
    Deferred,
    fail,
    returnValue,
)
from twisted.internet.protocol import (
    ProcessProtocol,
)
from twisted.python.filepath import (
    FilePath,
)
from twisted.protocols.basic import (
    FileSender,
)
from twisted.python.procutils import (
    which,
)

from .common import (
    CANONICAL_DB_NAME,
    ExtractionError,
    ReimportError,
)
from .snapshot import (
    InvalidTaskRecord,
    TaskRecord,
)
from .util.file import (
    get_pathinfo,
)


def find_task_binary():
    """
    :returns unicode: the path of the first ``task`` executable on
        ``$PATH``, or ``None`` if there isn't one.
    """
    found = which(u"task")
    if not found:
        return None
    return found[0]


@attr.s(frozen=True)
class TaskResult(object):
    """
    The outcome of one run of ``task``.

    :ivar bool input_complete: ``False`` if the stdin pipe was lost before
        everything we had for it was flushed into the pipe.
    """

    argv = attr.ib()
    exit_code = attr.ib()
    signal = attr.ib()
    stdout = attr.ib(repr=False)
    stderr = attr.ib(repr=False)
    input_complete = attr.ib()

    @property
    def succeeded(self):
        return self.exit_code == 0 and self.signal is None

    def describe_failure(self):
        if self.signal is not None:
            return u"was killed by signal {}".format(self.signal)
        return u"exited with code {}".format(self.exit_code)


class _TaskProtocol(ProcessProtocol):
    """
    Internal helper. Streams ``document`` (if any) to the child's stdin
    while collecting its stdout and stderr, and callback's on ``done`` with
    a ``TaskResult`` once the process has ended (for any reason).

    The reactor services the stdin pipe and the output pipes together, so
    neither side can block the other when a pipe buffer fills up.
    """

    def __init__(self, argv, document=None):
        self.done = Deferred()
        self._argv = argv
        self._document = document
        self._input_complete = document is None
        self._stdout = BytesIO()
        self._stderr = BytesIO()

    def connectionMade(self):
        if self._document is None:
            self.transport.closeStdin()
            return
        # FileSender is a pull producer: it is only asked for more once the
        # stdin pipe's write buffer is empty, so its Deferred fires after the
        # last chunk has been flushed into the pipe. If the pipe is lost
        # first the Deferred fails instead.
        sender = FileSender()
        d = sender.beginFileTransfer(BytesIO(self._document), self.transport)
        d.addCallbacks(self._input_written, self._input_failed)

    def _input_written(self, ignored):
        self._input_complete = True
        self.transport.closeStdin()

    def _input_failed(self, reason):
        Message.log(
            message_type=u"taskmerge:task:stdin-failed",
            argv=self._argv,
            reason=reason.getErrorMessage(),
        )
        self.transport.closeStdin()

    def outReceived(self, data):
        self._stdout.write(data)

    def errReceived(self, data):
        self._stderr.write(data)

    def processEnded(self, reason):
        self.done.callback(
            TaskResult(
                argv=self._argv,
                exit_code=reason.value.exitCode,
                signal=reason.value.signal,
                stdout=self._stdout.getvalue(),
                stderr=self._stderr.getvalue(),
                input_complete=self._input_complete,
            )
        )


def run_task(reactor, task_bin, data_dir, args, document=None):
    """
    Run ``task`` with its database in ``data_dir``.

    The data directory is handed to the child through its own environment;
    the environment of this process is left alone.

    :param unicode task_bin: the ``task`` executable

    :param FilePath data_dir: used as ``TASKDATA`` for the child

    :param list[unicode] args: the arguments to pass to ``task``

    :param bytes document: if not ``None``, written to the child's stdin

    :returns Deferred[TaskResult]: fires when the process has ended. Fails
        if the process could not be started at all.
    """
    argv = [task_bin] + list(args)
    env = dict(os.environ)
    env[u"TASKDATA"] = data_dir.path
    protocol = _TaskProtocol(argv, document)
    try:
        reactor.spawnProcess(protocol, task_bin, argv, env=env)
    except Exception as e:
        return fail(e)
    return protocol.done


def _log_output(result, include_stdout=True):
    """
    Log whatever ``task`` printed. Output alone never means failure.
    """
    if include_stdout and result.stdout:
        Message.log(
            message_type=u"taskmerge:task:stdout",
            argv=result.argv,
            output=result.stdout.decode("utf8", "replace"),
        )
    if result.stderr:
        Message.log(
            message_type=u"taskmerge:task:stderr",
            argv=result.argv,
            output=result.stderr.decode("utf8", "replace"),
        )


def parse_export(data, source):
    """
    :param bytes data: the output of ``task export``

    :param FilePath source: the database the export came from

    :returns list[TaskRecord]: one record per exported task

    :raises ExtractionError: if ``data`` isn't a JSON array of tasks
    """
    try:
        document = json.loads(data.decode("utf8"))
    except ValueError as e:
        raise ExtractionError.from_exception(
            e,
            u"Export of '{}' is not valid JSON".format(source.path),
        )
    if not isinstance(document, list):
        raise ExtractionError(
            u"Export of '{}' is not a JSON array".format(source.path)
        )
    try:
        return [TaskRecord.from_json(task) for task in document]
    except InvalidTaskRecord as e:
        raise ExtractionError.from_exception(
            e,
            u"Export of '{}' contains an invalid task".format(source.path),
        )


@inline_callbacks
def extract_records(reactor, task_bin, path):
    """
    Read every task record out of one database snapshot.

    ``task`` is pointed at a scratch copy of ``path`` (Taskwarrior may
    write to the database it reads), so the snapshot itself is never
    modified.

    :param unicode task_bin: the ``task`` executable

    :param FilePath path: a Taskwarrior database file

    :returns Deferred[list[TaskRecord]]: the tasks in the snapshot

    :raises ExtractionError: if the snapshot can't be exported
    """
    with start_action(action_type=u"taskmerge:extract", path=path.path) as action:
        scratch = FilePath(mkdtemp(prefix=u"taskmerge-extract-"))
        try:
            try:
                path.copyTo(scratch.child(CANONICAL_DB_NAME))
            except OSError as e:
                raise ExtractionError.from_exception(
                    e,
                    u"Unable to copy '{}'".format(path.path),
                )
            try:
                result = yield run_task(reactor, task_bin, scratch, [u"export"])
            except Exception as e:
                raise ExtractionError.from_exception(
                    e,
                    u"Unable to run '{}'".format(task_bin),
                )
        finally:
            scratch.remove()

        _log_output(result, include_stdout=False)
        if not result.succeeded:
            raise ExtractionError(
                u"'task export' of '{}' {}".format(path.path, result.describe_failure())
            )
        records = parse_export(result.stdout, path)
        action.add_success_fields(records=len(records))
        returnValue(records)


@inline_callbacks
def reimport_records(reactor, task_bin, records, data_dir):
    """
    Build a new database holding exactly ``records``.

    :param unicode task_bin: the ``task`` executable

    :param list[TaskRecord] records: the tasks to import

    :param FilePath data_dir: an empty directory in which the new
        database is created; never the live task directory.

    :returns Deferred[FilePath]: the newly populated database file

    :raises ReimportError: if ``task import`` can't be run, doesn't accept
        the whole input, fails, or doesn't produce a database holding every
        one of ``records``.
    """
    with start_action(
        action_type=u"taskmerge:reimport",
        data_dir=data_dir.path,
        records=len(records),
    ):
        document = json.dumps([record.to_json() for record in records]).encode("utf8")
        try:
            result = yield run_task(reactor, task_bin, data_dir, [u"import"], document)
        except Exception as e:
            raise ReimportError.from_exception(
                e,
                u"Unable to run '{}'".format(task_bin),
            )

        _log_output(result)
        if not result.succeeded:
            raise ReimportError(
                u"'task import' {}".format(result.describe_failure())
            )
        if not result.input_complete:
            raise ReimportError(
                u"'task import' stopped reading before all {} tasks were written".format(
                    len(records),
                )
            )

        imported = data_dir.child(CANONICAL_DB_NAME)
        if not get_pathinfo(imported).is_file:
            raise ReimportError(
                u"'task import' did not create '{}'".format(imported.path)
            )

        # A child which drops its stdin unread after the document reached the
        # pipe is indistinguishable from one which read it, so read the new
        # database back. Extra tasks (e.g. new recurrence instances) are fine.
        try:
            stored = yield extract_records(reactor, task_bin, imported)
        except ExtractionError as e:
            raise ReimportError.from_exception(
                e,
                u"Unable to read back the imported database",
            )
        missing = set(record.item_id for record in records)
        missing.difference_update(record.item_id for record in stored)
        if missing:
            raise ReimportError(
                u"Imported database is missing {} of {} tasks".format(
                    len(missing),
                    len(records),
                )
            )
        returnValue(imported)
