# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
The ``taskmerge`` command-line tool.
"""

import sys

from twisted.internet import defer
from twisted.internet.task import (
    react,
)
from twisted.python import usage
from twisted.python.filepath import (
    FilePath,
)

from .common import (
    ConfigurationError,
)
from .config import (
    default_config_dir,
    default_state_dir,
    load_configuration,
)
from .resolve import (
    ConflictResolver,
)
from .taskwarrior import (
    find_task_binary,
)
from .util.eliotutil import (
    maybe_enable_eliot_logging,
    with_eliot_options,
)


@with_eliot_options
class TaskMergeOptions(usage.Options):
    """
    Merge Syncthing conflict copies of a Taskwarrior database back into a
    single database.
    """

    stdout = sys.stdout
    stderr = sys.stderr

    optFlags = [
        ("dry-run", "d", "Do not actually make changes, only report what would happen."),
        ("debug", None, "Print full stack-traces."),
    ]
    optParameters = [
        ("config", "c", None,
         "The directory containing configuration (default: {}).".format(
             default_config_dir().path,
         )),
        ("task-dir", "t", None,
         "Path to the Taskwarrior data directory (default: from configuration,"
         " else $XDG_DATA_HOME/task)."),
        ("state-dir", "s", None,
         "The directory in which backups are kept (default: {}).".format(
             default_state_dir().path,
         )),
        ("task-bin", None, None,
         "The Taskwarrior executable (default: 'task' on the $PATH)."),
    ]

    config = None

    def getSynopsis(self):
        return "Usage: taskmerge [options]"

    def opt_version(self):
        """
        Display taskmerge version and exit.
        """
        from . import __version__
        print("taskmerge version {}".format(__version__), file=self.stdout)
        sys.exit(0)

    @property
    def config_path(self):
        if self["config"] is None:
            return default_config_dir()
        return FilePath(self["config"])

    @property
    def task_dir(self):
        override = None
        if self["task-dir"] is not None:
            override = FilePath(self["task-dir"])
        return self.config.resolve_task_dir(override)

    @property
    def state_dir(self):
        if self["state-dir"] is None:
            return default_state_dir()
        return FilePath(self["state-dir"])

    def postOptions(self):
        try:
            self.config = load_configuration(self.config_path)
        except (ConfigurationError, OSError) as e:
            raise usage.UsageError(
                u"Unable to load configuration: {}".format(e)
            )
        if self["task-bin"] is None:
            self["task-bin"] = find_task_binary()
            if self["task-bin"] is None:
                raise usage.UsageError(
                    "Unable to find the Taskwarrior binary ('task') on the $PATH"
                )


def report(options, result):
    """
    Describe what a run did (or would do) on ``options.stdout``.

    :param ResolveResult result: the outcome of the run
    """
    out = options.stdout
    if not result.conflicts:
        print(
            u"No conflicts found in '{}'".format(options.task_dir.path),
            file=out,
        )
    elif result.dry_run:
        print(
            u"Would merge {} databases (oldest first):".format(len(result.conflicts)),
            file=out,
        )
        for conflict in result.conflicts:
            print(
                u"  {}  {}  {}".format(
                    conflict.timestamp.isoformat(" "),
                    conflict.origin_id,
                    conflict.path.path,
                ),
                file=out,
            )
    else:
        print(
            u"Merged {} tasks from {} databases; originals backed up to '{}'".format(
                result.tasks,
                len(result.conflicts),
                result.backup_dir.path,
            ),
            file=out,
        )
    verb = u"Would remove" if result.dry_run else u"Removed"
    for path in result.pruned:
        print(u"{} old backup '{}'".format(verb, path.path), file=out)


def dispatch_taskmerge_command(reactor, args, stdout=None, stderr=None):
    """
    Run taskmerge with the given args

    :returns: a Deferred which fires when the run is over.
    """
    options = TaskMergeOptions()
    if stdout is not None:
        options.stdout = stdout
    if stderr is not None:
        options.stderr = stderr

    try:
        options.parseOptions(args)
    except usage.UsageError as e:
        print("Error: {}".format(e), file=options.stderr)
        raise SystemExit(1)

    return run_taskmerge_options(reactor, options)


@defer.inlineCallbacks
def run_taskmerge_options(reactor, options):
    """
    Runs a merge with the provided options.

    :param options: already-parsed options.

    :returns: a Deferred which fires with the ``ResolveResult``.
    """
    maybe_enable_eliot_logging(options, reactor)

    resolver = ConflictResolver(
        reactor=reactor,
        task_bin=options["task-bin"],
        task_dir=options.task_dir,
        state_dir=options.state_dir,
        keep=options.config.keep,
        dry_run=options["dry-run"],
    )

    # we want to let exceptions out to the top level if --debug is on
    # because this gives better stack-traces
    if options["debug"]:
        result = yield resolver.run()
    else:
        try:
            result = yield resolver.run()
        except Exception as e:
            print(u"Error: {}".format(e), file=options.stderr)
            raise SystemExit(1)

    report(options, result)
    return result


def _entry():
    """
    Implement the *taskmerge* console script declared in ``setup.py``.

    :return: ``None``
    """
    def main(reactor):
        return dispatch_taskmerge_command(reactor, sys.argv[1:])
    return react(main)
