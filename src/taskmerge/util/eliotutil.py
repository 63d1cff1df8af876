# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Eliot logging utilities.
"""

import json
import os
from datetime import datetime

import attr
from eliot import (
    Action,
    Field,
    FileDestination,
    ValidationError,
    add_destinations,
    remove_destination,
    start_task,
)
from twisted.application.service import Service
from twisted.python import usage
from twisted.python.filepath import (
    FilePath,
)


def validateInstanceOf(t):
    """
    Return an Eliot validator that requires values to be instances of ``t``.
    """
    def validator(v):
        if not isinstance(v, t):
            raise ValidationError("{} not an instance of {}".format(v, t))
    return validator


PATH = Field(
    u"path",
    lambda fp: fp.path,
    u"The absolute path of a database file or directory.",
    validateInstanceOf(FilePath),
)

CONFLICT_TIME = Field(
    u"conflict_time",
    lambda dt: dt.isoformat(),
    u"The (naive, local) time at which a database snapshot was written.",
    validateInstanceOf(datetime),
)

ORIGIN_ID = Field.for_types(
    u"origin_id",
    [str],
    u"The identifier of the device which produced a conflict snapshot.",
)


def opt_eliot_fd(self, fd):
    """
    File descriptor to send log eliot to.
    """
    try:
        fd = int(fd)
    except Exception as e:
        raise usage.UsageError(str(e))

    stdio_fds = {
        1: self.stdout,
        2: self.stderr,
    }

    def to_fd(reactor):
        f = stdio_fds.get(fd)
        if f is None:
            f = os.fdopen(fd, "w")
        return FileDestination(f)

    self.setdefault("eliot-destinations", []).append(to_fd)


def opt_eliot_task_fields(self, task_fields):
    """
    Wrap all logs in a task with given (JSON) fields. (for testing)
    """
    try:
        task_fields = json.loads(task_fields)
    except Exception as e:
        raise usage.UsageError(str(e))
    self.setdefault("eliot-task-fields", {}).update(task_fields)


def with_eliot_options(cls):
    cls.opt_eliot_fd = opt_eliot_fd
    cls.opt_eliot_task_fields = opt_eliot_task_fields
    return cls


def maybe_enable_eliot_logging(options, reactor):
    """
    Add the Eliot destinations requested on the command-line for as long as
    ``reactor`` runs.
    """
    destinations = options.get("eliot-destinations")
    task_fields = options.get("eliot-task-fields")
    if not destinations:
        return None

    destinations = [destination(reactor) for destination in destinations]
    service = _EliotLogging(destinations, task_fields)
    service.startService()
    reactor.addSystemEventTrigger("after", "shutdown", service.stopService)
    return service


@attr.s
class _EliotLogging(Service):
    """
    A service which adds Eliot destinations while it is running.

    :ivar list[eliot.IDestination] destinations: The Eliot destinations
        which are added by this service.
    """

    destinations = attr.ib(
        validator=attr.validators.deep_iterable(attr.validators.is_callable())
    )
    task_fields = attr.ib(
        default=None,
        validator=attr.validators.optional(attr.validators.instance_of(dict))
    )
    task = attr.ib(
        init=False,
        default=None,
        validator=attr.validators.optional(attr.validators.instance_of(Action)),
    )

    def startService(self):
        if self.task_fields:
            self.task = start_task(**self.task_fields)
            self.task.__enter__()
        add_destinations(*self.destinations)
        return Service.startService(self)

    def stopService(self):
        if self.task is not None:
            self.task.finish()
        for dest in self.destinations:
            remove_destination(dest)
        return Service.stopService(self)
