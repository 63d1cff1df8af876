# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
Configuration file handling and default locations.

The configuration lives in ``config.yaml`` inside the configuration
directory and recognizes two keys:

``keep``
    How many backup directories to retain (default 100).

``task_dir``
    The Taskwarrior data directory. If omitted, Taskwarrior's default
    (``$XDG_DATA_HOME/task``) is used.
"""

__all__ = [
    "Config",
    "default_config_dir",
    "default_state_dir",
    "default_task_dir",
    "load_configuration",
]

import os

import attr
from appdirs import (
    user_config_dir,
    user_state_dir,
)
from eliot import (
    Message,
)
from twisted.python.filepath import (
    FilePath,
)
from yaml import (
    YAMLError,
)

from .backup import (
    DEFAULT_KEEP,
)
from .common import (
    ConfigurationError,
)
from .util.encoding import (
    dump_yaml,
    load_yaml,
)

APP_NAME = u"taskmerge"

CONFIG_FILE_NAME = u"config.yaml"


def default_config_dir():
    return FilePath(user_config_dir(APP_NAME))


def default_state_dir():
    return FilePath(user_state_dir(APP_NAME))


def default_task_dir(environ=None):
    """
    :returns FilePath: where Taskwarrior keeps its data by default,
        ``$XDG_DATA_HOME/task`` (``~/.local/share/task`` if
        ``XDG_DATA_HOME`` is unset or empty).
    """
    if environ is None:
        environ = os.environ
    data_home = environ.get(u"XDG_DATA_HOME")
    if not data_home:
        data_home = os.path.join(os.path.expanduser(u"~"), u".local", u"share")
    return FilePath(data_home).child(u"task")


def _non_negative(inst, attribute, value):
    if value < 0:
        raise ValueError(
            "'{}' must not be negative, not {}".format(attribute.name, value)
        )


@attr.s(frozen=True)
class Config(object):
    """
    :ivar int keep: how many backup directories to retain

    :ivar FilePath task_dir: the configured Taskwarrior data directory,
        or ``None`` to use the default.
    """

    keep = attr.ib(
        default=DEFAULT_KEEP,
        validator=[attr.validators.instance_of(int), _non_negative],
    )
    task_dir = attr.ib(
        default=None,
        validator=attr.validators.optional(attr.validators.instance_of(FilePath)),
    )

    @classmethod
    def from_json(cls, data):
        """
        :param data: the parsed contents of a configuration file

        :raises ConfigurationError: if ``data`` isn't a valid configuration
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(u"Configuration must be a mapping")
        keep = data.get(u"keep")
        if keep is None:
            keep = DEFAULT_KEEP
        # bool is an int subclass but "keep: yes" is surely a mistake
        if isinstance(keep, bool):
            raise ConfigurationError(u"'keep' must be an integer")
        task_dir = data.get(u"task_dir")
        if task_dir is not None:
            if not isinstance(task_dir, str):
                raise ConfigurationError(u"'task_dir' must be a path")
            task_dir = FilePath(os.path.expanduser(task_dir))
        try:
            return cls(keep=keep, task_dir=task_dir)
        except (TypeError, ValueError) as e:
            raise ConfigurationError.from_exception(e, u"Invalid configuration")

    def to_json(self):
        return {
            u"keep": self.keep,
            u"task_dir": None if self.task_dir is None else self.task_dir.path,
        }

    def resolve_task_dir(self, override=None, environ=None):
        """
        :param FilePath override: a directory given on the command-line

        :returns FilePath: the task directory to work on: ``override``,
            else the configured one, else Taskwarrior's default.
        """
        if override is not None:
            return override
        if self.task_dir is not None:
            return self.task_dir
        return default_task_dir(environ)


def load_configuration(config_dir):
    """
    Load ``config.yaml`` from ``config_dir``. If there is no configuration
    file yet one holding the defaults is written.

    :param FilePath config_dir: the configuration directory

    :returns Config: the loaded configuration

    :raises ConfigurationError: if the file can't be parsed or is invalid
    """
    config_file = config_dir.child(CONFIG_FILE_NAME)
    if config_file.isfile():
        try:
            with config_file.open("r") as f:
                data = load_yaml(f)
        except YAMLError as e:
            raise ConfigurationError.from_exception(
                e,
                u"Unable to parse '{}'".format(config_file.path),
            )
        return Config.from_json(data)

    config = Config()
    Message.log(
        message_type=u"taskmerge:config:create-default",
        path=config_file.path,
    )
    config_dir.makedirs(ignoreExistingDirectory=True)
    config_file.setContent(dump_yaml(config.to_json()).encode("utf8"))
    return config
