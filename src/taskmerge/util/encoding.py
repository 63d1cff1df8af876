# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

import yaml


def load_yaml(stream):
    """
    Parse the first YAML document in a stream.

    Returns string values as :py:`str`.
    """
    return yaml.load(stream, yaml.SafeLoader)


def dump_yaml(data, stream=None):
    """
    Serialize an object into a YAML stream.
    """
    return yaml.safe_dump(data, stream=stream, default_flow_style=False)
