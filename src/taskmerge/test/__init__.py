# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

"""
The unit test package for taskmerge.

This also does some test-only related setup.  The expectation is that this
code will never be loaded under real usage.
"""

from sys import (
    stderr,
)


def _configure_hypothesis():
    from os import environ

    from hypothesis import (
        HealthCheck,
        settings,
    )

    # profile names aren't namespaced, so prefix ours with "taskmerge-"
    settings.register_profile(
        "taskmerge-fast",
        max_examples=5,
        suppress_health_check=[
            HealthCheck.too_slow,
        ],
        deadline=60*10*1000,
    )

    settings.register_profile(
        "taskmerge-ci",
        suppress_health_check=[
            # CPU available to CI builds varies a lot from run to run.
            HealthCheck.too_slow,
        ],
        deadline=60*10*1000,
    )

    profile_name = environ.get("TASKMERGE_HYPOTHESIS_PROFILE", "default")
    print("Loading Hypothesis profile {}".format(profile_name), file=stderr)
    settings.load_profile(profile_name)
_configure_hypothesis()

from eliot import to_file
to_file(open("eliot.log", "w", encoding="utf8"))
