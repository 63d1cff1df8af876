# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

__all__ = [
    "__version__",
]

from ._version import (
    __version__,
)
