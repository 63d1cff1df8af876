# Copyright 2026 The Taskmerge Developers
# See COPYING for details.

if __name__ == '__main__':
    from .cli import _entry

    _entry()
