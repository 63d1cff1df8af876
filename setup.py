#! /usr/bin/env python
# -*- coding: utf-8 -*-

import os
from setuptools import find_packages, setup


def load_requirements(filename):
    basedir = os.path.dirname(os.path.abspath(__file__))
    with open(os.path.join(basedir, "requirements", filename), "r") as f:
        return [
            line.rstrip("\n")
            for line in f.readlines()
            if not line.startswith(("#", "-r")) and line.rstrip("\n")
        ]


install_requires = load_requirements("base.in")
test_requires = load_requirements("test.in")


trove_classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "License :: OSI Approved :: GNU General Public License v2 or later (GPLv2+)",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: Unix",
    "Operating System :: POSIX :: Linux",
    "Operating System :: POSIX",
    "Operating System :: MacOS :: MacOS X",
    "Natural Language :: English",
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "Topic :: Utilities",
    "Topic :: Office/Business :: Scheduling",
    "Topic :: System :: Archiving :: Mirroring",
    ]


setup(
    name="taskmerge",
    version="0.1.0",
    description="Merge Syncthing conflict copies of a Taskwarrior database",
    long_description=open("README.rst", "r").read(),
    author="the Taskmerge developers",
    license="GNU GPL",
    python_requires=">=3.8",
    package_dir={"": "src"},
    packages=find_packages("src"),
    classifiers=trove_classifiers,
    install_requires=install_requires,
    extras_require={
        "test": test_requires,
    },
    include_package_data=True,
    entry_points={
        "console_scripts": [
            "taskmerge = taskmerge.cli:_entry",
        ],
    },
)
