#!/usr/bin/python
# -*- encoding: utf-8 -*-
import ast
import re

from setuptools import find_packages
from setuptools import setup

## The version number is kept in one place only, davnodes.__version__
_version_re = re.compile(r"__version__\s+=\s+(.*)")
with open("davnodes/__init__.py", "rb") as f:
    version = str(
        ast.literal_eval(_version_re.search(f.read().decode("utf-8")).group(1))
    )

if __name__ == "__main__":
    test_packages = [
        "pytest",
        "pytest-coverage",
        "coverage",
        "pyyaml",
    ]

    setup(
        name="davnodes",
        version=version,
        description="WebDAV, CalDAV and CardDAV operations for workflow hosts",
        long_description=open("README.md").read(),
        long_description_content_type="text/markdown",
        classifiers=[
            "Development Status :: 4 - Beta",
            "Intended Audience :: Developers",
            "License :: OSI Approved :: Apache Software License",
            "Operating System :: OS Independent",
            "Programming Language :: Python",
            "Programming Language :: Python :: 3",
            "Topic :: Office/Business :: Scheduling",
            "Topic :: Internet :: WWW/HTTP",
            "Topic :: Software Development :: Libraries " ":: Python Modules",
        ],
        keywords="webdav caldav carddav workflow",
        license="Apache-2.0",
        python_requires=">=3.10",
        packages=find_packages(exclude=["tests", "tests.*"]),
        include_package_data=True,
        zip_safe=False,
        install_requires=[
            "vobject",
            "lxml",
            "requests",
            "icalendar",
            "typing_extensions",
        ],
        extras_require={
            "test": test_packages,
            "yaml": ["pyyaml"],
        },
    )
