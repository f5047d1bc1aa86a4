#!/usr/bin/env python
# -*- encoding: utf-8 -*-
import io
import re
from glob import glob
from os.path import basename, dirname, join, splitext

from setuptools import find_packages, setup


def read(*names, **kwargs):
    return io.open(
        join(dirname(__file__), *names), encoding=kwargs.get("encoding", "utf8")
    ).read()


def find_version(*file_paths):
    contents = read(*file_paths)
    match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", contents, re.M)
    if match:
        return match.group(1)
    raise RuntimeError("Unable to find version string.")


TESTS_REQUIRE = ["pytest", "pytest-mock", "freezegun"]

setup(
    name="awsx",
    python_requires=">=3.9",
    version=find_version("src", "awsx", "__init__.py"),
    license="MIT",
    description="CLI to manage AWS profiles and switch the shell between them",
    long_description="""`awsx` manages named AWS profiles stored in the standard AWS CLI
configuration and credential files. It supports profiles with static access
keys, MFA-protected profiles whose session credentials are reused until they
expire, and assume-role profiles nested under a parent profile. Switching to a
profile exports it to the calling shell and reminds the user to rotate old
access keys.""",
    long_description_content_type="text/markdown",
    author="FMR LLC",
    author_email="opensource@fidelity.com",
    packages=find_packages("src"),
    package_dir={"": "src"},
    py_modules=[splitext(basename(path))[0] for path in glob("src/*.py")],
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        # complete classifier list: http://pypi.python.org/pypi?%3Aaction=list_classifiers
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Unix",
        "Operating System :: POSIX",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: Utilities",
    ],
    keywords=["awsx", "aws", "cli", "mfa", "profiles"],
    install_requires=[
        "boto3>=1.12.39",
        "colorama",
        "PyYAML>=3.10",
    ],
    tests_require=TESTS_REQUIRE,
    extras_require={"test": TESTS_REQUIRE},
    entry_points={
        "console_scripts": [
            "awsx = awsx.cli:main",
        ]
    },
)
