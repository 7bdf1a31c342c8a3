[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "crashd"
version = "0.1.0a0"
description = "Collects diagnostics from an unresponsive Kubernetes cluster by running a diagnostics script"
requires-python = ">=3.10"
keywords = ["kubernetes", "diagnostics", "troubleshooting", "ssh", "cluster"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "paramiko",
    "requests",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
crash-diagnostics = "crashd.cli:main"

[tool.setuptools.packages.find]
include = ["crashd*"]

[tool.pytest.ini_options]
addopts = "-ra"
