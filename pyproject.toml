[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xdputil"
version = "1.4.1"
description = "Userspace helpers for XDP tooling: shared constants, dispatcher config packing, Jenkins hashing, levelled logging, PcapNG writing and sample-statistics keys"
requires-python = ">=3.10"
dependencies = []
keywords = ["xdp", "bpf", "networking", "pcapng", "jhash", "dispatcher"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["xdputil"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
