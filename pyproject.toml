[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dping"
version = "0.1.0"
description = "High-frequency ping tool for network monitoring"
requires-python = ">=3.10"
dependencies = []
keywords = ["ping", "icmp", "network", "monitoring", "latency", "rtt"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
dping = "dping.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["dping"]

[tool.pytest.ini_options]
addopts = "-ra"
