[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hadns"
version = "0.1.0"
description = "High-availability DNS client with DoH, UDP and system fallbacks plus health-based server selection"
requires-python = ">=3.10"
dependencies = [
    "dnspython",
]
keywords = ["dns", "doh", "dns-over-https", "high-availability", "health-check", "failover"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Name Service (DNS)",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
hadns = "hadns.cli:main"
hadns-health-server = "hadns.health_server:main"

[tool.hatch.build.targets.wheel]
packages = ["hadns"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
