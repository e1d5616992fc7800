[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sonoplug"
version = "0.1.0"
description = "Helpers for Sonobuoy-style cluster test plugins: RBAC who-can reports, Kubernetes object diffs, assertions and a shell test runner."
requires-python = ">=3.10"
keywords = ["sonobuoy", "kubernetes", "rbac", "testing", "plugin", "diff"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
sonoshell = "sonoplug.sonoshell:main"

[tool.hatch.build.targets.wheel]
packages = ["sonoplug"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
