[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "matrix_runner"
version = "0.1.0"
description = "Configuration-driven test executor that runs a Cargo project's tests across a matrix of feature flags and platforms."
requires-python = ">=3.11"
keywords = ["testing", "matrix", "cargo", "features", "ci", "automation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
    "Topic :: Software Development :: Quality Assurance",
]
dependencies = [
    "tomli-w",
    "termcolor",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
matrix-runner-init = "matrix_runner.init_command:main"

[tool.hatch.build.targets.wheel]
packages = ["matrix_runner"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
