[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minicore"
version = "0.1.0"
description = "Userland tools, a file-system image builder, a shell parser and kernel memory models for a small teaching operating system"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "operating-system",
    "file-system",
    "mkfs",
    "shell-parser",
    "page-table",
    "copy-on-write",
    "virtio",
    "grep",
    "wc",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
    "Topic :: Education",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
minicore-mkfs = "minicore.mkfs:main"
minicore-grep = "minicore.grep:main"
minicore-wc = "minicore.wc:main"
minicore-cat = "minicore.commands:cat_main"
minicore-echo = "minicore.commands:echo_main"
minicore-ln = "minicore.commands:ln_main"
minicore-mkdir = "minicore.commands:mkdir_main"
minicore-rm = "minicore.commands:rm_main"
minicore-ls = "minicore.commands:ls_main"
minicore-kill = "minicore.processes:kill_main"

[tool.hatch.build.targets.wheel]
packages = ["minicore"]

[tool.hatch.build.targets.sdist]
include = ["minicore", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
