[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pufu"
version = "0.1.0"
description = "A small node-based virtual machine: assembler-style nodes, a soft-FPGA netlist engine, a Meow UI script interpreter and terminal workspaces"
requires-python = ">=3.10"
dependencies = []
keywords = ["virtual machine", "interpreter", "assembler", "netlist", "hot reload"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pufu = "pufu.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["pufu"]

[tool.pytest.ini_options]
addopts = "-ra"
