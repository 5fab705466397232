"""Node runtime: an assembler VM, a gate-netlist engine, Meow UI scripts, terminal workspaces and hot reload."""

__version__ = "0.1.0"