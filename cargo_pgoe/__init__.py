"""
cargo_pgoe — PGO-instrumented cargo builds.

Drives ``cargo`` through an instrumented build pass, consumes its JSON
message stream, and reports which artifacts were instrumented and where
their profiles will be written.
"""

__version__ = "0.1.0"
TOOL_VERSION = "v0"
PACKAGE_NAME = "cargo_pgoe"
