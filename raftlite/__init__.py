"""Raft node configuration, errors, protocol types, membership changes and a data-driven test runner."""

__version__ = "0.7.0"
__all__ = ["changer", "config", "errors", "proto", "datadriven"]