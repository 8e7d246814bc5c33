"""Directive-line parser and runner for data-driven test files."""

__all__ = ["lineparser", "runner"]