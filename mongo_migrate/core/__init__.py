"""Core building blocks: process execution, progress parsing, distribution and the worker pool."""
