"""Service layer — validation engine, creation lifecycle, dispatch pipeline.

Functions here take the definition class explicitly; the user-facing
classmethods on :mod:`cqrskit.definitions` delegate to them.
"""
