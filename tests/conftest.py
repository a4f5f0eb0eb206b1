"""
Root-level conftest for all tests.

Log output is forced to JSON before any application module is imported so
tests that inspect log lines can parse them.
"""
import os

if not os.getenv("JSON_LOGS"):
    os.environ["JSON_LOGS"] = "true"
