"""
On-device test execution.
"""

from ndkharness.harness.remote import (
    DEFAULT_STAGING_DIR,
    SENTINEL,
    HarnessReport,
    HarnessState,
    Outcome,
    RemoteRun,
    RemoteTestHarness,
    build_remote_command,
    classify_output,
)

__all__ = [
    "DEFAULT_STAGING_DIR",
    "SENTINEL",
    "HarnessReport",
    "HarnessState",
    "Outcome",
    "RemoteRun",
    "RemoteTestHarness",
    "build_remote_command",
    "classify_output",
]
