"""
Test command implementation.

Compiles test executables for one architecture and runs them on a device.
"""

import logging

from ndkharness.cli.utils import create_pipeline, parse_dependency_overrides, print_warning
from ndkharness.device.bridge import AdbBridge
from ndkharness.device.emulator import EmulatorSession
from ndkharness.harness.remote import RemoteTestHarness

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the test command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code: 0 unless a stage failed, or ``--strict`` was given and
        some test executable did not succeed
    """
    pipeline = create_pipeline(args)
    device_config = pipeline.config.device
    overrides = parse_dependency_overrides(args.dep)
    teardown = not args.no_teardown

    bridge = AdbBridge(adb_path=device_config.adb_path, timeout=device_config.timeout)
    serial = args.serial or device_config.serial

    session = None
    if args.emulator:
        session = EmulatorSession(
            args.emulator, bridge, emulator_path=device_config.emulator_path
        )
        serial = session.start()

    try:
        # A started emulator is stopped by its session, not by the harness
        harness = RemoteTestHarness(
            bridge,
            staging_dir=device_config.staging_dir,
            lock_manager=pipeline.lock_manager,
            teardown=teardown and session is None,
        )
        report = pipeline.test_architecture(
            args.arch,
            harness,
            download_all=args.download_all,
            overrides=overrides,
            serial=serial,
        )
    finally:
        if session is not None and teardown:
            session.stop()

    print(report.summary())
    if report.failed and not args.strict:
        print_warning(f"{len(report.failed)} test executable(s) did not succeed")
    return report.exit_code(strict=args.strict)
