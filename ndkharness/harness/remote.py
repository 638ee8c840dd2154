"""
Remote test harness.

Stages test executables and the shared objects they load onto a device,
runs them one at a time, and classifies each run from its captured output.
The remote exit status is never trusted: a run succeeded only if the
success sentinel echoed after the executable appears in its output.

State machine::

    IDLE -> DEVICE_READY -> DEPENDENCIES_STAGED -> EXECUTABLES_STAGED
         -> RUNNING -> (EXECUTABLES_STAGED -> RUNNING)* -> CLASSIFIED -> IDLE

Any state may return to IDLE when the run is aborted.
"""

import logging
import posixpath
from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from filelock import Timeout as LockTimeout

from ndkharness.core.exceptions import (
    DeviceError,
    HarnessStateError,
    NoDeviceAttached,
    RemoteExecutionInconclusive,
    StagingFailed,
)
from ndkharness.core.locking import LockManager
from ndkharness.device.bridge import DeviceBridge

logger = logging.getLogger(__name__)

SENTINEL = "ADB_SUCCESS!"
DEFAULT_STAGING_DIR = "/data/local/tmp"

# Exit code for a report with failed runs when strict mode is on
STRICT_FAILURE_EXIT_CODE = 8


class HarnessState(Enum):
    IDLE = "idle"
    DEVICE_READY = "device-ready"
    DEPENDENCIES_STAGED = "dependencies-staged"
    EXECUTABLES_STAGED = "executables-staged"
    RUNNING = "running"
    CLASSIFIED = "classified"


_TRANSITIONS = {
    HarnessState.IDLE: {HarnessState.DEVICE_READY},
    HarnessState.DEVICE_READY: {HarnessState.DEPENDENCIES_STAGED},
    HarnessState.DEPENDENCIES_STAGED: {
        HarnessState.EXECUTABLES_STAGED,
        HarnessState.CLASSIFIED,
    },
    HarnessState.EXECUTABLES_STAGED: {HarnessState.RUNNING},
    HarnessState.RUNNING: {HarnessState.EXECUTABLES_STAGED, HarnessState.CLASSIFIED},
    HarnessState.CLASSIFIED: {HarnessState.IDLE},
}


class Outcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    INCONCLUSIVE = "inconclusive"


def classify_output(output: Optional[str]) -> Outcome:
    """
    Classify one remote run from its combined output.

    Example:
        >>> classify_output("test result: ok\\nADB_SUCCESS!\\n")
        <Outcome.SUCCESS: 'success'>
    """
    if output is None or not output.strip():
        return Outcome.INCONCLUSIVE
    if SENTINEL in output:
        return Outcome.SUCCESS
    return Outcome.FAILURE


def build_remote_command(executable_name: str, staging_dir: str = DEFAULT_STAGING_DIR) -> str:
    remote_path = posixpath.join(staging_dir, executable_name)
    return (
        f"LD_LIBRARY_PATH={staging_dir} RUST_TEST_THREADS=1 RUST_LOG=debug "
        f"{remote_path} && echo {SENTINEL}"
    )


@dataclass
class RemoteRun:
    """One test executable run on one device."""

    executable: Path
    serial: str
    remote_path: str
    output: str = ""
    outcome: Optional[Outcome] = None
    error: Optional[Exception] = None

    @property
    def name(self) -> str:
        return self.executable.name


@dataclass
class HarnessReport:
    """Ordered results of one harness run."""

    serial: str
    runs: List[RemoteRun] = field(default_factory=list)

    @property
    def outcomes(self) -> List[Outcome]:
        return [run.outcome for run in self.runs]

    @property
    def passed(self) -> List[RemoteRun]:
        return [run for run in self.runs if run.outcome is Outcome.SUCCESS]

    @property
    def failed(self) -> List[RemoteRun]:
        return [run for run in self.runs if run.outcome is not Outcome.SUCCESS]

    @property
    def all_passed(self) -> bool:
        return not self.failed

    def exit_code(self, strict: bool = False) -> int:
        """0 unless ``strict`` and at least one run did not succeed."""
        if strict and self.failed:
            return STRICT_FAILURE_EXIT_CODE
        return 0

    def summary(self) -> str:
        lines = [f"Device {self.serial}: {len(self.passed)}/{len(self.runs)} passed"]
        for run in self.runs:
            line = f"  [{run.outcome.value.upper()}] {run.name}"
            if run.error is not None:
                line += f" ({run.error})"
            lines.append(line)
        return "\n".join(lines)


class RemoteTestHarness:
    """
    Runs test executables on a single attached device.

    Args:
        bridge: Device bridge used for every device interaction
        staging_dir: Remote directory that receives libraries and executables
        lock_manager: Lock manager providing the per-device lock; no locking if None
        teardown: Shut the device session down after the run
        lock_timeout: Seconds to wait for another harness run to release the device
    """

    def __init__(
        self,
        bridge: DeviceBridge,
        staging_dir: str = DEFAULT_STAGING_DIR,
        lock_manager: Optional[LockManager] = None,
        teardown: bool = True,
        lock_timeout: int = 10,
    ):
        self.bridge = bridge
        self.staging_dir = staging_dir
        self.lock_manager = lock_manager
        self.teardown = teardown
        self.lock_timeout = lock_timeout
        self.state = HarnessState.IDLE
        self.current_index: Optional[int] = None

    def _transition(self, new_state: HarnessState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise HarnessStateError(
                f"Illegal harness transition {self.state.value} -> {new_state.value}"
            )
        logger.debug(f"Harness state: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _reset(self) -> None:
        if self.state is not HarnessState.IDLE:
            logger.debug(f"Harness state: {self.state.value} -> idle")
        self.state = HarnessState.IDLE
        self.current_index = None

    def remote_path(self, local: Path) -> str:
        return posixpath.join(self.staging_dir, Path(local).name)

    def select_device(self, serial: Optional[str] = None) -> str:
        """
        Pick the device to run on.

        Raises:
            NoDeviceAttached: If no device is attached, ``serial`` is not
                attached, or several devices are attached and none was named
        """
        devices = self.bridge.list_devices()
        if serial:
            if serial not in devices:
                raise NoDeviceAttached(f"Device {serial} is not attached", devices)
            return serial
        if not devices:
            raise NoDeviceAttached(devices=devices)
        if len(devices) > 1:
            raise NoDeviceAttached(
                f"Multiple devices attached ({', '.join(devices)}); choose one with --serial",
                devices,
            )
        return devices[0]

    def run(
        self,
        executables: Sequence[Path],
        runtime_libraries: Sequence[Path] = (),
        serial: Optional[str] = None,
    ) -> HarnessReport:
        """
        Stage and run every executable, in order.

        Args:
            executables: Test executables from a test-compile-only build
            runtime_libraries: Shared objects the executables load at runtime
            serial: Device to use; required when several are attached

        Returns:
            HarnessReport with one RemoteRun per executable

        Raises:
            NoDeviceAttached: If no single device is available
            StagingFailed: If any push or chmod fails
            HarnessStateError: If run() is called while a run is in progress
        """
        if self.state is not HarnessState.IDLE:
            raise HarnessStateError(f"Harness is busy ({self.state.value})")

        chosen = self.select_device(serial)
        lock = (
            self.lock_manager.device_lock(chosen, timeout=self.lock_timeout)
            if self.lock_manager
            else nullcontext()
        )

        try:
            with lock:
                try:
                    return self._run_on_device(chosen, executables, runtime_libraries)
                finally:
                    self._teardown(chosen)
        except LockTimeout as e:
            raise NoDeviceAttached(
                f"Device {chosen} is in use by another harness run", [chosen]
            ) from e

    def _run_on_device(
        self, serial: str, executables: Sequence[Path], runtime_libraries: Sequence[Path]
    ) -> HarnessReport:
        self.bridge.select(serial)
        self._transition(HarnessState.DEVICE_READY)
        logger.info(f"Using device {serial}")

        for library in runtime_libraries:
            self.bridge.push(Path(library), self.remote_path(library))
            logger.info(f"Staged {Path(library).name}")
        self._transition(HarnessState.DEPENDENCIES_STAGED)

        report = HarnessReport(serial=serial)
        for index, executable in enumerate(executables):
            executable = Path(executable)
            run = RemoteRun(
                executable=executable,
                serial=serial,
                remote_path=self.remote_path(executable),
            )

            self.bridge.push(executable, run.remote_path)
            try:
                self.bridge.exec(f"chmod 755 {run.remote_path}")
            except DeviceError as e:
                raise StagingFailed(executable, run.remote_path, str(e)) from e
            self._transition(HarnessState.EXECUTABLES_STAGED)

            self.current_index = index
            self._transition(HarnessState.RUNNING)
            self._execute(run)
            report.runs.append(run)

        self._transition(HarnessState.CLASSIFIED)
        logger.info(report.summary())
        return report

    def _execute(self, run: RemoteRun) -> None:
        command = build_remote_command(run.name, self.staging_dir)
        logger.info(f"Running {run.name} on {run.serial}")
        logger.debug(f"Remote command: {command}")

        try:
            run.output = self.bridge.exec(command)
        except DeviceError as e:
            logger.error(f"Device error while running {run.name}: {e}")
            run.outcome = Outcome.INCONCLUSIVE
            run.error = RemoteExecutionInconclusive(run.name, str(e))
            return

        for line in run.output.splitlines():
            logger.debug(f"[{run.name}] {line}")

        run.outcome = classify_output(run.output)
        if run.outcome is Outcome.INCONCLUSIVE:
            run.error = RemoteExecutionInconclusive(run.name, "no output captured")
            logger.warning(f"{run.name}: inconclusive (no output)")
        elif run.outcome is Outcome.FAILURE:
            logger.warning(f"{run.name}: failed")
        else:
            logger.info(f"{run.name}: passed")

    def _teardown(self, serial: str) -> None:
        try:
            if self.teardown:
                if self.state is HarnessState.CLASSIFIED:
                    logger.info(f"Tearing down device session {serial}")
                try:
                    self.bridge.shutdown(serial)
                except DeviceError as e:
                    logger.warning(f"Device teardown failed for {serial}: {e}")
        finally:
            if self.state is HarnessState.CLASSIFIED:
                self._transition(HarnessState.IDLE)
            else:
                self._reset()
