"""
Device bridge abstraction.

The harness talks to an attached device or emulator only through the
DeviceBridge interface: list attached devices, push a file, execute a shell
command and capture its combined output, and shut the session down.
AdbBridge implements it on top of the ``adb`` command-line tool.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from ndkharness.core.exceptions import DeviceError, StagingFailed

logger = logging.getLogger(__name__)


class DeviceBridge(ABC):
    """
    Minimal capability set the remote test harness needs from a device.

    Commands are addressed to the device chosen with ``select``.
    """

    serial: Optional[str] = None

    def select(self, serial: str) -> None:
        """Address subsequent push/exec calls to ``serial``."""
        self.serial = serial

    @abstractmethod
    def list_devices(self) -> List[str]:
        """Return serials of attached devices that are ready for commands."""
        pass

    @abstractmethod
    def push(self, local: Path, remote: str) -> None:
        """
        Copy a local file to the device, overwriting any existing file.

        Raises:
            StagingFailed: If the transfer fails
        """
        pass

    @abstractmethod
    def exec(self, command: str) -> str:
        """
        Run a shell command on the device.

        Returns:
            Combined stdout and stderr of the command

        Raises:
            DeviceError: If the bridge itself fails (device lost, timeout)
        """
        pass

    @abstractmethod
    def shutdown(self, device_id: str) -> None:
        """Tear down the device session (kills emulators)."""
        pass


def parse_adb_devices(output: str) -> List[str]:
    """
    Parse ``adb devices`` output into ready serials.

    Devices in ``offline`` or ``unauthorized`` state are skipped.

    Example:
        >>> parse_adb_devices("List of devices attached\\nemulator-5554\\tdevice\\n")
        ['emulator-5554']
    """
    serials = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        parts = line.split()
        if len(parts) >= 2 and parts[1] == "device":
            serials.append(parts[0])
    return serials


class AdbBridge(DeviceBridge):
    """
    DeviceBridge backed by the ``adb`` executable.

    Args:
        adb_path: adb executable name or path
        serial: Device to address; may also be chosen later with ``select``
        timeout: Per-command timeout in seconds
    """

    def __init__(self, adb_path: str = "adb", serial: Optional[str] = None, timeout: float = 600):
        self.adb_path = adb_path
        self.serial = serial
        self.timeout = timeout

    def _base_cmd(self, serial: Optional[str] = None) -> List[str]:
        cmd = [self.adb_path]
        serial = serial or self.serial
        if serial:
            cmd += ["-s", serial]
        return cmd

    def _run(self, cmd: List[str], merge_stderr: bool = False) -> subprocess.CompletedProcess:
        logger.debug(f"adb command: {' '.join(cmd)}")
        try:
            return subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise DeviceError(f"adb executable not found: {self.adb_path}") from e
        except subprocess.TimeoutExpired as e:
            raise DeviceError(
                f"adb command timed out after {self.timeout}s: {' '.join(cmd)}"
            ) from e

    def list_devices(self) -> List[str]:
        result = self._run([self.adb_path, "devices"])
        if result.returncode != 0:
            raise DeviceError(f"adb devices failed: {result.stderr.strip()}")
        return parse_adb_devices(result.stdout)

    def push(self, local: Path, remote: str) -> None:
        try:
            result = self._run(self._base_cmd() + ["push", str(local), remote])
        except DeviceError as e:
            raise StagingFailed(local, remote, str(e)) from e
        if result.returncode != 0:
            raise StagingFailed(local, remote, result.stderr or result.stdout)
        logger.debug(f"Pushed {local} -> {remote}")

    def exec(self, command: str) -> str:
        # The remote exit status is not reliable across adb versions; callers
        # classify on output only.
        result = self._run(self._base_cmd() + ["shell", command], merge_stderr=True)
        return result.stdout or ""

    def shutdown(self, device_id: str) -> None:
        if not device_id.startswith("emulator-"):
            logger.info(f"Leaving physical device {device_id} running")
            return
        result = self._run(self._base_cmd(device_id) + ["emu", "kill"])
        if result.returncode != 0:
            logger.warning(f"Failed to stop emulator {device_id}: {result.stderr.strip()}")
        else:
            logger.info(f"Stopped emulator {device_id}")
