"""
Headless emulator session management.

Starts one existing AVD without audio or a window and waits for it to show
up on the device bridge. AVD creation is left to the Android SDK tools.
"""

import logging
import subprocess
import time
from typing import Callable, List, Optional, Set

from ndkharness.core.exceptions import DeviceError, NoDeviceAttached
from ndkharness.device.bridge import DeviceBridge

logger = logging.getLogger(__name__)


class EmulatorSession:
    """
    One running emulator started from a named AVD.

    Example:
        >>> with EmulatorSession("arm", bridge) as serial:
        ...     harness.run(executables, serial=serial)
    """

    def __init__(
        self,
        avd_name: str,
        bridge: DeviceBridge,
        emulator_path: str = "emulator",
        boot_timeout: float = 300,
        poll_interval: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.avd_name = avd_name
        self.bridge = bridge
        self.emulator_path = emulator_path
        self.boot_timeout = boot_timeout
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._process: Optional[subprocess.Popen] = None
        self.serial: Optional[str] = None

    @property
    def command(self) -> List[str]:
        return [self.emulator_path, "-avd", self.avd_name, "-no-audio", "-no-window"]

    def start(self) -> str:
        """
        Launch the emulator and wait until a new emulator serial is attached.

        Returns:
            Serial of the started emulator

        Raises:
            NoDeviceAttached: If no new emulator appears within boot_timeout
            DeviceError: If the bridge fails while waiting; the emulator is stopped
        """
        before = set(self.bridge.list_devices())
        logger.info(f"Starting emulator {self.avd_name}")
        self._process = subprocess.Popen(
            self.command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
        )

        try:
            self.serial = self._wait_for_serial(before)
        except DeviceError:
            self.stop()
            raise
        logger.info(f"Emulator {self.avd_name} attached as {self.serial}")
        return self.serial

    def _wait_for_serial(self, before: Set[str]) -> str:
        waited = 0.0
        while waited < self.boot_timeout:
            if self._process.poll() is not None:
                raise NoDeviceAttached(
                    f"Emulator {self.avd_name} exited with code {self._process.returncode}"
                )
            started = [
                s for s in self.bridge.list_devices()
                if s not in before and s.startswith("emulator-")
            ]
            if started:
                return started[0]
            self._sleep(self.poll_interval)
            waited += self.poll_interval

        raise NoDeviceAttached(
            f"Emulator {self.avd_name} did not attach within {self.boot_timeout}s"
        )

    def stop(self) -> None:
        if self.serial:
            self.bridge.shutdown(self.serial)
            self.serial = None
        if self._process is not None and self._process.poll() is None:
            self._process.terminate()
            try:
                self._process.wait(timeout=30)
            except subprocess.TimeoutExpired:
                self._process.kill()
        self._process = None

    def __enter__(self) -> str:
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
