"""Choosing the CPU governor from the balance of CPU and integrated GPU power."""

from __future__ import annotations

from collections.abc import Callable

from .log import log_error, log_msg
from .power import get_cpu_energy_uj, get_igpu_energy_uj

EnergyReader = Callable[[], int]

_WRAP = 1 << 32
# No integrated GPU uses 10000 times the power of the CPU; a larger
# threshold means the heuristic is switched off.
THRESHOLD_LIMIT = 10000


class IgpuMonitor:
    """Tracks CPU and iGPU energy use between checks."""

    def __init__(
        self,
        cpu_reader: EnergyReader = get_cpu_energy_uj,
        igpu_reader: EnergyReader = get_igpu_energy_uj,
    ) -> None:
        self._cpu_reader = cpu_reader
        self._igpu_reader = igpu_reader
        self.enabled = False
        self.last_cpu_energy_uj = 0
        self.last_igpu_energy_uj = 0

    def _read(self) -> tuple[int, int] | None:
        try:
            return self._cpu_reader(), self._igpu_reader()
        except OSError:
            return None

    def enable(self, threshold: float) -> bool:
        """Start tracking if the threshold is usable and power data can be read."""
        if not threshold < THRESHOLD_LIMIT:
            return False
        readings = self._read()
        if readings is None:
            return False
        self.last_cpu_energy_uj, self.last_igpu_energy_uj = readings
        log_msg(
            "Successfully queried power data for the CPU and iGPU. "
            "Enabling the integrated GPU optimization"
        )
        self.enabled = True
        return True

    def disable(self) -> None:
        """Stop tracking."""
        self.enabled = False

    def check(self, threshold: float) -> bool | None:
        """Compare iGPU to CPU energy used since the last reading.

        Returns True when the iGPU governor should be used, False when the
        desired governor should be used, and None when no decision can be made.
        """
        if not self.enabled:
            return None

        readings = self._read()
        if readings is None:
            # Reading succeeded once already, so this is unexpected.
            self.enabled = False
            log_error("Failed to get CPU and iGPU power data")
            return None

        cpu_energy, igpu_energy = readings
        cpu_delta = (cpu_energy - self.last_cpu_energy_uj) % _WRAP
        igpu_delta = (igpu_energy - self.last_igpu_energy_uj) % _WRAP
        self.last_cpu_energy_uj = cpu_energy
        self.last_igpu_energy_uj = igpu_energy

        if cpu_delta == 0:
            log_error("CPU reported no energy used")
            return None

        return igpu_delta / cpu_delta > threshold