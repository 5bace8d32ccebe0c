"""Battery-backed RAM with optional persistence to an image file."""

from __future__ import annotations

import logging

from .peripheral import HardwareId, Machine, Peripheral, Region

log = logging.getLogger(__name__)

EXTRA_SIZE = 0x100

# (ram size, region base) for each hardware family.
_RAM_LAYOUT = {
    HardwareId.ES_PLUS: (0x0E00, 0x8000),
    HardwareId.CLASSWIZ: (0x2000, 0xD000),
    HardwareId.CLASSWIZ_II: (0x6000, 0x9000),
}

_EXTRA_BASE = {
    HardwareId.ES_PLUS: 0x9800,
    HardwareId.CLASSWIZ: 0x49800,
    HardwareId.CLASSWIZ_II: 0x89800,
}


class BatteryBackedRAM(Peripheral):
    """Main RAM; on emulator-style models an extra 0x100-byte block follows it."""

    def __init__(self, machine: Machine) -> None:
        super().__init__(machine)
        self.ram = bytearray()
        self.ram_file_requested = False

    def _map(self, base: int, size: int, name: str, start: int) -> None:
        ram = self.ram

        def read(address: int) -> int:
            return ram[start + address - base]

        def write(address: int, value: int) -> None:
            ram[start + address - base] = value

        self.machine.bus.add_region(Region(base, size, name, read, write))

    def initialise(self) -> None:
        machine = self.machine
        real_hardware = bool(machine.model_value("real_hardware"))
        region_size, region_base = _RAM_LAYOUT[machine.hardware_id]
        ram_size = region_size if real_hardware else region_size + EXTRA_SIZE
        self.ram = bytearray(ram_size)

        self.ram_file_requested = "ram" in machine.argv
        if self.ram_file_requested and "clean_ram" not in machine.argv:
            self.load_image()

        self._map(region_base, region_size, "BatteryBackedRAM", 0)
        if not real_hardware:
            self._map(
                _EXTRA_BASE[machine.hardware_id],
                EXTRA_SIZE,
                "BatteryBackedRAM/2",
                ram_size - EXTRA_SIZE,
            )

    def uninitialise(self) -> None:
        if self.ram_file_requested and "preserve_ram" not in self.machine.argv:
            self.save_image()

    def save_image(self) -> None:
        """Write the RAM to the file named by the `ram` option; failures are logged."""
        try:
            with open(self.machine.argv["ram"], "wb") as handle:
                handle.write(self.ram)
        except OSError as exc:
            log.info("[BatteryBackedRAM] saving RAM image failed: %s", exc)

    def load_image(self) -> None:
        """Fill the RAM from the `ram` image file; failures and short files are logged."""
        try:
            with open(self.machine.argv["ram"], "rb") as handle:
                data = handle.read(len(self.ram))
        except OSError as exc:
            log.info("[BatteryBackedRAM] loading RAM image failed: %s", exc)
            return
        self.ram[: len(data)] = data
        if len(data) < len(self.ram):
            log.info("[BatteryBackedRAM] RAM image is shorter than the RAM")