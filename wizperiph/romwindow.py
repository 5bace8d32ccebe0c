"""Maps segments of the ROM image onto the bus."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .peripheral import BusError, HardwareId, Machine, Peripheral, Region

log = logging.getLogger(__name__)

# (region base, size, rom base) for each hardware family.
ROM_LAYOUTS: dict[HardwareId, tuple[tuple[int, int, int], ...]] = {
    HardwareId.ES_PLUS: (
        (0x00000, 0x08000, 0x00000),
        (0x10000, 0x10000, 0x10000),
        (0x80000, 0x10000, 0x00000),
    ),
    HardwareId.CLASSWIZ: (
        (0x00000, 0x0D000, 0x00000),
        (0x10000, 0x10000, 0x10000),
        (0x20000, 0x10000, 0x20000),
        (0x30000, 0x10000, 0x30000),
        (0x50000, 0x10000, 0x00000),
    ),
    HardwareId.CLASSWIZ_II: (
        (0x00000, 0x09000, 0x00000),
        (0x10000, 0x10000, 0x10000),
        (0x20000, 0x10000, 0x20000),
        (0x30000, 0x10000, 0x30000),
        (0x40000, 0x10000, 0x40000),
        (0x50000, 0x10000, 0x50000),
        (0x70000, 0x10000, 0x70000),
        (0x80000, 0x08E00, 0x00000),
    ),
}


class ROMWindow(Peripheral):
    """Read-only windows onto the ROM; writes are ignored or, if strict, faults."""

    def __init__(self, machine: Machine) -> None:
        super().__init__(machine)
        self.regions: list[Region] = []

    def _strict_write(self, address: int, value: int) -> None:
        log.info("ROM: attempt to write %02X to %06X", value, address)
        self.machine.memory_error()

    def _setup_region(self, region_base: int, size: int, rom_base: int, strict: bool) -> Region:
        rom = self.machine.rom
        if rom_base + size > len(rom):
            raise BusError(f"Invalid ROM region: base {rom_base:x}, size {size:x}")
        delta = rom_base - region_base

        def read(address: int) -> int:
            return rom[address + delta]

        write: Optional[Callable[[int, int], None]] = self._strict_write if strict else None
        description = f"ROM/Segment{region_base >> 16}"
        return self.machine.bus.add_region(Region(region_base, size, description, read, write))

    def initialise(self) -> None:
        strict = "strict_memory" in self.machine.argv
        self.regions = [
            self._setup_region(region_base, size, rom_base, strict)
            for region_base, size, rom_base in ROM_LAYOUTS[self.machine.hardware_id]
        ]