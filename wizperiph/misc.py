"""Miscellaneous registers: DSR, scratch bytes and the ClassWiz II battery check."""

from __future__ import annotations

from .peripheral import HardwareId, Machine, Peripheral, Region

UNKNOWN_ADDRESSES = (
    0xF00A, 0xF018, 0xF033, 0xF034, 0xF041,
    0xF035, 0xF036, 0xF039, 0xF012, 0xF03D, 0xF224, 0xF028, 0xF310,
    0xF037,
)

_UNKNOWN_COUNT = {
    HardwareId.ES_PLUS: 5,
    HardwareId.CLASSWIZ: 13,
    HardwareId.CLASSWIZ_II: 13,
}


class Miscellaneous(Peripheral):
    """Registers with little or unknown behaviour that the firmware still touches."""

    def __init__(self, machine: Machine) -> None:
        super().__init__(machine)
        self.data = bytearray(len(UNKNOWN_ADDRESSES))
        self.data_f048 = 0
        self.data_f220 = 0
        self.data_f0d0 = 0
        self.data_f0d1 = 0
        self.data_f0d2 = 0

    def _map_value(self, base: int, size: int, name: str, attribute: str) -> None:
        mask = (1 << (size * 8)) - 1

        def read(address: int) -> int:
            return (getattr(self, attribute) >> ((address - base) * 8)) & 0xFF

        def write(address: int, value: int) -> None:
            shift = (address - base) * 8
            current = getattr(self, attribute) & ~(0xFF << shift) & mask
            setattr(self, attribute, current | (value << shift))

        self.machine.bus.add_region(Region(base, size, name, read, write))

    def _map_scratch(self, index: int) -> None:
        address = UNKNOWN_ADDRESSES[index]

        def read(_: int) -> int:
            return self.data[index]

        def write(_: int, value: int) -> None:
            self.data[index] = value

        self.machine.bus.add_region(Region(address, 1, f"Miscellaneous/Unknown/{address:X}*1", read, write))

    def _read_dsr(self, address: int) -> int:
        return self.machine.reg_dsr & 0xFF

    def _write_dsr(self, address: int, value: int) -> None:
        self.machine.reg_dsr = value

    def _read_f0d1(self, address: int) -> int:
        return self.data_f0d1

    def _write_f0d1(self, address: int, value: int) -> None:
        if self.data_f0d0 == 3 and self.data_f0d2 == 0 and value == 5:
            self.data_f0d1 = 6
            return
        self.data_f0d1 = value

    def initialise(self) -> None:
        bus = self.machine.bus
        bus.add_region(Region(0xF000, 1, "Miscellaneous/DSR", self._read_dsr, self._write_dsr))

        for index in range(_UNKNOWN_COUNT[self.machine.hardware_id]):
            self._map_scratch(index)
        self._map_value(0xF048, 8, "Miscellaneous/Unknown/F048*8", "data_f048")
        self._map_value(0xF220, 4, "Miscellaneous/Unknown/F220*4", "data_f220")

        if self.machine.hardware_id is HardwareId.CLASSWIZ_II:
            self._map_value(0xF0D0, 1, "Miscellaneous/Battery/F0D0", "data_f0d0")
            self._map_value(0xF0D2, 1, "Miscellaneous/Battery/F0D2", "data_f0d2")
            bus.add_region(Region(0xF0D1, 1, "Miscellaneous/Battery/F0D1", self._read_f0d1, self._write_f0d1))