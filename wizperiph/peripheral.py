"""Core machine model shared by all peripherals: bus, regions, interrupts."""

from __future__ import annotations

import bisect
import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

ReadFunction = Callable[[int], int]
WriteFunction = Callable[[int, int], None]


class HardwareId(enum.Enum):
    """Calculator hardware families that the peripherals know about."""

    ES_PLUS = "es_plus"
    CLASSWIZ = "classwiz"
    CLASSWIZ_II = "classwiz_ii"


class BusError(Exception):
    """Raised on invalid bus mappings or memory access faults."""


@dataclass
class Region:
    """A range of bus addresses served by a pair of read/write handlers.

    Handlers receive absolute bus addresses. A region without a reader
    reads as zero; a region without a writer ignores writes.
    """

    base: int
    size: int
    description: str
    reader: Optional[ReadFunction]
    writer: Optional[WriteFunction]

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise BusError(f"region {self.description!r} has no size")
        if self.base < 0:
            raise BusError(f"region {self.description!r} has a negative base")

    @property
    def end(self) -> int:
        """One past the last address of the region."""
        return self.base + self.size

    def __contains__(self, address: int) -> bool:
        return self.base <= address < self.end

    def read(self, address: int) -> int:
        """Read one byte at an absolute address inside the region."""
        if address not in self:
            raise BusError(f"address {address:06X} outside region {self.description!r}")
        if self.reader is None:
            return 0
        return self.reader(address) & 0xFF

    def write(self, address: int, value: int) -> None:
        """Write one byte at an absolute address inside the region."""
        if address not in self:
            raise BusError(f"address {address:06X} outside region {self.description!r}")
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value out of range: {value}")
        if self.writer is not None:
            self.writer(address, value)


class Bus:
    """Maps addresses to regions; unmapped reads return 0, unmapped writes are ignored."""

    def __init__(self) -> None:
        self._bases: list[int] = []
        self._regions: list[Region] = []

    @property
    def regions(self) -> tuple[Region, ...]:
        return tuple(self._regions)

    def add_region(self, region: Region) -> Region:
        """Map a region; overlapping an existing region is an error."""
        index = bisect.bisect_left(self._bases, region.base)
        if index > 0 and self._regions[index - 1].end > region.base:
            raise BusError(
                f"region {region.description!r} overlaps {self._regions[index - 1].description!r}"
            )
        if index < len(self._regions) and self._regions[index].base < region.end:
            raise BusError(
                f"region {region.description!r} overlaps {self._regions[index].description!r}"
            )
        self._bases.insert(index, region.base)
        self._regions.insert(index, region)
        return region

    def find(self, address: int) -> Region | None:
        index = bisect.bisect_right(self._bases, address) - 1
        if index >= 0 and address in self._regions[index]:
            return self._regions[index]
        return None

    def read(self, address: int) -> int:
        region = self.find(address)
        return 0 if region is None else region.read(address)

    def write(self, address: int, value: int) -> None:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value out of range: {value}")
        region = self.find(address)
        if region is not None:
            region.write(address, value)


@dataclass
class InterruptLine:
    """A maskable interrupt request line."""

    index: int
    enabled: bool = False
    pending: bool = False
    success: bool = False

    def try_raise(self) -> bool:
        """Request the interrupt; returns whether it was raised."""
        self.success = False
        if not self.enabled:
            return False
        self.pending = True
        return True

    def acknowledge(self) -> bool:
        """Service a pending request; returns whether one was pending."""
        if not self.pending:
            return False
        self.pending = False
        self.success = True
        return True


@dataclass
class Machine:
    """The environment peripherals run in: bus, model data, options and CPU state."""

    hardware_id: HardwareId
    model: dict[str, Any] = field(default_factory=dict)
    argv: dict[str, str] = field(default_factory=dict)
    rom: bytes = b""
    cycles_per_second: int = 1_024_000
    bus: Bus = field(default_factory=Bus)
    peripherals: list["Peripheral"] = field(default_factory=list)
    reg_dsr: int = 0
    halted: bool = False
    stopped: bool = False
    reset_count: int = 0
    memory_errors: int = 0

    @property
    def running(self) -> bool:
        return not (self.halted or self.stopped)

    def reset(self) -> None:
        """Reset the CPU state and every attached peripheral."""
        self.halted = False
        self.stopped = False
        self.reg_dsr = 0
        self.reset_count += 1
        for peripheral in self.peripherals:
            peripheral.reset()

    def halt(self) -> None:
        self.halted = True

    def stop(self) -> None:
        self.stopped = True

    def memory_error(self) -> None:
        """Count an illegal memory access and raise it as a bus error."""
        self.memory_errors += 1
        raise BusError(f"illegal memory access (#{self.memory_errors})")

    def model_value(self, key: str) -> Any:
        try:
            return self.model[key]
        except KeyError:
            raise KeyError(f"model has no value for {key!r}") from None


class Peripheral:
    """Base class for devices attached to a machine."""

    def __init__(self, machine: Machine) -> None:
        self.machine = machine
        self.require_frame = False

    def initialise(self) -> None:
        pass

    def uninitialise(self) -> None:
        pass

    def tick(self) -> None:
        pass

    def tick_after_interrupts(self) -> None:
        pass

    def frame(self) -> None:
        self.require_frame = False

    def reset(self) -> None:
        pass