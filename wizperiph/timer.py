"""Programmable interval timer driven from the CPU clock."""

from __future__ import annotations

from .peripheral import HardwareId, InterruptLine, Machine, Peripheral, Region

TIMER_INTERRUPT = 9
EXT_TO_INT_FREQUENCY = 10000


class Timer(Peripheral):
    """Timer with interval (0xF020), counter (0xF022) and control (0xF025) registers."""

    def __init__(self, machine: Machine) -> None:
        super().__init__(machine)
        self.interrupt_source = InterruptLine(TIMER_INTERRUPT)
        self.data_counter = 0
        self.data_interval = 0
        self.data_f024 = 0
        self.data_control = 0
        self.real_hardware = True
        self.timer_skipped = False
        self.raise_required = False
        self.ext_to_int_counter = 0
        self.ext_to_int_next = 0
        self.ext_to_int_int_done = 0

    def _read_word(self, attribute: str, base: int):
        def read(address: int) -> int:
            return (getattr(self, attribute) >> ((address - base) * 8)) & 0xFF

        return read

    def _write_interval(self, address: int, value: int) -> None:
        shift = (address - 0xF020) * 8
        interval = self.data_interval & ~(0xFF << shift) & 0xFFFF
        interval |= value << shift
        self.data_interval = interval or 1

    def _write_counter(self, address: int, value: int) -> None:
        self.data_counter = 0

    def _read_control(self, address: int) -> int:
        return self.data_control & 0x01

    def _write_control(self, address: int, value: int) -> None:
        self.data_control = value & 0x01
        self.raise_required = False
        self.timer_skipped = False

    def _read_f024(self, address: int) -> int:
        return self.data_f024

    def _write_f024(self, address: int, value: int) -> None:
        self.data_f024 = value

    def initialise(self) -> None:
        self.real_hardware = bool(self.machine.model_value("real_hardware"))
        self.timer_skipped = False
        bus = self.machine.bus
        bus.add_region(Region(0xF020, 2, "Timer/Interval", self._read_word("data_interval", 0xF020), self._write_interval))
        bus.add_region(Region(0xF022, 2, "Timer/Counter", self._read_word("data_counter", 0xF022), self._write_counter))
        bus.add_region(Region(0xF025, 1, "Timer/Control", self._read_control, self._write_control))
        bus.add_region(Region(0xF024, 1, "Timer/Unknown/F024*1", self._read_f024, self._write_f024))

    def reset(self) -> None:
        self.ext_to_int_counter = 0
        self.ext_to_int_next = 0
        self.ext_to_int_int_done = 0
        self.divide_ticks()
        self.raise_required = False
        self.timer_skipped = False
        self.data_control = 0

    def tick(self) -> None:
        if self.ext_to_int_counter == self.ext_to_int_next:
            self.divide_ticks()
        self.ext_to_int_counter += 1
        if self.raise_required:
            self.interrupt_source.try_raise()

    def tick_after_interrupts(self) -> None:
        if self.raise_required and self.interrupt_source.success:
            self.raise_required = False
            self.timer_skipped = False

    def _check_emulator_keyboard(self) -> None:
        bus = self.machine.bus
        ready = bus.read(0x088E00)
        if ready == 8:
            self.timer_skipped = True
            if bus.read(0x088E01) == 4 and bus.read(0x088E02) == 16:
                bus.write(0x088E00, 1)
            else:
                bus.write(0x088E00, 0)
        elif ready == 4:
            self.timer_skipped = True

    def divide_ticks(self) -> None:
        """Advance the timer by one internal clock step."""
        machine = self.machine
        if (
            machine.hardware_id is HardwareId.CLASSWIZ_II
            and not self.real_hardware
            and not machine.running
        ):
            self._check_emulator_keyboard()

        self.ext_to_int_int_done += 1
        if self.ext_to_int_int_done == EXT_TO_INT_FREQUENCY:
            self.ext_to_int_int_done = 0
            self.ext_to_int_counter = 0
        self.ext_to_int_next = (
            machine.cycles_per_second * (self.ext_to_int_int_done + 1) // EXT_TO_INT_FREQUENCY
        )

        if self.data_control & 0x01:
            limit = 1 if self.timer_skipped else self.data_interval
            if self.data_counter == limit:
                self.data_counter = 0
                if self.interrupt_source.enabled:
                    self.raise_required = True
            self.data_counter = (self.data_counter + 1) & 0xFFFF