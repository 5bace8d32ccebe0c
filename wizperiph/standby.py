"""Standby control: halt, stop and shutdown request registers."""

from __future__ import annotations

from .peripheral import HardwareId, Machine, Peripheral, Region


class StandbyControl(Peripheral):
    """Handles the STPACP/SBYCON handshake and the ClassWiz II shutdown register.

    All of its registers are write-only and read back as zero.
    """

    def __init__(self, machine: Machine) -> None:
        super().__init__(machine)
        self.stpacp_last = 0
        self.f312_last = 0
        self.stop_acceptor_enabled = False
        self.shutdown_acceptor_enabled = False

    def _write_stpacp(self, address: int, value: int) -> None:
        if (value & 0xF0) == 0xA0 and (self.stpacp_last & 0xF0) == 0x50:
            self.stop_acceptor_enabled = True
        self.stpacp_last = value

    def _write_sbycon(self, address: int, value: int) -> None:
        if value & 0x01:
            self.machine.halt()
            return
        if value & 0x02 and self.stop_acceptor_enabled:
            self.stop_acceptor_enabled = False
            self.machine.stop()

    def _write_f312(self, address: int, value: int) -> None:
        if value == 0x3C and self.f312_last == 0x5A:
            self.shutdown_acceptor_enabled = True
        self.f312_last = value
        if self.shutdown_acceptor_enabled and (value & 0xF0) == 0:
            self.machine.bus.write(0xF031, 0x03)
            self.machine.stop()
            self.shutdown_acceptor_enabled = False

    def initialise(self) -> None:
        bus = self.machine.bus
        bus.add_region(Region(0xF008, 1, "StandbyControl/STPACP", None, self._write_stpacp))
        bus.add_region(Region(0xF009, 1, "StandbyControl/SBYCON", None, self._write_sbycon))
        if self.machine.hardware_id is HardwareId.CLASSWIZ_II:
            bus.add_region(Region(0xF312, 1, "StandbyControl/F312", None, self._write_f312))

    def reset(self) -> None:
        self.stpacp_last = 0
        self.f312_last = 0
        self.stop_acceptor_enabled = False
        self.shutdown_acceptor_enabled = False