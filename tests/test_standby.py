import pytest

from wizperiph.peripheral import HardwareId, Machine, Region
from wizperiph.standby import StandbyControl


def make(hardware=HardwareId.CLASSWIZ):
    machine = Machine(hardware)
    control = StandbyControl(machine)
    control.initialise()
    control.reset()
    return machine, control


def test_registers_read_zero():
    machine, _ = make()
    machine.bus.write(0xF008, 0x55)
    assert machine.bus.read(0xF008) == 0
    assert machine.bus.read(0xF009) == 0


def test_sbycon_bit0_halts():
    machine, _ = make()
    machine.bus.write(0xF009, 0x01)
    assert machine.halted is True
    assert machine.stopped is False


def test_stop_requires_handshake():
    machine, _ = make()
    machine.bus.write(0xF009, 0x02)
    assert machine.stopped is False


def test_stop_after_handshake():
    machine, control = make()
    machine.bus.write(0xF008, 0x50)
    machine.bus.write(0xF008, 0xA0)
    assert control.stop_acceptor_enabled is True
    machine.bus.write(0xF009, 0x02)
    assert machine.stopped is True
    assert control.stop_acceptor_enabled is False


def test_handshake_in_wrong_order_is_rejected():
    machine, control = make()
    machine.bus.write(0xF008, 0xA0)
    machine.bus.write(0xF008, 0x50)
    assert control.stop_acceptor_enabled is False
    machine.bus.write(0xF009, 0x02)
    assert machine.stopped is False


def test_stop_acceptor_is_single_use():
    machine, _ = make()
    machine.bus.write(0xF008, 0x5F)
    machine.bus.write(0xF008, 0xAF)
    machine.bus.write(0xF009, 0x02)
    machine.stopped = False
    machine.bus.write(0xF009, 0x02)
    assert machine.stopped is False


def test_halt_takes_priority_over_stop():
    machine, control = make()
    machine.bus.write(0xF008, 0x50)
    machine.bus.write(0xF008, 0xA0)
    machine.bus.write(0xF009, 0x03)
    assert machine.halted is True
    assert machine.stopped is False
    assert control.stop_acceptor_enabled is True


def test_reset_clears_acceptors():
    machine, control = make()
    machine.bus.write(0xF008, 0x50)
    machine.bus.write(0xF008, 0xA0)
    control.reset()
    assert control.stop_acceptor_enabled is False
    assert control.stpacp_last == 0


@pytest.mark.parametrize("hardware", [HardwareId.ES_PLUS, HardwareId.CLASSWIZ])
def test_shutdown_register_only_on_classwiz_ii(hardware):
    machine, _ = make(hardware)
    assert machine.bus.find(0xF312) is None


def test_shutdown_sequence_on_classwiz_ii():
    machine, control = make(HardwareId.CLASSWIZ_II)
    writes = []
    machine.bus.add_region(
        Region(0xF031, 1, "mode", lambda address: 0, lambda address, value: writes.append(value))
    )
    machine.bus.write(0xF312, 0x5A)
    machine.bus.write(0xF312, 0x3C)
    assert control.shutdown_acceptor_enabled is True
    assert machine.stopped is False
    machine.bus.write(0xF312, 0x00)
    assert writes == [0x03]
    assert machine.stopped is True
    assert control.shutdown_acceptor_enabled is False


def test_shutdown_needs_unlock():
    machine, _ = make(HardwareId.CLASSWIZ_II)
    machine.bus.write(0xF312, 0x3C)
    machine.bus.write(0xF312, 0x00)
    assert machine.stopped is False