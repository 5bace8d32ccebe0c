import pytest

from wizperiph.peripheral import (
    Bus,
    BusError,
    HardwareId,
    InterruptLine,
    Machine,
    Peripheral,
    Region,
)


def _memory_region(base, size, name="mem"):
    store = bytearray(size)

    def reader(address):
        return store[address - base]

    def writer(address, value):
        store[address - base] = value

    return Region(base, size, name, reader, writer), store


def test_region_read_write_uses_absolute_addresses():
    region, store = _memory_region(0xF400, 4)
    region.write(0xF402, 0x5A)
    assert store[2] == 0x5A
    assert region.read(0xF402) == 0x5A


def test_region_rejects_outside_address():
    region, _ = _memory_region(0x100, 2)
    with pytest.raises(BusError):
        region.read(0x102)


def test_region_rejects_large_value():
    region, _ = _memory_region(0x100, 2)
    with pytest.raises(ValueError):
        region.write(0x100, 256)


def test_bus_routes_to_region():
    bus = Bus()
    first, first_store = _memory_region(0x0, 0x10, "a")
    second, second_store = _memory_region(0x10, 0x10, "b")
    bus.add_region(second)
    bus.add_region(first)
    bus.write(0x12, 7)
    bus.write(0x0F, 9)
    assert second_store[2] == 7
    assert first_store[15] == 9
    assert bus.read(0x12) == 7
    assert [r.description for r in bus.regions] == ["a", "b"]


def test_bus_overlap_raises():
    bus = Bus()
    bus.add_region(_memory_region(0x100, 0x10)[0])
    with pytest.raises(BusError):
        bus.add_region(_memory_region(0x108, 0x10)[0])
    with pytest.raises(BusError):
        bus.add_region(_memory_region(0xF8, 0x10)[0])


def test_bus_unmapped_access():
    bus = Bus()
    assert bus.read(0x1234) == 0
    bus.write(0x1234, 1)
    assert bus.read(0x1234) == 0


def test_interrupt_line_requires_enable():
    line = InterruptLine(5)
    assert line.try_raise() is False
    assert line.pending is False
    line.enabled = True
    assert line.try_raise() is True
    assert line.acknowledge() is True
    assert line.success is True
    assert line.acknowledge() is False


class _Counting(Peripheral):
    def __init__(self, machine):
        super().__init__(machine)
        self.resets = 0

    def reset(self):
        self.resets += 1


def test_machine_reset_resets_peripherals_and_state():
    machine = Machine(HardwareId.CLASSWIZ)
    device = _Counting(machine)
    machine.peripherals.append(device)
    machine.halt()
    assert machine.running is False
    machine.reset()
    assert device.resets == 1
    assert machine.running is True
    machine.stop()
    assert machine.stopped is True


def test_machine_memory_error_and_model_lookup():
    machine = Machine(HardwareId.ES_PLUS, model={"real_hardware": True})
    assert machine.model_value("real_hardware") is True
    with pytest.raises(KeyError):
        machine.model_value("pd_value")
    with pytest.raises(BusError):
        machine.memory_error()


def test_peripheral_frame_clears_flag():
    device = Peripheral(Machine(HardwareId.CLASSWIZ_II))
    device.require_frame = True
    device.frame()
    assert device.require_frame is False