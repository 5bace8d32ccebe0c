import pytest

from wizperiph.peripheral import BusError, HardwareId, Machine
from wizperiph.romwindow import ROM_LAYOUTS, ROMWindow


def pattern_rom(size):
    return bytes((i * 7 + (i >> 8)) & 0xFF for i in range(size))


def make_window(hw=HardwareId.ES_PLUS, size=0x20000, argv=None):
    rom = pattern_rom(size)
    machine = Machine(hardware_id=hw, rom=rom, argv=argv or {})
    window = ROMWindow(machine)
    window.initialise()
    return machine, window, rom


def test_direct_segments_read_rom():
    machine, _, rom = make_window()
    assert machine.bus.read(0x0005) == rom[5]
    assert machine.bus.read(0x10010) == rom[0x10010]


def test_mirror_segment_reads_from_rom_start():
    machine, _, rom = make_window()
    assert machine.bus.read(0x80005) == rom[5]
    assert machine.bus.read(0x8FFFF) == rom[0xFFFF]


def test_region_descriptions_and_count():
    _, window, _ = make_window()
    assert [r.description for r in window.regions] == ["ROM/Segment0", "ROM/Segment1", "ROM/Segment8"]


def test_classwiz_layout():
    machine, window, rom = make_window(HardwareId.CLASSWIZ, size=0x40000)
    assert len(window.regions) == len(ROM_LAYOUTS[HardwareId.CLASSWIZ])
    assert machine.bus.read(0x50003) == rom[3]
    assert machine.bus.read(0x30001) == rom[0x30001]


def test_non_strict_write_ignored():
    machine, _, rom = make_window()
    machine.bus.write(0x0005, (rom[5] + 1) & 0xFF)
    assert machine.bus.read(0x0005) == rom[5]


def test_strict_write_raises():
    machine, _, _ = make_window(argv={"strict_memory": ""})
    with pytest.raises(BusError):
        machine.bus.write(0x0005, 1)


def test_short_rom_rejected():
    machine = Machine(hardware_id=HardwareId.ES_PLUS, rom=bytes(0x1000))
    with pytest.raises(BusError):
        ROMWindow(machine).initialise()