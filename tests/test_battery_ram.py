from wizperiph.battery_ram import BatteryBackedRAM
from wizperiph.peripheral import HardwareId, Machine


def make_ram(tmp_path, hw=HardwareId.ES_PLUS, real=True, extra_argv=None, image=None):
    path = tmp_path / "ram.bin"
    if image is not None:
        path.write_bytes(image)
    argv = {"ram": str(path)}
    argv.update(extra_argv or {})
    machine = Machine(hardware_id=hw, model={"real_hardware": real}, argv=argv)
    ram = BatteryBackedRAM(machine)
    ram.initialise()
    return machine, ram, path


def test_read_write_through_bus(tmp_path):
    machine, ram, _ = make_ram(tmp_path)
    machine.bus.write(0x8010, 0x5A)
    assert machine.bus.read(0x8010) == 0x5A
    assert ram.ram[0x10] == 0x5A


def test_saves_image_on_uninitialise(tmp_path):
    machine, ram, path = make_ram(tmp_path)
    machine.bus.write(0x8000, 0x12)
    ram.uninitialise()
    data = path.read_bytes()
    assert len(data) == 0xE00
    assert data[0] == 0x12


def test_image_round_trip(tmp_path):
    machine, ram, _ = make_ram(tmp_path)
    machine.bus.write(0x8123, 0x77)
    ram.uninitialise()
    machine2, _, _ = make_ram(tmp_path)
    assert machine2.bus.read(0x8123) == 0x77


def test_clean_ram_skips_loading(tmp_path):
    image = bytes([0xAB]) * 0xE00
    machine, _, _ = make_ram(tmp_path, extra_argv={"clean_ram": ""}, image=image)
    assert machine.bus.read(0x8000) == 0


def test_preserve_ram_skips_saving(tmp_path):
    image = bytes([0xAB]) * 0xE00
    machine, ram, path = make_ram(tmp_path, extra_argv={"preserve_ram": ""}, image=image)
    machine.bus.write(0x8000, 0x01)
    ram.uninitialise()
    assert path.read_bytes() == image


def test_missing_image_leaves_zeroed_ram(tmp_path):
    machine, ram, _ = make_ram(tmp_path)
    assert machine.bus.read(0x8000) == 0
    assert ram.ram == bytearray(0xE00)


def test_short_image_partially_loaded(tmp_path):
    machine, ram, _ = make_ram(tmp_path, image=b"\x01\x02")
    assert machine.bus.read(0x8000) == 1
    assert machine.bus.read(0x8001) == 2
    assert machine.bus.read(0x8002) == 0


def test_extra_block_for_emulator_models(tmp_path):
    machine, ram, path = make_ram(tmp_path, real=False)
    assert len(ram.ram) == 0xE00 + 0x100
    machine.bus.write(0x9800, 0x42)
    assert ram.ram[0xE00] == 0x42
    ram.uninitialise()
    assert len(path.read_bytes()) == 0xF00


def test_classwiz_ii_region(tmp_path):
    machine, ram, _ = make_ram(tmp_path, hw=HardwareId.CLASSWIZ_II, real=False)
    machine.bus.write(0x9000, 0x33)
    machine.bus.write(0x89800, 0x44)
    assert ram.ram[0] == 0x33
    assert ram.ram[-0x100] == 0x44


def test_no_ram_option_does_not_save(tmp_path):
    machine = Machine(hardware_id=HardwareId.CLASSWIZ, model={"real_hardware": True})
    ram = BatteryBackedRAM(machine)
    ram.initialise()
    machine.bus.write(0xD000, 9)
    ram.uninitialise()
    assert ram.ram_file_requested is False
    assert list(tmp_path.iterdir()) == []