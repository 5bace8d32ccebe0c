# wizperiph

Models of the memory-mapped peripherals found in scientific calculator
chipsets of the ES Plus, ClassWiz and ClassWiz II generations, written as
plain Python objects that plug into a small address bus.

## Modules

| Module | Contents |
| --- | --- |
| `wizperiph.peripheral` | `HardwareId`, `Region`, `Bus`, `BusError`, `InterruptLine`, `Machine` and the `Peripheral` base class |
| `wizperiph.bcdcalc` | `BCDCalc`, the BCD arithmetic unit, with `calc_addr` and `bcd_calculate` |
| `wizperiph.standby` | `StandbyControl`: halt, stop and (ClassWiz II) shutdown sequences |
| `wizperiph.keyboard` | `Keyboard`, `Button`, `ButtonType`: key matrix scanning with ghosting |
| `wizperiph.timer` | `Timer`: the interval timer and its interrupt request |
| `wizperiph.misc` | `Miscellaneous`: the DSR register, scratch registers and the ClassWiz II battery register |
| `wizperiph.screen` | `Screen`, `SpriteBitmap`, `DrawCommand`, `create_screen` |
| `wizperiph.romwindow` | `ROMWindow`: read-only windows onto the ROM image |
| `wizperiph.battery_ram` | `BatteryBackedRAM`: RAM that can be loaded from and saved to an image file |
| `wizperiph.utils` | `parse_colored_spans`, `MarkedSpan`, `SpansConfigError`, `mtime_ms` |
| `wizperiph.app` | `parse_arguments`, `join_path`, `run_pick_command`, `pick_directory`, `PickError`, `SpansWatcher` |

## How the pieces fit

A `Machine` holds the `HardwareId`, a `Bus`, a `model` dictionary of model
settings, an `argv` dictionary of options, the `rom` bytes and the
`cycles_per_second` clock rate. Each peripheral is constructed with the
machine, maps its registers onto the bus as `Region` objects in
`initialise()`, and is then driven by `reset()`, `tick()`,
`tick_after_interrupts()` and `frame()`. `Machine.reset()` resets every
peripheral listed in `machine.peripherals`.

Reading an unmapped bus address returns 0 and writing one is ignored.
Overlapping regions, and reads or writes through a `Region` at an address
outside it, raise `BusError`. Byte values outside 0–255 raise `ValueError`.

Peripherals request interrupts through an `InterruptLine`: `try_raise()`
marks it pending if it is enabled, and `acknowledge()` services it and sets
`success`.

```python
from wizperiph.peripheral import HardwareId, Machine
from wizperiph.timer import Timer

machine = Machine(HardwareId.CLASSWIZ, model={"real_hardware": True})
timer = Timer(machine)
timer.initialise()
timer.reset()
machine.bus.write(0xF020, 3)   # interval
machine.bus.write(0xF025, 1)   # start
```

### Model settings and options read by the peripherals

- `Keyboard`: `real_hardware`, `button_map` (a list of
  `[x, y, w, h, code, key_name]` entries) and, when `real_hardware` is false,
  `pd_value`. Keys are pressed by name with `press_key()`, by position with
  `press_at()`, and released with `release_all()`.
- `Screen`: one entry per sprite name (such as `rsd_pixel`, `rsd_s`), each a
  `(src, dest)` pair of rectangles or a dict with `src` and `dest`, and
  `ink_colour`.
- `Timer` and `BatteryBackedRAM`: `real_hardware`.
- `ROMWindow`: the `strict_memory` option makes ROM writes call
  `Machine.memory_error()`, which raises `BusError`; otherwise they are ignored.
- `BatteryBackedRAM`: the `ram` option names an image file that is loaded in
  `initialise()` (unless `clean_ram` is set) and saved in `uninitialise()`
  (unless `preserve_ram` is set). File errors are logged, not raised.

## BCD helpers

```python
from wizperiph.bcdcalc import bcd_calculate, calc_addr

calc_addr(0, 4)                       # 0xF484
bcd_calculate(0, 0x1234, 0x5678, 0)   # 0x6912
```

`bcd_calculate` adds (flag 0) or subtracts (flag 1) two four-digit packed
BCD values with a carry in; bit 16 of the result is the carry out.

## Memory span files

A span file lists memory ranges to highlight, one per line:

```
# start,end-or-length,colour[,description]
D000,0xD0FF,FF0000,stack
E000,256,80FF0000,buffer
```

The start is hexadecimal. The second field is an inclusive end address when
it begins with `0x`, and a decimal length otherwise. The colour is `RRGGBB`
or `AARRGGBB`; an alpha of zero (or a six-digit colour) becomes 50. Lines
starting with `#` and lines with fewer than three fields are skipped. Each
span comes back as a `MarkedSpan(start, length, color, desc)` with `color`
as `(r, g, b, a)`.

```python
from wizperiph.utils import parse_colored_spans

for span in parse_colored_spans("mem-spans.txt"):
    print(span)
```

A file that cannot be opened raises `SpansConfigError`. `SpansWatcher(path,
on_update, interval=1.0)` calls `on_update` with the parsed spans whenever
the file's `mtime_ms` changes, and with an empty list while the file is
missing. Use `poll()` to check once, `start()`/`stop()` to run it on a
background thread, or use it as a context manager.

## Command-line and picker helpers

`parse_arguments(argv)` turns `key=value` arguments, and bare arguments
taken as `model`, into a dictionary (the first value for a key wins) and
reports whether a model was given. `pick_directory(title)` asks `zenity`,
then `kdialog`, for a directory through the shell and raises `PickError`
when no display is available, the selection is empty or the pickers fail.

## What this package does not do

There is no CPU core, no instruction execution and no program to run: the
package has no command-line entry point. Nothing is drawn to a window —
`Screen.frame()` returns `DrawCommand` blits and `Keyboard.frame()` returns
overlay rectangles for a caller to render. Model settings are supplied as a
Python dictionary; the package does not read model description files.