"""LCD controller: display buffer, contrast/mode registers and frame rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .peripheral import HardwareId, Machine, Peripheral, Region

Rect = tuple[int, int, int, int]

BUFFER_BASE = 0xF800
BUFFER1_BASE = 0x89000
SPR_PIXEL = 0


@dataclass(frozen=True)
class SpriteBitmap:
    """A status-bar indicator: the buffer byte and bit that light it."""

    name: str
    mask: int
    offset: int


@dataclass(frozen=True)
class DrawCommand:
    """One textured blit: copy `src` of the interface image to `dest`."""

    src: Rect
    dest: Rect
    alpha: int
    colour: tuple[int, int, int]


@dataclass(frozen=True)
class ScreenLayout:
    """Geometry of the display buffer for one hardware family."""

    rows: int
    row_size: int
    offset: int
    row_size_disp: int


@dataclass(frozen=True)
class _SpriteInfo:
    src: Rect
    dest: Rect


LAYOUTS = {
    HardwareId.CLASSWIZ_II: ScreenLayout(rows=63, row_size=32, offset=32, row_size_disp=24),
    HardwareId.CLASSWIZ: ScreenLayout(rows=63, row_size=32, offset=32, row_size_disp=24),
    HardwareId.ES_PLUS: ScreenLayout(rows=31, row_size=16, offset=16, row_size_disp=12),
}

SPRITE_BITMAPS: dict[HardwareId, tuple[SpriteBitmap, ...]] = {
    HardwareId.CLASSWIZ_II: (
        SpriteBitmap("rsd_pixel", 0, 0),
        SpriteBitmap("rsd_s", 0x01, 0x01),
        SpriteBitmap("rsd_math", 0x01, 0x03),
        SpriteBitmap("rsd_d", 0x01, 0x04),
        SpriteBitmap("rsd_r", 0x01, 0x05),
        SpriteBitmap("rsd_g", 0x01, 0x06),
        SpriteBitmap("rsd_fix", 0x01, 0x07),
        SpriteBitmap("rsd_sci", 0x01, 0x08),
        SpriteBitmap("rsd_e", 0x01, 0x0A),
        SpriteBitmap("rsd_cmplx", 0x01, 0x0B),
        SpriteBitmap("rsd_angle", 0x01, 0x0C),
        SpriteBitmap("rsd_wdown", 0x01, 0x0D),
        SpriteBitmap("rsd_verify", 0x01, 0x0E),
        SpriteBitmap("rsd_left", 0x01, 0x10),
        SpriteBitmap("rsd_down", 0x01, 0x11),
        SpriteBitmap("rsd_up", 0x01, 0x12),
        SpriteBitmap("rsd_right", 0x01, 0x13),
        SpriteBitmap("rsd_pause", 0x01, 0x15),
        SpriteBitmap("rsd_sun", 0x01, 0x16),
    ),
    HardwareId.CLASSWIZ: (
        SpriteBitmap("rsd_pixel", 0, 0),
        SpriteBitmap("rsd_s", 0x01, 0x00),
        SpriteBitmap("rsd_a", 0x01, 0x01),
        SpriteBitmap("rsd_m", 0x01, 0x02),
        SpriteBitmap("rsd_sto", 0x01, 0x03),
        SpriteBitmap("rsd_math", 0x01, 0x05),
        SpriteBitmap("rsd_d", 0x01, 0x06),
        SpriteBitmap("rsd_r", 0x01, 0x07),
        SpriteBitmap("rsd_g", 0x01, 0x08),
        SpriteBitmap("rsd_fix", 0x01, 0x09),
        SpriteBitmap("rsd_sci", 0x01, 0x0A),
        SpriteBitmap("rsd_e", 0x01, 0x0B),
        SpriteBitmap("rsd_cmplx", 0x01, 0x0C),
        SpriteBitmap("rsd_angle", 0x01, 0x0D),
        SpriteBitmap("rsd_wdown", 0x01, 0x0F),
        SpriteBitmap("rsd_left", 0x01, 0x10),
        SpriteBitmap("rsd_down", 0x01, 0x11),
        SpriteBitmap("rsd_up", 0x01, 0x12),
        SpriteBitmap("rsd_right", 0x01, 0x13),
        SpriteBitmap("rsd_pause", 0x01, 0x15),
        SpriteBitmap("rsd_sun", 0x01, 0x16),
    ),
    HardwareId.ES_PLUS: (
        SpriteBitmap("rsd_pixel", 0, 0),
        SpriteBitmap("rsd_s", 0x10, 0x00),
        SpriteBitmap("rsd_a", 0x04, 0x00),
        SpriteBitmap("rsd_m", 0x10, 0x01),
        SpriteBitmap("rsd_sto", 0x02, 0x01),
        SpriteBitmap("rsd_rcl", 0x40, 0x02),
        SpriteBitmap("rsd_stat", 0x40, 0x03),
        SpriteBitmap("rsd_cmplx", 0x80, 0x04),
        SpriteBitmap("rsd_mat", 0x40, 0x05),
        SpriteBitmap("rsd_vct", 0x01, 0x05),
        SpriteBitmap("rsd_d", 0x20, 0x07),
        SpriteBitmap("rsd_r", 0x02, 0x07),
        SpriteBitmap("rsd_g", 0x10, 0x08),
        SpriteBitmap("rsd_fix", 0x01, 0x08),
        SpriteBitmap("rsd_sci", 0x20, 0x09),
        SpriteBitmap("rsd_math", 0x40, 0x0A),
        SpriteBitmap("rsd_down", 0x08, 0x0A),
        SpriteBitmap("rsd_up", 0x80, 0x0B),
        SpriteBitmap("rsd_disp", 0x10, 0x0B),
    ),
}


def _as_rect(value: Any) -> Rect:
    x, y, w, h = value
    return (int(x), int(y), int(w), int(h))


def _sprite_info(value: Any) -> _SpriteInfo:
    if isinstance(value, dict):
        return _SpriteInfo(_as_rect(value["src"]), _as_rect(value["dest"]))
    src, dest = value
    return _SpriteInfo(_as_rect(src), _as_rect(dest))


class Screen(Peripheral):
    """Dot-matrix LCD with a status line of indicator sprites."""

    def __init__(self, machine: Machine) -> None:
        super().__init__(machine)
        try:
            self.layout = LAYOUTS[machine.hardware_id]
            self.sprite_bitmaps = SPRITE_BITMAPS[machine.hardware_id]
        except KeyError:
            raise ValueError(f"unknown hardware id: {machine.hardware_id!r}") from None
        self.screen_buffer = bytearray()
        self.screen_buffer1: bytearray | None = None
        self.screen_contrast = 0
        self.screen_mode = 0
        self.screen_range = 0
        self.sprite_info: list[_SpriteInfo] = []
        self.ink_colour: tuple[int, int, int] = (0, 0, 0)

    @property
    def _buffer_size(self) -> int:
        return (self.layout.rows + 1) * self.layout.row_size

    def _map_buffer(self, base: int, name: str, buffer: bytearray) -> None:
        row_size = self.layout.row_size
        row_size_disp = self.layout.row_size_disp

        def read(address: int) -> int:
            offset = address - base
            if offset % row_size >= row_size_disp:
                return 0
            return buffer[offset]

        def write(address: int, value: int) -> None:
            offset = address - base
            if offset % row_size >= row_size_disp:
                return
            if buffer[offset] != value:
                self.require_frame = True
            buffer[offset] = value

        self.machine.bus.add_region(Region(base, len(buffer), name, read, write))

    def _map_register(self, base: int, name: str, attribute: str, mask: int) -> None:
        def read(address: int) -> int:
            return getattr(self, attribute) & mask

        def write(address: int, value: int) -> None:
            new_value = value & mask
            if getattr(self, attribute) != new_value:
                self.require_frame = True
            setattr(self, attribute, new_value)

        self.machine.bus.add_region(Region(base, 1, name, read, write))

    def initialise(self) -> None:
        self.sprite_info = [
            _sprite_info(self.machine.model_value(bitmap.name)) for bitmap in self.sprite_bitmaps
        ]
        r, g, b = self.machine.model_value("ink_colour")[:3]
        self.ink_colour = (int(r), int(g), int(b))
        self.require_frame = True

        self.screen_buffer = bytearray(self._buffer_size)
        self._map_buffer(BUFFER_BASE, "Screen/Buffer", self.screen_buffer)
        if self.machine.hardware_id is HardwareId.CLASSWIZ_II:
            self.screen_buffer1 = bytearray(self._buffer_size)
            self._map_buffer(BUFFER1_BASE, "Screen/Buffer1", self.screen_buffer1)

        self._map_register(0xF030, "Screen/Range", "screen_range", 0x07)
        self._map_register(0xF031, "Screen/Mode", "screen_mode", 0x07)
        self._map_register(0xF032, "Screen/Contrast", "screen_contrast", 0x3F)

    def uninitialise(self) -> None:
        self.screen_buffer = bytearray()
        self.screen_buffer1 = None

    def frame(self) -> list[DrawCommand]:
        """Render the display into a list of blits; empty when the display is off."""
        self.require_frame = False

        ink_alpha_on = min(20 + self.screen_contrast * 16, 255)
        ink_alpha_off = max((self.screen_contrast - 8) * 7, 0)

        if self.screen_mode == 4:
            enable_dotmatrix, clear_dots, enable_status = True, True, False
        elif self.screen_mode == 5:
            enable_dotmatrix, clear_dots, enable_status = True, False, True
        elif self.screen_mode == 6:
            enable_dotmatrix, clear_dots, enable_status = True, True, True
            ink_alpha_on = 80
            ink_alpha_off = 20
        else:
            return []

        colour = self.ink_colour
        commands: list[DrawCommand] = []

        if enable_status:
            for bitmap, info in zip(self.sprite_bitmaps[SPR_PIXEL + 1 :], self.sprite_info[SPR_PIXEL + 1 :]):
                lit = self.screen_buffer[bitmap.offset] & bitmap.mask
                alpha = ink_alpha_on if lit else ink_alpha_off
                commands.append(DrawCommand(info.src, info.dest, alpha & 0xFF, colour))

        if enable_dotmatrix:
            commands.extend(self._dots(ink_alpha_on, ink_alpha_off, clear_dots, colour))
        return commands

    def _dots(self, alpha_on: int, alpha_off: int, clear_dots: bool, colour: tuple[int, int, int]) -> list[DrawCommand]:
        layout = self.layout
        pixel = self.sprite_info[SPR_PIXEL]
        src = pixel.src
        _, _, src_w, src_h = src
        dest_x0, dest_y0, dest_w, dest_h = pixel.dest
        second = self.screen_buffer1 if self.machine.hardware_id is HardwareId.CLASSWIZ_II else None
        diff = alpha_on - alpha_off

        commands: list[DrawCommand] = []
        for iy in range(layout.rows):
            y = dest_y0 + iy * src_h
            x = dest_x0
            row_start = iy * layout.row_size + layout.offset
            for ix in range(layout.row_size_disp):
                byte0 = self.screen_buffer[row_start + ix]
                byte1 = second[row_start + ix] if second is not None else 0
                for bit in range(7, -1, -1):
                    mask = 1 << bit
                    if second is not None:
                        alpha = alpha_off
                        if not clear_dots and byte0 & mask:
                            alpha = int(alpha + diff * 0.3)
                        if not clear_dots and byte1 & mask:
                            alpha = int(alpha + diff * 0.7)
                    elif not clear_dots and byte0 & mask:
                        alpha = alpha_on
                    else:
                        alpha = alpha_off
                    commands.append(DrawCommand(src, (x, y, dest_w, dest_h), alpha & 0xFF, colour))
                    x += src_w
        return commands


def create_screen(machine: Machine) -> Screen:
    """Build the screen peripheral matching the machine's hardware."""
    return Screen(machine)