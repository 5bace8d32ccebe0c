"""Key matrix scanner with ghosting, plus the emulator-style key interface."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Sequence

from .peripheral import HardwareId, InterruptLine, Machine, Peripheral, Region

BUTTON_COUNT = 64
POWER_CODE = 0xFF
POWER_INDEX = 63
KEYBOARD_INTERRUPT = 5
_OUT_MASK = 0x03FF

_EMU_OFFSETS = {
    HardwareId.ES_PLUS: 0,
    HardwareId.CLASSWIZ: 0x40000,
    HardwareId.CLASSWIZ_II: 0x80000,
}

PRESSED_COLOUR = (0, 0, 0, 127)
STUCK_COLOUR = (127, 0, 0, 127)


class ButtonType(enum.Enum):
    NONE = 0
    BUTTON = 1
    POWER = 2


@dataclass
class Button:
    """One key of the matrix with its on-screen rectangle (x, y, w, h)."""

    type: ButtonType = ButtonType.NONE
    rect: tuple[int, int, int, int] = (0, 0, 0, 0)
    ko_bit: int = 0
    ki_bit: int = 0
    pressed: bool = False
    stuck: bool = False

    def contains(self, x: int, y: int) -> bool:
        left, top, width, height = self.rect
        return left <= x < left + width and top <= y < top + height


def _button_index(code: int) -> int:
    if code == POWER_CODE:
        return POWER_INDEX
    return ((code >> 1) & 0x38) | (code & 0x07)


class Keyboard(Peripheral):
    """Keyboard peripheral: KO/KI registers at 0xF040-0xF047."""

    def __init__(self, machine: Machine) -> None:
        super().__init__(machine)
        self.buttons = [Button() for _ in range(BUTTON_COUNT)]
        self.keyboard_map: dict[str, int] = {}
        self.keyboard_out = 0
        self.keyboard_out_mask = 0
        self.keyboard_in = 0xFF
        self.input_filter = 0
        self.keyboard_ghost = [0] * 8
        self.real_hardware = True
        self.keyboard_ready_emu = 0
        self.keyboard_in_emu = 0
        self.keyboard_out_emu = 0
        self.keyboard_pd_emu = 0
        self.has_input = 0
        self.interrupt_source = InterruptLine(KEYBOARD_INTERRUPT)
        self.p0 = False
        self.p1 = False
        self.p146 = False

    # -- bus mapping -------------------------------------------------------

    def _map_byte(self, base: int, name: str, attribute: str, writable: bool) -> None:
        def read(address: int) -> int:
            return getattr(self, attribute) & 0xFF

        def write(address: int, value: int) -> None:
            if writable:
                setattr(self, attribute, value)

        self.machine.bus.add_region(Region(base, 1, name, read, write))

    def _map_out_register(self, base: int, name: str, attribute: str) -> None:
        def read(address: int) -> int:
            shift = (address - base) * 8
            return ((getattr(self, attribute) & _OUT_MASK) >> shift) & 0xFF

        def write(address: int, value: int) -> None:
            offset = address - base
            shift = offset * 8
            current = getattr(self, attribute)
            current &= ~(0xFF << shift)
            current |= value << shift
            setattr(self, attribute, current & _OUT_MASK)
            if offset == 0:
                self.recalculate_ki()

        self.machine.bus.add_region(Region(base, 2, name, read, write))

    def _load_button_map(self, entries: Sequence[Sequence[Any]]) -> None:
        for button in self.buttons:
            button.type = ButtonType.NONE
        self.keyboard_map.clear()

        for number, entry in enumerate(entries, start=1):
            if not isinstance(entry, (list, tuple)) or len(entry) < 6:
                raise TypeError(f"button_map[{number}] is not a six-element sequence")
            key_name = entry[5]
            if not isinstance(key_name, str):
                raise TypeError(f"button_map[{number}][6] is not a string")
            if "\0" in key_name:
                raise ValueError(f"key name {key_name!r} contains null byte")
            numbers = entry[:5]
            for position, item in enumerate(numbers, start=1):
                if isinstance(item, bool) or not isinstance(item, int):
                    raise TypeError(f"button_map[{number}][{position}] is not a number")

            x, y, width, height, raw_code = numbers
            code = raw_code & 0xFF
            index = _button_index(code)

            if key_name:
                if key_name in self.keyboard_map:
                    raise ValueError(f"key {key_name!r} is used twice")
                self.keyboard_map[key_name] = index

            button = self.buttons[index]
            button.type = ButtonType.POWER if code == POWER_CODE else ButtonType.BUTTON
            button.rect = (x, y, width, height)
            button.ko_bit = (1 << ((code >> 4) & 0xF)) & 0xFF
            button.ki_bit = (1 << (code & 0xF)) & 0xFF
            button.pressed = False
            button.stuck = False

    def initialise(self) -> None:
        self.require_frame = True
        self.real_hardware = bool(self.machine.model_value("real_hardware"))

        self._map_byte(0xF040, "Keyboard/KI", "keyboard_in", writable=False)
        self._map_byte(0xF042, "Keyboard/InputFilter", "input_filter", writable=True)
        self._map_out_register(0xF044, "Keyboard/KOMask", "keyboard_out_mask")
        self._map_out_register(0xF046, "Keyboard/KO", "keyboard_out")

        if not self.real_hardware:
            self.keyboard_pd_emu = self.machine.model_value("pd_value") & 0xFF
            offset = _EMU_OFFSETS[self.machine.hardware_id]
            self._map_byte(offset + 0x8E00, "Keyboard/ReadyStatusEmulator", "keyboard_ready_emu", True)
            self._map_byte(offset + 0x8E01, "Keyboard/KIEmulator", "keyboard_in_emu", False)
            self._map_byte(offset + 0x8E02, "Keyboard/KOEmulator", "keyboard_out_emu", False)
            self._map_byte(0xF050, "Keyboard/PdValue", "keyboard_pd_emu", False)

        button_map = self.machine.model_value("button_map")
        if not isinstance(button_map, (list, tuple)):
            raise TypeError("key 'button_map' is not a sequence")
        self._load_button_map(button_map)

    # -- lifecycle ---------------------------------------------------------

    def reset(self) -> None:
        self.p0 = False
        self.p1 = False
        self.p146 = False
        self.keyboard_out = 0
        self.keyboard_out_mask = 0
        if not self.real_hardware:
            self.keyboard_in_emu = 0
            self.keyboard_out_emu = 0
        self.recalculate_ghost()

    def tick(self) -> None:
        if self.has_input and self.interrupt_source.enabled:
            self.interrupt_source.try_raise()

    def frame(self) -> list[tuple[tuple[int, int, int, int], tuple[int, int, int, int]]]:
        """Return the overlay rectangles and colours for pressed buttons."""
        self.require_frame = False
        return [
            (button.rect, STUCK_COLOUR if button.stuck else PRESSED_COLOUR)
            for button in self.buttons
            if button.type is not ButtonType.NONE and button.pressed
        ]

    # -- input -------------------------------------------------------------

    def press_key(self, key: str) -> bool:
        """Press the button bound to a key name; returns whether the key is bound."""
        index = self.keyboard_map.get(key)
        if index is None:
            return False
        self.press_button(self.buttons[index], False)
        return True

    def press_button(self, button: Button, stick: bool) -> None:
        old_pressed = button.pressed
        if stick:
            button.stuck = not button.stuck
            button.pressed = button.stuck
        else:
            button.pressed = True

        self.require_frame = True

        if button.type is ButtonType.POWER and button.pressed and not old_pressed:
            self.machine.reset()
        if button.type is ButtonType.BUTTON and button.pressed != old_pressed:
            if self.real_hardware:
                self.recalculate_ghost()
            elif button.pressed:
                self.keyboard_in_emu = button.ki_bit
                self.has_input = button.ki_bit
                self.keyboard_out_emu = button.ko_bit
            else:
                self.has_input = self.keyboard_in_emu = self.keyboard_out_emu = 0

    def press_at(self, x: int, y: int, stick: bool) -> None:
        button = next((b for b in self.buttons if b.contains(x, y)), None)
        if button is not None:
            self.press_button(button, stick)

    def release_all(self) -> None:
        had_effect = False
        for button in self.buttons:
            if not button.stuck and button.pressed:
                button.pressed = False
                if button.type is ButtonType.BUTTON:
                    had_effect = True
        if had_effect:
            self.require_frame = True
            if self.real_hardware:
                self.recalculate_ghost()
            else:
                self.has_input = self.keyboard_in_emu = self.keyboard_out_emu = 0

    # -- matrix ------------------------------------------------------------

    def _is_down(self, button: Button) -> bool:
        return button.type is ButtonType.BUTTON and button.pressed

    def recalculate_ghost(self) -> None:
        """Work out which KO lines are shorted together by held keys."""
        self.has_input = 0
        for button in self.buttons:
            if self._is_down(button) and button.ki_bit & self.input_filter:
                self.has_input |= button.ki_bit

        connections = [0] * 8
        for column in range(8):
            for row in range(8):
                if self._is_down(self.buttons[column * 8 + row]):
                    for other in range(8):
                        if self._is_down(self.buttons[other * 8 + row]):
                            connections[column] |= 1 << other

        seen = [False] * 8
        for column in range(8):
            if seen[column]:
                continue
            seen[column] = True
            to_visit = 1 << column
            ghost_mask = 1 << column
            while to_visit:
                new_to_visit = 0
                for visiting in range(8):
                    if not to_visit & (1 << visiting):
                        continue
                    for sibling in range(8):
                        if connections[visiting] & (1 << sibling) and not seen[sibling]:
                            new_to_visit |= 1 << sibling
                            ghost_mask |= 1 << sibling
                            seen[sibling] = True
                to_visit = new_to_visit
            for member in range(8):
                if ghost_mask & (1 << member):
                    self.keyboard_ghost[member] = ghost_mask

        self.recalculate_ki()

    def recalculate_ki(self) -> None:
        """Recompute the KI input byte from KO, its mask and the held keys."""
        active = self.keyboard_out & ~self.keyboard_out_mask
        ghosted = 0
        for line in range(7):
            if active & (1 << line):
                ghosted |= self.keyboard_ghost[line]

        keyboard_in = 0xFF
        for button in self.buttons:
            if self._is_down(button) and button.ko_bit & ghosted:
                keyboard_in &= ~button.ki_bit & 0xFF

        if (active & (1 << 7) and self.p0) or (active & (1 << 8) and self.p1) or (
            active & (1 << 9) and self.p146
        ):
            keyboard_in &= 0x7F
        self.keyboard_in = keyboard_in