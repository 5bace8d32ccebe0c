"""Hardware BCD arithmetic unit found on ClassWiz-class chipsets."""

from __future__ import annotations

from .peripheral import Machine, Peripheral, Region

REGISTER_COUNT = 4
REGISTER_SIZE = 12
REGISTER_BASES = (0xF480, 0xF4A0, 0xF4C0, 0xF4E0)

# Number of bytes moved by a byte-wise shift, indexed by the shift type.
_BYTE_SHIFT_WIDTH = {1: 1, 2: 2, 3: 4}


def calc_addr(base: int, offset: int) -> int:
    """Bus address of byte `offset` in BCD register `base`."""
    return (((base + 0x7A4) << 5) + offset) & 0xFFFF


def bcd_calculate(carry: int, val1: int, val2: int, flag: int) -> int:
    """Add (flag 0) or subtract (flag 1) two 4-digit BCD words.

    Returns the 16-bit BCD result with the carry (or borrow) in bit 16.
    """
    subtract = flag == 1
    if subtract:
        carry ^= 0x01
    carry &= 0x01
    result = 0
    for digit in range(4):
        shift = digit * 4
        left = (val1 >> shift) & 0x0F
        right = (val2 >> shift) & 0x0F
        if subtract:
            right = (9 - right) & 0x0F
        total = left + right + carry
        carry = 0
        if total >= 0x0A:
            total -= 0x0A
            carry = 1
        result |= (total & 0x0F) << shift
    if subtract:
        carry ^= 0x01
    return (carry << 16) + result


class BCDCalc(Peripheral):
    """Multi-register BCD add/subtract/shift coprocessor mapped at 0xF400."""

    def __init__(self, machine: Machine) -> None:
        super().__init__(machine)
        self.registers = [bytearray(REGISTER_SIZE) for _ in range(REGISTER_COUNT)]
        self.data_f400 = 0xFF
        self.data_f402 = 0
        self.data_f404 = 0
        self.data_f405 = 0
        self.data_f410 = 0
        self.data_f414 = 0
        self.data_f415 = 0
        self.f400_write = False
        self.f402_write = False
        self.f404_write = False
        self.f405_write = False
        self.operator = 0
        self.type_1 = 0
        self.type_2 = 0
        self.param1 = 0
        self.param2 = 0
        self.param3 = 0
        self.param4 = 0
        self.f404_copy = 0
        self.mode = 0
        self.repeat_flag = 0
        self.data_a = 0
        self.data_b = 0
        self.data_c = 0
        self.data_d = 0
        self.f402_copy = 0

    # -- bus mapping -------------------------------------------------------

    def _map_buffer(self, base: int, name: str, buffer: bytearray) -> None:
        def read(address: int) -> int:
            return buffer[address - base]

        def write(address: int, value: int) -> None:
            buffer[address - base] = value

        self.machine.bus.add_region(Region(base, len(buffer), name, read, write))

    def _map_attribute(self, base: int, name: str, attribute: str, flag: str | None = None) -> None:
        def read(address: int) -> int:
            return getattr(self, attribute)

        def write(address: int, value: int) -> None:
            setattr(self, attribute, value)
            if flag is not None:
                setattr(self, flag, True)

        self.machine.bus.add_region(Region(base, 1, name, read, write))

    def initialise(self) -> None:
        self.f400_write = False
        self.f402_write = False
        self.f404_write = False
        self.f405_write = False

        self._map_attribute(0xF400, "BCDCalc/control", "data_f400", "f400_write")
        names = ("param1", "param2", "temp1", "temp2")
        for base, name, buffer in zip(REGISTER_BASES, names, self.registers):
            self._map_buffer(base, f"BCDCalc/{name}", buffer)
        self._map_attribute(0xF410, "BCDCalc/F410", "data_f410")
        self._map_attribute(0xF414, "BCDCalc/F414", "data_f414")
        self._map_attribute(0xF415, "BCDCalc/F415", "data_f415")
        self._map_attribute(0xF402, "BCDCalc/F402", "data_f402", "f402_write")

    def reset(self) -> None:
        self.f400_write = False
        self.f402_write = False
        self.f404_write = False
        self.f405_write = False
        self.data_f400 = 0xFF
        self.data_f402 = 0
        self.f402_copy = 0
        self.data_f404 = 0
        self.data_f405 = 0

    # -- memory helpers ----------------------------------------------------

    def _read(self, register: int, offset: int) -> int:
        return self.machine.bus.read(calc_addr(register, offset))

    def _write(self, register: int, offset: int, value: int) -> None:
        self.machine.bus.write(calc_addr(register, offset), value & 0xFF)

    def _read_word(self, register: int, offset: int) -> int:
        address = calc_addr(register, offset)
        bus = self.machine.bus
        return bus.read(address + 1) * 0x100 + bus.read(address)

    def _write_word(self, register: int, offset: int, value: int) -> None:
        address = calc_addr(register, offset)
        self.machine.bus.write(address, value & 0xFF)
        self.machine.bus.write(address + 1, (value >> 8) & 0xFF)

    # -- operation ---------------------------------------------------------

    def generate_params(self) -> None:
        """Decode the control byte into operator and register selectors."""
        self.operator = (self.data_f400 >> 4) & 0x0F
        self.type_2 = (self.data_f400 >> 2) & 0x03
        self.type_1 = self.data_f400 & 0x03
        if self.operator == 0:
            self.param1 = 0
            self.param2 = 1
        else:
            self.param1 = 1

    def f405_control(self) -> None:
        operands = self.data_a | self.data_b | self.data_c | self.data_d
        if not (self.mode == 0xFF and self.param1 == 0):
            if operands != 0 and self.param1 == 0:
                if (self.data_a | self.data_b | self.data_c) != 0:
                    self.param1 = 1
                    if (self.operator | self.type_1 | self.type_2) == 0:
                        self.param1 = 0
                self.param4 = 0
        if operands != 0:
            self.data_f405 = (self.data_f405 & 0x7F) | 0x80
        else:
            self.data_f405 &= 0x7F

    def shift_left(self, param: int) -> None:
        """Shift the selected register towards its high end, filling from the one below."""
        target = self.type_1
        source = (target + 3) & 0x03
        if self.type_2 == 0:
            for offset in range(REGISTER_SIZE - 1, 0, -1):
                high = self._read(target, offset)
                low = self._read(target, offset - 1)
                self._write(target, offset, (high << 4) | (low >> 4))
            fill = self._read(source, REGISTER_SIZE - 1)
            if param == 0:
                fill = 0
            low_byte = self._read(target, 0)
            self._write(target, 0, (low_byte << 4) | (fill >> 4))
            return

        width = _BYTE_SHIFT_WIDTH[self.type_2]
        for offset in range(REGISTER_SIZE - 1, width - 1, -1):
            self._write(target, offset, self._read(target, offset - width))
        for index in range(width):
            fill = self._read(source, index + REGISTER_SIZE - width)
            if param == 0:
                fill = 0
            self._write(target, index, fill)

    def shift_right(self, param: int) -> None:
        """Shift the selected register towards its low end, filling from the one above."""
        target = self.type_1
        source = (target + 1) & 0x03
        if self.type_2 == 0:
            for offset in range(REGISTER_SIZE - 1):
                low = self._read(target, offset)
                high = self._read(target, offset + 1)
                self._write(target, offset, (high << 4) | (low >> 4))
            top = self._read(target, REGISTER_SIZE - 1)
            fill = self._read(source, 0)
            if param == 0:
                fill = 0
            self._write(target, REGISTER_SIZE - 1, (fill << 4) | (top >> 4))
            return

        width = _BYTE_SHIFT_WIDTH[self.type_2]
        for offset in range(REGISTER_SIZE - width):
            self._write(target, offset, self._read(target, offset + width))
        for index in range(REGISTER_SIZE - width, REGISTER_SIZE):
            fill = self._read(source, index - (REGISTER_SIZE - width))
            if param == 0:
                fill = 0
            self._write(target, index, fill)

    def _arithmetic(self) -> None:
        store = self.operator in (1, 2)
        flag = 1 if self.operator == 2 else 0
        carry = 0
        zero = 1
        t1, t2 = self.type_1, self.type_2
        index = 0
        while index * 2 < self.f402_copy:
            offset = index * 4
            result = bcd_calculate(carry, self._read_word(t1, offset), self._read_word(t2, offset), flag)
            carry = (result >> 16) & 1
            zero = 1 if (result & 0xFFFF) == 0 and zero else 0
            if store:
                self._write_word(t1, offset, result)

            offset += 2
            result = bcd_calculate(carry, self._read_word(t1, offset), self._read_word(t2, offset), flag)
            last_half = index * 2 + 1 == self.f402_copy
            if not last_half:
                carry = (result >> 16) & 1
                zero = 1 if (result & 0xFFFF) == 0 and zero else 0
            self.data_f410 = (((carry * 2) | zero) << 6) & 0xFF
            if store:
                self._write_word(t1, offset, 0 if last_half else result)
            index += 1

    def _count_zero_digits(self) -> None:
        start = 0
        end = 0
        significant = self.f402_copy * 2
        for offset in range(REGISTER_SIZE - 1, -1, -1):
            value = self._read(self.type_1, offset)
            if offset < significant:
                if value & 0xF0:
                    break
                end += 1
                if value & 0x0F:
                    break
                end += 1
            else:
                end += 2
        for offset in range(REGISTER_SIZE):
            value = self._read(self.type_1, offset)
            if offset < significant:
                if value & 0x0F:
                    break
                start += 1
                if value & 0xF0:
                    break
                start += 1
            else:
                end += 2
        self.data_f414 = start & 0xFF
        self.data_f415 = end & 0xFF

    def data_operate(self) -> None:
        """Run one step of the current operation."""
        if self.param1 == 1 and self.param4 == 0 and self.f402_copy != 0:
            self._arithmetic()

        if self.operator in (1, 2) and (self.param2 == 1 or self.param3 == 1):
            self.param4 = (self.param4 + 2) & 0xFF
            if self.param4 >= self.f402_copy:
                self.param1 = 0

        sign = 0 if self.param1 == 0 else self.operator & 0x0F
        sign = (sign - 8) & 0xFF
        if sign == 0:
            self.shift_left(0)
        elif sign == 1:
            self.shift_right(0)
        elif sign == 2:
            for offset in range(1, REGISTER_SIZE):
                self._write(self.type_1, offset, 0)
            self._write(self.type_1, 0, 5 if self.type_2 == 3 else self.type_2)
        elif sign == 3:
            for offset in range(REGISTER_SIZE):
                self._write(self.type_1, offset, self._read(self.type_2, offset))
        elif sign == 4:
            self.shift_left(1)
        elif sign == 5:
            self.shift_right(1)

        if (self.data_f400 & 0xF0) == 0 or (self.param3 == 1 and self.param2 != 1):
            self._count_zero_digits()

        if self.data_f400 != 0 and (self.data_f400 & 0x08) == 0:
            return
        self.param1 = 0
        self.f402_copy = 6

    def tick(self) -> None:
        if self.f402_write:
            if self.data_f402 == 0:
                self.data_f402 = 1
            if self.data_f402 > 6:
                self.data_f402 = 6
            self.f402_write = False
            return
        if self.f404_write:
            self.data_f404 &= 0x1F
            self.f404_write = False
            return
        if not (self.f400_write or self.f405_write):
            return

        self.mode = 0x3F
        self.data_a = self.data_b = self.data_c = self.data_d = 0
        self.f404_copy = 0
        self.operator = self.type_1 = self.type_2 = 0
        self.param1 = self.param2 = self.param3 = self.param4 = 0
        if self.data_f400 != 0xFF:
            self.generate_params()
            self.data_f400 = 0xFF
        self.f402_copy = self.data_f402
        if self.data_f405 & 0x7F:
            self.f404_copy = self.data_f404
            self.data_f405 = 0
            self.mode = 0xFF

        while True:
            self.repeat_flag = 0 if self.param1 == 0 and self.mode == 0x3F else 1
            self.f405_control()
            self.param3 = self.param2
            self.param2 = self.param1
            self.data_operate()
            if self.repeat_flag != 1:
                break
        self.f400_write = False
        self.f405_write = False