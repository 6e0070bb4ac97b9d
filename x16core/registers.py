"""Register file, status flags and wrap-around helpers for the 65C02 / 65C816 core."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag


class Flag(IntFlag):
    """Bits of the processor status register."""

    CARRY = 0x01
    ZERO = 0x02
    INTERRUPT = 0x04
    DECIMAL = 0x08
    INDEX_WIDTH = 0x10
    MEMORY_WIDTH = 0x20
    OVERFLOW = 0x40
    SIGN = 0x80
    # 65C02 names for the same bits
    BREAK = 0x10
    CONSTANT = 0x20


class InterruptVector(IntEnum):
    """Offsets of the interrupt vectors within the vector page."""

    COP = 0x4
    BRK = 0x6
    NMI = 0xA
    IRQ = 0xE


_MASKS = {
    "c": 0xFFFF,
    "x": 0xFFFF,
    "y": 0xFFFF,
    "dp": 0xFFFF,
    "sp": 0xFFFF,
    "pc": 0xFFFF,
    "db": 0xFF,
    "k": 0xFF,
    "status": 0xFF,
    "e": 0xFF,
}


def add_wrap_at_page_boundary(value: int, add: int, emulation: bool) -> int:
    """Add to a 16-bit value; in emulation mode only the low byte moves."""
    value &= 0xFFFF
    add &= 0xFF
    if emulation:
        return (value & 0xFF00) | (((value & 0xFF) + add) & 0xFF)
    return (value + add) & 0xFFFF


def subtract_wrap_at_page_boundary(value: int, subtract: int, emulation: bool) -> int:
    """Subtract from a 16-bit value; in emulation mode only the low byte moves."""
    value &= 0xFFFF
    subtract &= 0xFF
    if emulation:
        return (value & 0xFF00) | (((value & 0xFF) - subtract) & 0xFF)
    return (value - subtract) & 0xFFFF


def mask_long_addr(addr: int) -> int:
    """Restrict an address to the 24-bit address space."""
    return addr & 0xFFFFFF


def bank_byte(addr: int) -> int:
    """Return the bank (bits 16-23) of a long address."""
    return (addr >> 16) & 0xFF


@dataclass
class Registers:
    """CPU registers; integer fields are kept to their hardware width."""

    c: int = 0
    x: int = 0
    y: int = 0
    dp: int = 0
    sp: int = 0x1FD
    db: int = 0
    pc: int = 0
    k: int = 0
    status: int = 0
    e: int = 1
    is65c816: bool = False

    def __setattr__(self, name, value):
        mask = _MASKS.get(name)
        if mask is not None:
            value = int(value) & mask
        object.__setattr__(self, name, value)

    # 8-bit halves of the 16-bit registers

    @property
    def a(self) -> int:
        return self.c & 0xFF

    @a.setter
    def a(self, value: int) -> None:
        self.c = (self.c & 0xFF00) | (int(value) & 0xFF)

    @property
    def b(self) -> int:
        return self.c >> 8

    @b.setter
    def b(self, value: int) -> None:
        self.c = (self.c & 0x00FF) | ((int(value) & 0xFF) << 8)

    @property
    def xl(self) -> int:
        return self.x & 0xFF

    @xl.setter
    def xl(self, value: int) -> None:
        self.x = (self.x & 0xFF00) | (int(value) & 0xFF)

    @property
    def xh(self) -> int:
        return self.x >> 8

    @xh.setter
    def xh(self, value: int) -> None:
        self.x = (self.x & 0x00FF) | ((int(value) & 0xFF) << 8)

    @property
    def yl(self) -> int:
        return self.y & 0xFF

    @yl.setter
    def yl(self, value: int) -> None:
        self.y = (self.y & 0xFF00) | (int(value) & 0xFF)

    @property
    def yh(self) -> int:
        return self.y >> 8

    @yh.setter
    def yh(self, value: int) -> None:
        self.y = (self.y & 0x00FF) | ((int(value) & 0xFF) << 8)

    # width queries

    def memory_16bit(self) -> bool:
        """True when the accumulator and memory operations are 16 bits wide."""
        return bool(self.is65c816) and not (self.status & Flag.MEMORY_WIDTH)

    def index_16bit(self) -> bool:
        """True when the index registers are 16 bits wide."""
        return bool(self.is65c816) and not (self.status & Flag.INDEX_WIDTH)

    def accumulator(self) -> int:
        """The accumulator at the current memory width."""
        return self.c if self.memory_16bit() else self.a

    def save_accumulator(self, value: int) -> None:
        """Store into the accumulator at the current memory width."""
        if self.memory_16bit():
            self.c = value
        else:
            self.a = value

    # flags

    def set_flag(self, flag: int, on: bool) -> None:
        if on:
            self.status |= flag
        else:
            self.status &= ~flag & 0xFF

    def zero_calc(self, n: int, wide: bool) -> None:
        mask = 0xFFFF if wide else 0x00FF
        self.set_flag(Flag.ZERO, not (n & mask))

    def sign_calc(self, n: int, wide: bool) -> None:
        bit = 0x8000 if wide else 0x0080
        self.set_flag(Flag.SIGN, bool(n & bit))

    def carry_calc(self, n: int, wide: bool) -> None:
        bit = 0x10000 if wide else 0x0100
        self.set_flag(Flag.CARRY, bool(n & bit))

    def overflow_calc8(self, n: int, m: int, o: int) -> None:
        """Set V from result n, accumulator m and operand o (8 bits)."""
        self.set_flag(Flag.OVERFLOW, bool((n ^ m) & (n ^ o) & 0x80))

    def overflow_calc16(self, n: int, m: int, o: int) -> None:
        """Set V from result n, accumulator m and operand o (16 bits)."""
        self.set_flag(Flag.OVERFLOW, bool((n ^ m) & (n ^ o) & 0x8000))

    # addressing helpers

    def direct_page_add(self, offset: int) -> int:
        """Offset into the direct page, wrapping within it in emulation mode."""
        if self.e and (self.dp & 0x00FF) == 0:
            return (self.dp & 0xFF00) | (offset & 0xFF)
        return (self.dp + offset) & 0xFFFF

    def increment_sp(self) -> None:
        self.sp = add_wrap_at_page_boundary(self.sp, 1, bool(self.e))

    def decrement_sp(self) -> None:
        self.sp = subtract_wrap_at_page_boundary(self.sp, 1, bool(self.e))