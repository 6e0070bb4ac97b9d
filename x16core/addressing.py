"""Addressing modes: each computes the effective address of the current opcode."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .registers import Registers, mask_long_addr


@dataclass(eq=False)
class AddressingModes:
    """Effective-address calculation over a register file and a bus reader.

    ``read(address, bank)`` returns one byte. Results are left in ``ea``
    (effective address) and ``reladdr`` (sign-extended branch offset);
    ``penaltyaddr`` and ``penaltyd`` record page-crossing and unaligned
    direct-page cycle penalties.
    """

    regs: Registers
    read: Callable[[int, int], int]
    ea: int = 0
    reladdr: int = 0
    penaltyaddr: int = 0
    penaltyd: int = 0

    def _rd(self, address: int, bank: int) -> int:
        return self.read(address & 0xFFFF, bank & 0xFF) & 0xFF

    def _fetch(self) -> int:
        """Read the byte at PC in the program bank and advance PC."""
        value = self._rd(self.regs.pc, self.regs.k)
        self.regs.pc += 1
        return value

    def _word_at_pc(self) -> int:
        regs = self.regs
        return self._rd(regs.pc, regs.k) | (self._rd(regs.pc + 1, regs.k) << 8)

    def _long_at_pc(self) -> int:
        regs = self.regs
        return (
            self._rd(regs.pc, regs.k)
            | (self._rd(regs.pc + 1, regs.k) << 8)
            | (self._rd(regs.pc + 2, regs.k) << 16)
        )

    def _check_direct_page(self) -> None:
        if self.regs.dp & 0x00FF:
            self.penaltyd = 1

    def _check_page_cross(self, startpage: int) -> None:
        if startpage != (self.ea & 0xFF00):
            self.penaltyaddr = 1

    def addr_with_db(self, addr: int) -> int:
        """Place a 16-bit address in the data bank."""
        return mask_long_addr((self.regs.db << 16) | (addr & 0xFFFF))

    # modes without an operand address: no page can be crossed

    def imp(self) -> None:
        """Implied."""
        self.penaltyaddr = 0

    def imp8(self) -> None:
        """Implied with a signature byte (BRK, COP)."""
        self.penaltyaddr = 0

    def acc(self) -> None:
        """Accumulator."""
        self.penaltyaddr = 0

    # immediate

    def imm8(self) -> None:
        self.ea = self.regs.pc
        self.regs.pc += 1

    def immm(self) -> None:
        """Immediate, 16 bits wide when the accumulator is."""
        self.ea = self.regs.pc
        self.regs.pc += 1
        if self.regs.memory_16bit():
            self.regs.pc += 1

    def immx(self) -> None:
        """Immediate, 16 bits wide when the index registers are."""
        self.ea = self.regs.pc
        self.regs.pc += 1
        if self.regs.index_16bit():
            self.regs.pc += 1

    def imm16(self) -> None:
        self.ea = self.regs.pc
        self.regs.pc += 2

    # direct page

    def _zp_with_offset(self, offset: int) -> None:
        operand = self._fetch()
        self._check_direct_page()
        self.ea = self.regs.direct_page_add((operand + offset) & 0xFFFF)

    def _zp_long_with_offset(self, offset: int) -> None:
        regs = self.regs
        operand = self._fetch()
        base = regs.dp + operand
        pointer = (
            self._rd(base, regs.k)
            | (self._rd(base + 1, regs.k) << 8)
            | (self._rd(base + 2, regs.k) << 16)
        )
        self.ea = mask_long_addr(pointer + offset)
        self._check_direct_page()

    def zp(self) -> None:
        self._zp_with_offset(0)

    def zpx(self) -> None:
        self._zp_with_offset(self.regs.x)

    def zpy(self) -> None:
        self._zp_with_offset(self.regs.y)

    # relative

    def rel(self) -> None:
        """Relative, 8-bit offset sign-extended to 16 bits."""
        offset = self._fetch()
        if offset & 0x80:
            offset |= 0xFF00
        self.reladdr = offset

    def rel16(self) -> None:
        """Relative, 16-bit offset (PER, BRL)."""
        self.reladdr = self._word_at_pc()
        self.regs.pc += 2

    # absolute

    def abso(self) -> None:
        self.ea = self.addr_with_db(self._word_at_pc())
        self.regs.pc += 2

    def absl(self) -> None:
        self.ea = self._long_at_pc()
        self.regs.pc += 3

    def absx(self) -> None:
        self.ea = self.addr_with_db(self._word_at_pc())
        startpage = self.ea & 0xFF00
        self.ea = mask_long_addr(self.ea + self.regs.x)
        self._check_page_cross(startpage)
        self.regs.pc += 2

    def abslx(self) -> None:
        self.ea = self._long_at_pc()
        startpage = self.ea & 0xFF00
        self.ea = mask_long_addr(self.ea + self.regs.x)
        self._check_page_cross(startpage)
        self.regs.pc += 3

    def absy(self) -> None:
        self.ea = self.addr_with_db(self._word_at_pc())
        startpage = self.ea & 0xFF00
        self.ea = mask_long_addr(self.ea + self.regs.y)
        self._check_page_cross(startpage)
        self.regs.pc += 2

    # indirect

    def ind(self) -> None:
        """(addr) for JMP; the pointer lives in bank 0 and does not wrap in-page."""
        pointer = self._word_at_pc()
        self.ea = self._rd(pointer, 0) | (self._rd((pointer + 1) & 0xFFFF, 0) << 8)
        self.regs.pc += 2

    def aindl(self) -> None:
        """[addr]: 24-bit pointer in bank 0."""
        pointer = self._word_at_pc()
        second = (pointer + 1) & 0xFFFF
        self.ea = (
            self._rd(pointer, 0)
            | (self._rd(second, 0) << 8)
            | (self._rd((second + 1) & 0xFFFF, 0) << 16)
        )
        self.regs.pc += 2

    def ainx(self) -> None:
        """(addr,X) for JMP/JSR; the pointer is read from the program bank."""
        regs = self.regs
        pointer = (self._word_at_pc() + regs.x) & 0xFFFF
        self.ea = self._rd(pointer, regs.k) | (self._rd((pointer + 1) & 0xFFFF, regs.k) << 8)
        regs.pc += 2

    def ind0(self) -> None:
        """(dp)"""
        regs = self.regs
        operand = self._fetch()
        self.ea = self._rd(regs.direct_page_add(operand), 0) | (
            self._rd(regs.direct_page_add(operand + 1), 0) << 8
        )
        self._check_direct_page()

    def indl0(self) -> None:
        """[dp]"""
        self._zp_long_with_offset(0)

    def indx(self) -> None:
        """(dp,X)"""
        regs = self.regs
        operand = (self._fetch() + regs.x) & 0xFFFF
        self.ea = self._rd(regs.direct_page_add(operand), 0) | (
            self._rd(regs.direct_page_add((operand + 1) & 0xFFFF), 0) << 8
        )
        self._check_direct_page()

    def indy(self) -> None:
        """(dp),Y"""
        regs = self.regs
        operand = self._fetch()
        self.ea = self._rd(regs.direct_page_add(operand), 0) | (
            self._rd(regs.direct_page_add(operand + 1), 0) << 8
        )
        startpage = self.ea & 0xFF00
        self.ea += regs.y
        self._check_direct_page()
        self._check_page_cross(startpage)

    def indly(self) -> None:
        """[dp],Y"""
        self._zp_long_with_offset(self.regs.y)

    def ind0p(self) -> None:
        """(dp) for PEI, without direct-page wraparound."""
        regs = self.regs
        operand = self._fetch()
        base = regs.dp + operand
        self.ea = self._rd(base, 0) | (self._rd(base + 1, 0) << 8)
        self._check_direct_page()

    def zprel(self) -> None:
        """Zero page plus relative offset (BBR/BBS)."""
        regs = self.regs
        self.ea = self._rd(regs.pc, 0)
        offset = self._rd(regs.pc + 1, 0)
        if offset & 0x80:
            offset |= 0xFF00
        self.reladdr = offset
        regs.pc += 2

    # stack relative

    def sr(self) -> None:
        """offset,S"""
        sp = self.regs.sp
        self.ea = sp + self._fetch()

    def sridy(self) -> None:
        """(offset,S),Y"""
        regs = self.regs
        pointer = (regs.sp + self._fetch()) & 0xFFFF
        self.ea = self._rd(pointer, 0) | (self._rd((pointer + 1) & 0xFFFF, 0) << 8)
        startpage = self.ea & 0xFF00
        self.ea += regs.y
        self._check_page_cross(startpage)

    def bmv(self) -> None:
        """Block move: ea holds source bank in bits 8-15, destination bank in 0-7."""
        dest = self._fetch()
        source = self._fetch()
        self.ea = (source << 8) | dest