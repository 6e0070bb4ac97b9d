"""Instruction handlers shared by the 65C02 and 65C816 cores."""

from __future__ import annotations

from typing import Callable, Optional

from .addressing import AddressingModes
from .registers import Flag, InterruptVector, Registers, bank_byte
from .tables import opcode_table

_WIDTHS = Flag.INDEX_WIDTH | Flag.MEMORY_WIDTH

# Absolute-indexed NOPs that take the page-crossing penalty.
_PENALTY_NOPS = frozenset((0x1C, 0x3C, 0x5C, 0x7C, 0xDC, 0xFC))


class Instructions:
    """Operation handlers over a register file and a memory bus.

    ``read(address, bank)`` returns a byte and ``write(address, bank, value)``
    stores one. Each handler works on the effective address left in
    ``modes`` by the addressing mode of the current ``opcode``. The optional
    ``vector_pull`` callback is invoked whenever an interrupt vector is fetched.
    """

    def __init__(
        self,
        regs: Registers,
        read: Callable[[int, int], int],
        write: Callable[[int, int, int], None],
        vector_pull: Optional[Callable[[], None]] = None,
    ) -> None:
        self.regs = regs
        self.read = read
        self.write = write
        self.vector_pull = vector_pull
        self.modes = AddressingModes(regs, read)
        self.opcode = 0
        self.clockticks = 0
        self.waiting = 0
        self.penaltyop = 0
        self.penaltym = 0
        self.penaltye = 0
        self.penaltyn = 0
        self.penaltyx = 0

    # state shared with the addressing modes

    @property
    def ea(self) -> int:
        return self.modes.ea

    @ea.setter
    def ea(self, value: int) -> None:
        self.modes.ea = value

    @property
    def reladdr(self) -> int:
        return self.modes.reladdr

    @reladdr.setter
    def reladdr(self, value: int) -> None:
        self.modes.reladdr = value & 0xFFFF

    # bus access

    def _rd(self, address: int, bank: int) -> int:
        return self.read(address & 0xFFFF, bank & 0xFF) & 0xFF

    def _wr(self, address: int, bank: int, value: int) -> None:
        self.write(address & 0xFFFF, bank & 0xFF, value & 0xFF)

    def _mode(self) -> str:
        return opcode_table(self.regs.is65c816).modes[self.opcode]

    def _wrapped_bank(self, addr: int) -> int:
        if self._mode() in ("zp", "zpx", "zpy"):
            return 0
        return bank_byte(addr + 1)

    def _get_value(self, wide: bool) -> int:
        regs = self.regs
        if self._mode() == "acc":
            return regs.c if wide else regs.a
        ea = self.ea
        low = self._rd(ea, bank_byte(ea))
        if wide:
            return low | (self._rd(ea + 1, self._wrapped_bank(ea)) << 8)
        return low

    def _put_value(self, value: int, wide: bool) -> None:
        regs = self.regs
        value &= 0xFFFF
        if self._mode() == "acc":
            if wide:
                regs.c = value
            else:
                regs.a = value
            return
        ea = self.ea
        self._wr(ea, bank_byte(ea), value)
        if wide:
            self._wr(ea + 1, self._wrapped_bank(ea), value >> 8)

    # stack

    def _push8(self, value: int) -> None:
        self._wr(self.regs.sp, 0, value)
        self.regs.decrement_sp()

    def _push16(self, value: int) -> None:
        self._push8((value >> 8) & 0xFF)
        self._push8(value & 0xFF)

    def _pull8(self) -> int:
        self.regs.increment_sp()
        return self._rd(self.regs.sp, 0)

    def _pull16(self) -> int:
        low = self._pull8()
        return low | (self._pull8() << 8)

    def _interrupt(self, vector: InterruptVector) -> None:
        regs = self.regs
        if not regs.e:
            self._push8(regs.k)
        regs.k = 0
        self._push16(regs.pc)
        if regs.e:
            if vector == InterruptVector.BRK:
                self._push8(regs.status | Flag.BREAK)
                vector = InterruptVector.IRQ
            else:
                self._push8(regs.status & ~Flag.BREAK & 0xFF)
        else:
            self._push8(regs.status)
        regs.set_flag(Flag.INTERRUPT, True)
        regs.set_flag(Flag.DECIMAL, False)
        if self.vector_pull is not None:
            self.vector_pull()
        address = (0xFFF0 if regs.e else 0xFFE0) + int(vector)
        regs.pc = self._rd(address, 0) | (self._rd(address + 1, 0) << 8)
        self.clockticks += 7

    def _set_emulation_widths(self) -> None:
        self.regs.status |= _WIDTHS

    def _carry(self) -> int:
        return self.regs.status & Flag.CARRY

    def _flags_nz(self, n: int, wide: bool) -> None:
        self.regs.zero_calc(n, wide)
        self.regs.sign_calc(n, wide)

    # arithmetic

    def adc(self) -> None:
        regs = self.regs
        self.penaltyop = 1
        wide = regs.memory_16bit()
        if regs.status & Flag.DECIMAL:
            if wide:
                value = self._get_value(True)
                c = regs.c
                tmp = (c & 0x000F) + (value & 0x000F) + self._carry()
                tmp2 = (c & 0x00F0) + (value & 0x00F0)
                tmp3 = (c & 0x0F00) + (value & 0x0F00)
                tmp4 = (c & 0xF000) + (value & 0xF000)
                if tmp > 0x0009:
                    tmp2 += 0x0010
                    tmp += 0x0006
                if tmp2 > 0x0090:
                    tmp3 += 0x0100
                    tmp2 += 0x0060
                if tmp3 > 0x0900:
                    tmp4 += 0x1000
                    tmp3 += 0x0600
                tmpov = tmp4
                if tmp4 > 0x9000:
                    tmp4 += 0x6000
                regs.set_flag(Flag.CARRY, bool(tmp4 & 0xFFFF0000))
                low = (tmp & 0x000F) | (tmp2 & 0x00F0) | (tmp3 & 0x0F00)
                result = low | (tmp4 & 0xF000)
                regs.overflow_calc16(low | (tmpov & 0xF000), c, value)
            else:
                value = self._get_value(False)
                a = regs.a
                tmp = (a & 0x0F) + (value & 0x0F) + self._carry()
                tmp2 = (a & 0xF0) + (value & 0xF0)
                if tmp > 0x09:
                    tmp2 += 0x10
                    tmp += 0x06
                tmpov = tmp2
                if tmp2 > 0x90:
                    tmp2 += 0x60
                regs.set_flag(Flag.CARRY, bool(tmp2 & 0xFF00))
                result = (tmp & 0x0F) | (tmp2 & 0xF0)
                ovresult = ((tmp & 0x0F) | (tmpov & 0xF0)) & 0xFF
                regs.overflow_calc8(ovresult, a, value)
            self.clockticks += int(not regs.is65c816)
        else:
            if wide:
                value = self._get_value(True)
                result = regs.c + value + self._carry()
                regs.overflow_calc16(result, regs.c, value)
            else:
                value = self._get_value(False)
                result = regs.a + value + self._carry()
                regs.overflow_calc8(result, regs.a, value)
            regs.carry_calc(result, wide)
        self._flags_nz(result, regs.memory_16bit())
        regs.save_accumulator(result)

    def sbc(self) -> None:
        regs = self.regs
        self.penaltyop = 1
        wide = regs.memory_16bit()
        if regs.status & Flag.DECIMAL:
            if wide:
                value = self._get_value(True)
                c = regs.c
                tmp = ((c & 0x000F) - (value & 0x000F) + self._carry() - 1) & 0xFFFF
                tmp2 = ((c & 0x00F0) - (value & 0x00F0)) & 0xFFFF
                tmp3 = ((c & 0x0F00) - (value & 0x0F00)) & 0xFFFF
                tmp4 = ((c & 0xF000) - (value & 0xF000)) & 0xFFFFFFFF
                if tmp & 0xFFF0:
                    tmp2 = (tmp2 - 0x0010) & 0xFFFF
                    tmp = (tmp - 0x0006) & 0xFFFF
                if tmp2 & 0xFF00:
                    tmp3 = (tmp3 - 0x0100) & 0xFFFF
                    tmp2 = (tmp2 - 0x0060) & 0xFFFF
                if tmp3 & 0xF000:
                    tmp4 = (tmp4 - 0x1000) & 0xFFFFFFFF
                    tmp3 = (tmp3 - 0x0600) & 0xFFFF
                tmpc = tmp4
                if tmp4 >= 0x0000A000:
                    tmp4 = (tmp4 - 0x6000) & 0xFFFFFFFF
                low = (tmp & 0x000F) | (tmp2 & 0x00F0) | (tmp3 & 0x0F00)
                result = low | (tmp4 & 0xF000)
                c_result = low | (tmpc & 0xF000)
                regs.set_flag(Flag.CARRY, c_result <= c)
                inverted = value ^ 0xFFFF
                ovresult = (c + inverted + self._carry()) & 0xFFFF
                regs.overflow_calc16(ovresult, c, inverted)
            else:
                value = self._get_value(False)
                a = regs.a
                tmp = ((a & 0x0F) - (value & 0x0F) + self._carry() - 1) & 0xFFFF
                tmp2 = ((a & 0xF0) - (value & 0xF0)) & 0xFFFF
                if tmp & 0xFFF0:
                    tmp2 = (tmp2 - 0x10) & 0xFFFF
                    tmp = (tmp - 0x06) & 0xFFFF
                tmpc = tmp2
                if tmp2 & 0xFF00:
                    tmp2 = (tmp2 - 0x60) & 0xFFFF
                result = (tmp & 0x0F) | (tmp2 & 0xF0)
                c_result = (tmp & 0x0F) | (tmpc & 0xF0)
                regs.set_flag(Flag.CARRY, c_result <= a)
                inverted = value ^ 0xFF
                ovresult = (a + inverted + self._carry()) & 0xFF
                regs.overflow_calc8(ovresult, a, inverted)
            self.clockticks += int(not regs.is65c816)
        else:
            if wide:
                value = self._get_value(True) ^ 0xFFFF
                result = regs.c + value + self._carry()
                regs.overflow_calc16(result, regs.c, value)
            else:
                value = self._get_value(False) ^ 0x00FF
                result = regs.a + value + self._carry()
                regs.overflow_calc8(result, regs.a, value)
            regs.carry_calc(result, wide)
        self._flags_nz(result, regs.memory_16bit())
        regs.save_accumulator(result)

    # logic

    def _logic(self, combine: Callable[[int, int], int]) -> None:
        regs = self.regs
        self.penaltyop = 1
        wide = regs.memory_16bit()
        value = self._get_value(wide)
        result = combine(regs.accumulator(), value)
        self._flags_nz(result, wide)
        regs.save_accumulator(result)

    def and_(self) -> None:
        self._logic(lambda acc, value: acc & value)

    def eor(self) -> None:
        self._logic(lambda acc, value: acc ^ value)

    def ora(self) -> None:
        self._logic(lambda acc, value: acc | value)

    def bit(self) -> None:
        regs = self.regs
        wide = regs.memory_16bit()
        value = self._get_value(wide)
        regs.zero_calc(regs.accumulator() & value, wide)
        # BIT #imm only affects Z on the 65C02
        if self.opcode != 0x89:
            regs.status = (regs.status & 0x3F) | (value & 0xC0)

    # shifts and rotates

    def asl(self) -> None:
        regs = self.regs
        wide = regs.memory_16bit()
        result = self._get_value(wide) << 1
        regs.carry_calc(result, wide)
        self._flags_nz(result, wide)
        self._put_value(result, wide)

    def lsr(self) -> None:
        regs = self.regs
        wide = regs.memory_16bit()
        value = self._get_value(wide)
        result = value >> 1
        regs.set_flag(Flag.CARRY, bool(value & 1))
        self._flags_nz(result, wide)
        self._put_value(result, wide)

    def rol(self) -> None:
        regs = self.regs
        wide = regs.memory_16bit()
        result = (self._get_value(wide) << 1) | self._carry()
        regs.carry_calc(result, wide)
        self._flags_nz(result, wide)
        self._put_value(result, wide)

    def ror(self) -> None:
        regs = self.regs
        wide = regs.memory_16bit()
        value = self._get_value(wide)
        result = (value >> 1) | (self._carry() << (15 if wide else 7))
        regs.set_flag(Flag.CARRY, bool(value & 1))
        self._flags_nz(result, wide)
        self._put_value(result, wide)

    # branches

    def _do_branch(self, condition: bool) -> None:
        if condition:
            regs = self.regs
            oldpc = regs.pc
            regs.pc = oldpc + self.reladdr
            self.clockticks += 1
            if (oldpc & 0xFF00) != (regs.pc & 0xFF00):
                self.penaltye = 1

    def bcc(self) -> None:
        self._do_branch(not self.regs.status & Flag.CARRY)

    def bcs(self) -> None:
        self._do_branch(bool(self.regs.status & Flag.CARRY))

    def beq(self) -> None:
        self._do_branch(bool(self.regs.status & Flag.ZERO))

    def bmi(self) -> None:
        self._do_branch(bool(self.regs.status & Flag.SIGN))

    def bne(self) -> None:
        self._do_branch(not self.regs.status & Flag.ZERO)

    def bpl(self) -> None:
        self._do_branch(not self.regs.status & Flag.SIGN)

    def bvc(self) -> None:
        self._do_branch(not self.regs.status & Flag.OVERFLOW)

    def bvs(self) -> None:
        self._do_branch(bool(self.regs.status & Flag.OVERFLOW))

    def brl(self) -> None:
        self.regs.pc += self.reladdr

    # software interrupts

    def brk(self) -> None:
        self.penaltyn = 1
        self.regs.pc += 1
        self._interrupt(InterruptVector.BRK)

    def cop(self) -> None:
        self.penaltyn = 1
        self.regs.pc += 1
        self._interrupt(InterruptVector.COP)

    # flag instructions

    def clc(self) -> None:
        self.regs.set_flag(Flag.CARRY, False)

    def cld(self) -> None:
        self.regs.set_flag(Flag.DECIMAL, False)

    def cli(self) -> None:
        self.regs.set_flag(Flag.INTERRUPT, False)

    def clv(self) -> None:
        self.regs.set_flag(Flag.OVERFLOW, False)

    def sec(self) -> None:
        self.regs.set_flag(Flag.CARRY, True)

    def sed(self) -> None:
        self.regs.set_flag(Flag.DECIMAL, True)

    def sei(self) -> None:
        self.regs.set_flag(Flag.INTERRUPT, True)

    def rep(self) -> None:
        regs = self.regs
        regs.status &= ~(self._get_value(False) & 0xFF) & 0xFF
        if regs.e:
            self._set_emulation_widths()

    def sep(self) -> None:
        regs = self.regs
        regs.status |= self._get_value(False) & 0xFF
        if regs.e:
            self._set_emulation_widths()
        if regs.status & Flag.INDEX_WIDTH:
            regs.xh = 0
            regs.yh = 0

    # comparisons

    def _compare(self, register: int, low: int, wide: bool) -> None:
        regs = self.regs
        value = self._get_value(wide)
        if wide:
            result = (register - value) & 0xFFFFFFFF
            regs.set_flag(Flag.CARRY, register >= value)
            regs.set_flag(Flag.ZERO, register == value)
        else:
            result = (low - value) & 0xFFFFFFFF
            regs.set_flag(Flag.CARRY, low >= (value & 0xFF))
            regs.set_flag(Flag.ZERO, low == (value & 0xFF))
        regs.sign_calc(result, wide)

    def cmp(self) -> None:
        self.penaltyop = 1
        regs = self.regs
        self._compare(regs.c, regs.a, regs.memory_16bit())

    def cpx(self) -> None:
        regs = self.regs
        self._compare(regs.x, regs.xl, regs.index_16bit())

    def cpy(self) -> None:
        regs = self.regs
        self._compare(regs.y, regs.yl, regs.index_16bit())

    # increments and decrements

    def dec(self) -> None:
        wide = self.regs.memory_16bit()
        result = (self._get_value(wide) - 1) & 0xFFFFFFFF
        self._flags_nz(result, wide)
        self._put_value(result, wide)

    def inc(self) -> None:
        wide = self.regs.memory_16bit()
        result = self._get_value(wide) + 1
        self._flags_nz(result, wide)
        self._put_value(result, wide)

    def _step_index(self, name: str, delta: int) -> None:
        regs = self.regs
        if regs.index_16bit():
            setattr(regs, name, getattr(regs, name) + delta)
            self._flags_nz(getattr(regs, name), True)
        else:
            low = name + "l"
            setattr(regs, low, getattr(regs, low) + delta)
            self._flags_nz(getattr(regs, low), False)

    def dex(self) -> None:
        self._step_index("x", -1)

    def dey(self) -> None:
        self._step_index("y", -1)

    def inx(self) -> None:
        self._step_index("x", 1)

    def iny(self) -> None:
        self._step_index("y", 1)

    # jumps and returns

    def jml(self) -> None:
        self.regs.pc = self.ea & 0xFFFF
        self.regs.k = self.ea >> 16

    def jmp(self) -> None:
        self.regs.pc = self.ea

    def jsr(self) -> None:
        self._push16((self.regs.pc - 1) & 0xFFFF)
        self.regs.pc = self.ea

    def jsl(self) -> None:
        regs = self.regs
        self._push8(regs.k)
        self._push16((regs.pc - 1) & 0xFFFF)
        regs.pc = self.ea & 0xFFFF
        regs.k = self.ea >> 16

    def rti(self) -> None:
        regs = self.regs
        regs.status = self._pull8()
        regs.pc = self._pull16()
        if regs.e:
            self._set_emulation_widths()
        else:
            if regs.status & Flag.INDEX_WIDTH:
                regs.xh = 0
                regs.yh = 0
            regs.k = self._pull8()

    def rtl(self) -> None:
        regs = self.regs
        regs.pc = self._pull16() + 1
        regs.k = self._pull8()

    def rts(self) -> None:
        self.regs.pc = self._pull16() + 1

    # loads and stores

    def lda(self) -> None:
        regs = self.regs
        self.penaltyop = 1
        self.penaltym = 1
        if regs.memory_16bit():
            regs.c = self._get_value(True)
            self._flags_nz(regs.c, True)
        else:
            regs.a = self._get_value(False)
            self._flags_nz(regs.a, False)

    def _load_index(self, name: str) -> None:
        regs = self.regs
        self.penaltyop = 1
        self.penaltyx = 1
        if regs.index_16bit():
            setattr(regs, name, self._get_value(True))
            self._flags_nz(getattr(regs, name), True)
        else:
            low = name + "l"
            setattr(regs, low, self._get_value(False))
            self._flags_nz(getattr(regs, low), False)

    def ldx(self) -> None:
        self._load_index("x")

    def ldy(self) -> None:
        self._load_index("y")

    def sta(self) -> None:
        regs = self.regs
        self._put_value(regs.accumulator(), regs.memory_16bit())

    def stx(self) -> None:
        regs = self.regs
        wide = regs.index_16bit()
        self._put_value(regs.x if wide else regs.xl, wide)

    def sty(self) -> None:
        regs = self.regs
        wide = regs.index_16bit()
        self._put_value(regs.y if wide else regs.yl, wide)

    def nop(self) -> None:
        if self.opcode in _PENALTY_NOPS:
            self.penaltyop = 1

    def wdm(self) -> None:
        """Reserved; does nothing."""

    # stack pushes and pulls

    def pea(self) -> None:
        self._push16(self._get_value(True))

    def pei(self) -> None:
        self._push16(self.ea & 0xFFFF)

    def per(self) -> None:
        self._push16((self.regs.pc + self.reladdr) & 0xFFFF)

    def pha(self) -> None:
        regs = self.regs
        if regs.memory_16bit():
            self._push16(regs.c)
        else:
            self._push8(regs.a)

    def phb(self) -> None:
        self._push8(self.regs.db)

    def phd(self) -> None:
        self._push16(self.regs.dp)

    def phk(self) -> None:
        self._push8(self.regs.k)

    def php(self) -> None:
        regs = self.regs
        self._push8(regs.status | Flag.BREAK if regs.e else regs.status)

    def pla(self) -> None:
        regs = self.regs
        if regs.memory_16bit():
            regs.c = self._pull16()
            self._flags_nz(regs.c, True)
        else:
            regs.a = self._pull8()
            self._flags_nz(regs.a, False)

    def plb(self) -> None:
        regs = self.regs
        regs.db = self._pull8()
        self._flags_nz(regs.db, False)

    def pld(self) -> None:
        self.regs.dp = self._pull16()

    def plp(self) -> None:
        regs = self.regs
        regs.status = self._pull8()
        if regs.e:
            self._set_emulation_widths()
        elif regs.status & Flag.INDEX_WIDTH:
            regs.xh = 0
            regs.yh = 0

    # transfers

    def _to_index(self, name: str, wide_source: int, narrow_source: int) -> None:
        regs = self.regs
        if regs.index_16bit():
            setattr(regs, name, wide_source)
            self._flags_nz(getattr(regs, name), True)
        else:
            low = name + "l"
            setattr(regs, low, narrow_source)
            self._flags_nz(getattr(regs, low), False)

    def tax(self) -> None:
        regs = self.regs
        self._to_index("x", regs.c, regs.a)

    def tay(self) -> None:
        regs = self.regs
        self._to_index("y", regs.c, regs.a)

    def txy(self) -> None:
        regs = self.regs
        self._to_index("y", regs.x, regs.xl)

    def tyx(self) -> None:
        regs = self.regs
        self._to_index("x", regs.y, regs.yl)

    def tsx(self) -> None:
        regs = self.regs
        if regs.index_16bit():
            regs.x = regs.sp
            self._flags_nz(regs.x, True)
        else:
            regs.xl = regs.sp & 0xFF
            regs.xh = 0
            self._flags_nz(regs.xl, False)

    def _index_to_accumulator(self, wide_source: int, narrow_source: int) -> None:
        regs = self.regs
        if regs.memory_16bit():
            if regs.index_16bit():
                regs.c = wide_source
                self._flags_nz(regs.c, True)
            else:
                regs.a = narrow_source
                regs.b = 0
                self._flags_nz(regs.a, False)
        else:
            regs.a = narrow_source
            self._flags_nz(regs.a, False)

    def txa(self) -> None:
        regs = self.regs
        self._index_to_accumulator(regs.x, regs.xl)

    def tya(self) -> None:
        regs = self.regs
        self._index_to_accumulator(regs.y, regs.yl)

    def txs(self) -> None:
        regs = self.regs
        regs.sp = 0x100 | regs.xl if regs.e else regs.x

    def tcd(self) -> None:
        regs = self.regs
        regs.dp = regs.c
        self._flags_nz(regs.dp, True)

    def tdc(self) -> None:
        regs = self.regs
        regs.c = regs.dp
        self._flags_nz(regs.c, True)

    def tcs(self) -> None:
        self.regs.sp = self.regs.c

    def tsc(self) -> None:
        regs = self.regs
        regs.c = regs.sp
        self._flags_nz(regs.c, True)

    # block moves

    def _block_move(self, step: int) -> None:
        regs = self.regs
        source_bank = (self.ea >> 8) & 0xFF
        dest_bank = self.ea & 0xFF
        regs.db = dest_bank
        if regs.index_16bit():
            src, dst = regs.x, regs.y
            regs.x = src + step
            regs.y = dst + step
        else:
            src, dst = regs.xl, regs.yl
            regs.xl = src + step
            regs.yl = dst + step
        self._wr(dst, dest_bank, self._rd(src, source_bank))
        regs.c -= 1
        if regs.c != 0xFFFF:
            regs.pc -= 3

    def mvn(self) -> None:
        self._block_move(1)

    def mvp(self) -> None:
        self._block_move(-1)

    # 65C816 register exchanges

    def xba(self) -> None:
        regs = self.regs
        regs.a, regs.b = regs.b, regs.a
        self._flags_nz(regs.a, False)

    def xce(self) -> None:
        regs = self.regs
        carry = regs.status & Flag.CARRY
        regs.set_flag(Flag.CARRY, bool(regs.e))
        regs.e = 1 if carry else 0
        if regs.e:
            self._set_emulation_widths()
            regs.sp = 0x0100 | (regs.sp & 0x00FF)
            regs.xh = 0
            regs.yh = 0