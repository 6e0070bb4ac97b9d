"""The CPU core: fetch/decode/execute loop, interrupts and 65C02-only opcodes."""

from __future__ import annotations

from typing import Callable, Optional

from .instructions import Instructions
from .registers import Flag, InterruptVector, Registers
from .tables import opcode_table

_WIDTHS = Flag.INDEX_WIDTH | Flag.MEMORY_WIDTH


class Bus:
    """A plain 24-bit memory: 256 banks of 64 KiB, allocated on first write.

    ``ram_bank`` and ``rom_bank`` report the currently selected banks for
    diagnostics; unwritten memory reads as zero.
    """

    def __init__(self) -> None:
        self._banks: dict[int, bytearray] = {}
        self.ram_bank = 0
        self.rom_bank = 0

    def read(self, address: int, bank: int) -> int:
        memory = self._banks.get(bank & 0xFF)
        if memory is None:
            return 0
        return memory[address & 0xFFFF]

    def write(self, address: int, bank: int, value: int) -> None:
        memory = self._banks.setdefault(bank & 0xFF, bytearray(0x10000))
        memory[address & 0xFFFF] = value & 0xFF


class Cpu(Instructions):
    """A 65C02 or 65C816 attached to a bus.

    ``on_stop(address, bank)`` is called by the DBG opcode; ``on_vector_pull()``
    is called when an interrupt vector is fetched.
    """

    def __init__(self, bus, is65c816: bool = False) -> None:
        super().__init__(Registers(), bus.read, bus.write)
        self.bus = bus
        self.clockgoal = 0
        self.instructions = 0
        self.opcode_addr = 0
        self.warn_rockwell = True
        self.on_stop: Optional[Callable[[int, int], None]] = None
        self.on_vector_pull: Optional[Callable[[], None]] = None
        self._hook: Optional[Callable[[], None]] = None
        self._modes: tuple = ()
        self._ops: tuple = ()
        self._ticks: tuple = ()
        self.reset(is65c816)

    # lifecycle

    def reset(self, is65c816: bool = False) -> None:
        """Load PC from the reset vector and put the registers in reset state."""
        regs = self.regs
        regs.pc = self._rd(0xFFFC, 0) | (self._rd(0xFFFD, 0) << 8)
        regs.c = 0
        regs.x = 0
        regs.y = 0
        regs.dp = 0
        regs.sp = 0x1FD
        regs.e = 1
        regs.k = 0
        regs.db = 0
        if is65c816:
            regs.status |= _WIDTHS
            regs.is65c816 = True
        else:
            regs.status |= Flag.CONSTANT
            regs.is65c816 = False
        table = opcode_table(regs.is65c816)
        self._modes = tuple(getattr(self.modes, name) for name in table.modes)
        self._ops = tuple(getattr(self, name) for name in table.operations)
        self._ticks = table.ticks
        regs.set_flag(Flag.INTERRUPT, True)
        regs.set_flag(Flag.DECIMAL, False)
        self.waiting = 0

    def _execute(self, single: bool) -> None:
        regs = self.regs
        opcode = self._rd(regs.pc, regs.k)
        self.opcode = opcode
        regs.pc += 1
        if regs.e:
            regs.status |= _WIDTHS

        self.penaltyop = 0
        self.modes.penaltyaddr = 0
        self.penaltym = 0
        self.penaltye = 0
        self.penaltyn = 0
        self.penaltyx = 0

        self._modes[opcode]()
        self._ops[opcode]()
        self.clockticks += self._ticks[opcode]

        if self.penaltyop and self.modes.penaltyaddr and (single or not regs.e):
            self.clockticks += 1
        if regs.memory_16bit():
            self.clockticks += self.penaltym
        if regs.index_16bit():
            self.clockticks += self.penaltyx
        if self.penaltyn and not regs.e:
            self.clockticks += 1
        if self.penaltye and regs.e:
            self.clockticks += 1
        # the direct-page penalty is not cleared between instructions
        if single and self.modes.penaltyd:
            self.clockticks += 1

        self.instructions += 1
        if self._hook is not None:
            self._hook()

    def step(self) -> None:
        """Execute one instruction, or one idle cycle while waiting."""
        if self.waiting:
            self.clockticks += 1
            self.clockgoal = self.clockticks
            return
        self.opcode_addr = self.regs.pc
        self._execute(single=True)
        self.clockgoal = self.clockticks

    def run(self, tickcount: int) -> None:
        """Execute instructions until ``tickcount`` more cycles have passed."""
        if self.waiting:
            self.clockticks += tickcount
            self.clockgoal = self.clockticks
            return
        self.opcode_addr = self.regs.pc
        self.clockgoal += tickcount
        while self.clockticks < self.clockgoal:
            self._execute(single=False)

    def hook_external(self, callback: Optional[Callable[[], None]]) -> None:
        """Call ``callback`` after every instruction; None removes the hook."""
        self._hook = callback

    # interrupts

    def interrupt(self, vector: InterruptVector) -> None:
        self.vector_pull_hook()
        self._interrupt(vector)

    def vector_pull_hook(self) -> None:
        """Notify ``on_vector_pull`` that an interrupt vector is being fetched."""
        if self.on_vector_pull is not None:
            self.on_vector_pull()

    def irq(self) -> None:
        """Raise IRQ; taken only when interrupts are enabled. Ends WAI."""
        if not self.regs.status & Flag.INTERRUPT:
            self.interrupt(InterruptVector.IRQ)
        self.waiting = 0

    def nmi(self) -> None:
        """Raise NMI. Ends WAI."""
        self.interrupt(InterruptVector.NMI)
        self.waiting = 0

    # stack and operand access

    def push8(self, value: int) -> None:
        self._push8(value)

    def push16(self, value: int) -> None:
        self._push16(value)

    def pull8(self) -> int:
        return self._pull8()

    def pull16(self) -> int:
        return self._pull16()

    def get_value(self, wide: bool) -> int:
        """Read the operand of the current opcode."""
        return self._get_value(wide)

    def put_value(self, value: int, wide: bool) -> None:
        """Write the operand of the current opcode."""
        self._put_value(value, wide)

    def rockwell_warning(self, instruction: str) -> None:
        """Report a Rockwell bit instruction once, then stay quiet."""
        if self.opcode_addr < 0xA000:
            pc_bank = 0
        elif self.opcode_addr < 0xC000:
            pc_bank = getattr(self.bus, "ram_bank", 0)
        else:
            pc_bank = getattr(self.bus, "rom_bank", 0)
        print(
            f"Warning: encountered Rockwell instruction {instruction} "
            f"at ${pc_bank:02x}:{self.opcode_addr:04x}."
        )
        print("\tFuture Commander X16 hardware may ship with a 65C816 CPU,")
        print("\twhich does not support these instructions.")
        print("\tThis will be the only warning given for Rockwell")
        print("\tinstructions until the emulator is relaunched.")
        print("\tPass -rockwell to the command line to suppress this warning.\n")
        self.warn_rockwell = False

    # 65C02 additions

    def stz(self) -> None:
        self.put_value(0, self.regs.memory_16bit())

    def bra(self) -> None:
        regs = self.regs
        oldpc = regs.pc
        regs.pc = oldpc + self.reladdr
        if regs.e and (oldpc & 0xFF00) != (regs.pc & 0xFF00):
            self.clockticks += 1

    def _push_index(self, name: str) -> None:
        regs = self.regs
        self.penaltym = 1
        if regs.index_16bit():
            self.push16(getattr(regs, name))
        else:
            self.push8(getattr(regs, name + "l"))

    def _pull_index(self, name: str) -> None:
        regs = self.regs
        self.penaltym = 1
        if regs.index_16bit():
            setattr(regs, name, self.pull16())
            self._flags_nz(getattr(regs, name), True)
        else:
            low = name + "l"
            setattr(regs, low, self.pull8())
            self._flags_nz(getattr(regs, low), False)

    def phx(self) -> None:
        self._push_index("x")

    def plx(self) -> None:
        self._pull_index("x")

    def phy(self) -> None:
        self._push_index("y")

    def ply(self) -> None:
        self._pull_index("y")

    def tsb(self) -> None:
        regs = self.regs
        wide = regs.memory_16bit()
        value = self.get_value(wide)
        regs.zero_calc(regs.accumulator() & value, wide)
        self.put_value(value | regs.accumulator(), wide)

    def trb(self) -> None:
        regs = self.regs
        wide = regs.memory_16bit()
        value = self.get_value(wide)
        regs.zero_calc(regs.accumulator() & value, wide)
        mask = regs.c ^ 0xFFFF if wide else regs.a ^ 0xFF
        self.put_value(value & mask, wide)

    def dbg(self) -> None:
        """Stop into the debugger at the DBG opcode."""
        if self.on_stop is not None:
            self.on_stop((self.regs.pc - 1) & 0xFFFF, self.regs.k)

    def wai(self) -> None:
        self.waiting = 1

    def _bit_branch(self, name: str, bitmask: int, when_set: bool) -> None:
        if self.warn_rockwell:
            self.rockwell_warning(name)
        if bool(self.get_value(False) & bitmask) == when_set:
            regs = self.regs
            oldpc = regs.pc
            regs.pc = oldpc + self.reladdr
            self.clockticks += 2 if (oldpc & 0xFF00) != (regs.pc & 0xFF00) else 1

    def bbr(self, bitmask: int) -> None:
        """Branch if the bits in ``bitmask`` of a zero-page byte are clear."""
        self._bit_branch("BBR", bitmask, False)

    def bbs(self, bitmask: int) -> None:
        """Branch if the bits in ``bitmask`` of a zero-page byte are set."""
        self._bit_branch("BBS", bitmask, True)

    def _set_memory_bit(self, name: str, bitmask: int, on: bool) -> None:
        if self.warn_rockwell:
            self.rockwell_warning(name)
        value = self.get_value(False)
        self.put_value(value | bitmask if on else value & ~bitmask & 0xFF, False)

    def bbr0(self) -> None:
        self.bbr(0x01)

    def bbr1(self) -> None:
        self.bbr(0x02)

    def bbr2(self) -> None:
        self.bbr(0x04)

    def bbr3(self) -> None:
        self.bbr(0x08)

    def bbr4(self) -> None:
        self.bbr(0x10)

    def bbr5(self) -> None:
        self.bbr(0x20)

    def bbr6(self) -> None:
        self.bbr(0x40)

    def bbr7(self) -> None:
        self.bbr(0x80)

    def bbs0(self) -> None:
        self.bbs(0x01)

    def bbs1(self) -> None:
        self.bbs(0x02)

    def bbs2(self) -> None:
        self.bbs(0x04)

    def bbs3(self) -> None:
        self.bbs(0x08)

    def bbs4(self) -> None:
        self.bbs(0x10)

    def bbs5(self) -> None:
        self.bbs(0x20)

    def bbs6(self) -> None:
        self.bbs(0x40)

    def bbs7(self) -> None:
        self.bbs(0x80)

    def smb0(self) -> None:
        self._set_memory_bit("SMB0", 0x01, True)

    def smb1(self) -> None:
        self._set_memory_bit("SMB1", 0x02, True)

    def smb2(self) -> None:
        self._set_memory_bit("SMB2", 0x04, True)

    def smb3(self) -> None:
        self._set_memory_bit("SMB3", 0x08, True)

    def smb4(self) -> None:
        self._set_memory_bit("SMB4", 0x10, True)

    def smb5(self) -> None:
        self._set_memory_bit("SMB5", 0x20, True)

    def smb6(self) -> None:
        self._set_memory_bit("SMB6", 0x40, True)

    def smb7(self) -> None:
        self._set_memory_bit("SMB7", 0x80, True)

    def rmb0(self) -> None:
        self._set_memory_bit("RMB0", 0x01, False)

    def rmb1(self) -> None:
        self._set_memory_bit("RMB1", 0x02, False)

    def rmb2(self) -> None:
        self._set_memory_bit("RMB2", 0x04, False)

    def rmb3(self) -> None:
        self._set_memory_bit("RMB3", 0x08, False)

    def rmb4(self) -> None:
        self._set_memory_bit("RMB4", 0x10, False)

    def rmb5(self) -> None:
        self._set_memory_bit("RMB5", 0x20, False)

    def rmb6(self) -> None:
        self._set_memory_bit("RMB6", 0x40, False)

    def rmb7(self) -> None:
        self._set_memory_bit("RMB7", 0x80, False)