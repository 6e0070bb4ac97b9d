import pytest

from x16core.addressing import AddressingModes
from x16core.registers import Flag, Registers


class Memory:
    def __init__(self):
        self.cells = {}
        self.reads = []

    def load(self, address, data, bank=0):
        for offset, byte in enumerate(data):
            self.cells[(bank, address + offset)] = byte

    def read(self, address, bank):
        self.reads.append((bank, address))
        return self.cells.get((bank, address), 0)


def make(**fields):
    memory = Memory()
    regs = Registers(**fields)
    return AddressingModes(regs, memory.read), memory


def word(value):
    return [value & 0xFF, (value >> 8) & 0xFF]


def long(value):
    return [value & 0xFF, (value >> 8) & 0xFF, (value >> 16) & 0xFF]


PC = 0x0800


def test_implied_modes_change_nothing():
    modes, _ = make(pc=PC)
    for name in ("imp", "imp8", "acc"):
        getattr(modes, name)()
        assert modes.regs.pc == PC
        assert modes.ea == 0


def test_imm8():
    modes, _ = make(pc=PC)
    modes.imm8()
    assert modes.ea == PC
    assert modes.regs.pc == PC + 1


def test_immm_follows_memory_width():
    narrow, _ = make(pc=PC)
    narrow.immm()
    assert narrow.regs.pc == PC + 1
    wide, _ = make(pc=PC, is65c816=True, status=0)
    wide.immm()
    assert wide.ea == PC
    assert wide.regs.pc == PC + 2


def test_immx_follows_index_width():
    wide, _ = make(pc=PC, is65c816=True, status=Flag.MEMORY_WIDTH)
    wide.immx()
    assert wide.regs.pc == PC + 2
    narrow, _ = make(pc=PC, is65c816=True, status=Flag.INDEX_WIDTH)
    narrow.immx()
    assert narrow.regs.pc == PC + 1


def test_imm16():
    modes, _ = make(pc=PC)
    modes.imm16()
    assert modes.ea == PC
    assert modes.regs.pc == PC + 2


def test_zp():
    modes, memory = make(pc=PC)
    memory.load(PC, [0x80])
    modes.zp()
    assert modes.ea == 0x80
    assert modes.penaltyd == 0
    assert modes.regs.pc == PC + 1


def test_zpx_wraps_in_emulation_mode():
    modes, memory = make(pc=PC, x=0xF0)
    memory.load(PC, [0x20])
    modes.zpx()
    assert modes.ea == 0x10


def test_zp_native_unaligned_direct_page():
    dp, operand, y = 0x1201, 0x05, 0x03
    modes, memory = make(pc=PC, dp=dp, e=0, y=y)
    memory.load(PC, [operand])
    modes.zpy()
    assert modes.ea == dp + operand + y
    assert modes.penaltyd == 1


def test_rel_sign_extends():
    modes, memory = make(pc=PC)
    memory.load(PC, [0xFE])
    modes.rel()
    assert modes.reladdr == 0xFF00 | 0xFE
    assert modes.regs.pc == PC + 1
    memory.load(PC + 1, [0x10])
    modes.rel()
    assert modes.reladdr == 0x10


def test_rel16():
    offset = 0x8123
    modes, memory = make(pc=PC)
    memory.load(PC, word(offset))
    modes.rel16()
    assert modes.reladdr == offset
    assert modes.regs.pc == PC + 2


def test_abso_uses_data_bank():
    target, db = 0x1234, 0x02
    modes, memory = make(pc=PC, db=db)
    memory.load(PC, word(target))
    modes.abso()
    assert modes.ea == (db << 16) | target
    assert modes.regs.pc == PC + 2


def test_addr_with_db():
    modes, _ = make(db=0x7F)
    assert modes.addr_with_db(0xABCD) == (0x7F << 16) | 0xABCD


def test_absl():
    target = 0x03ABCD
    modes, memory = make(pc=PC)
    memory.load(PC, long(target))
    modes.absl()
    assert modes.ea == target
    assert modes.regs.pc == PC + 3


@pytest.mark.parametrize("x,penalty", [(0x01, 0), (0x20, 1)])
def test_absx_page_cross(x, penalty):
    target = 0x12F0
    modes, memory = make(pc=PC, x=x)
    memory.load(PC, word(target))
    modes.absx()
    assert modes.ea == target + x
    assert modes.penaltyaddr == penalty


def test_absy_page_cross():
    target, y = 0x20FF, 0x01
    modes, memory = make(pc=PC, y=y)
    memory.load(PC, word(target))
    modes.absy()
    assert modes.ea == target + y
    assert modes.penaltyaddr == 1


def test_abslx():
    target, x = 0x0210F0, 0x05
    modes, memory = make(pc=PC, x=x)
    memory.load(PC, long(target))
    modes.abslx()
    assert modes.ea == target + x
    assert modes.penaltyaddr == 0
    assert modes.regs.pc == PC + 3


def test_ind_reads_pointer_from_bank_zero():
    pointer, target = 0x3000, 0xBEEF
    modes, memory = make(pc=PC, k=1)
    memory.load(PC, word(pointer), bank=1)
    memory.load(pointer, word(target), bank=0)
    modes.ind()
    assert modes.ea == target
    assert (0, pointer) in memory.reads


def test_ind_does_not_wrap_within_page():
    pointer, target = 0x30FF, 0x4567
    modes, memory = make(pc=PC)
    memory.load(PC, word(pointer))
    memory.load(pointer, word(target))
    modes.ind()
    assert modes.ea == target


def test_aindl():
    pointer, target = 0x3000, 0x05BEEF
    modes, memory = make(pc=PC)
    memory.load(PC, word(pointer))
    memory.load(pointer, long(target))
    modes.aindl()
    assert modes.ea == target
    assert modes.regs.pc == PC + 2


def test_ainx():
    base, x, target = 0x3000, 4, 0x9ABC
    modes, memory = make(pc=PC, x=x)
    memory.load(PC, word(base))
    memory.load(base + x, word(target))
    modes.ainx()
    assert modes.ea == target
    assert modes.regs.pc == PC + 2


def test_ind0():
    operand, target = 0x40, 0x2345
    modes, memory = make(pc=PC)
    memory.load(PC, [operand])
    memory.load(operand, word(target))
    modes.ind0()
    assert modes.ea == target
    assert modes.penaltyd == 0


def test_indx():
    operand, x, target = 0x40, 0x02, 0x6789
    modes, memory = make(pc=PC, x=x)
    memory.load(PC, [operand])
    memory.load(operand + x, word(target))
    modes.indx()
    assert modes.ea == target


def test_indy_page_cross():
    operand, y, target = 0x40, 0x10, 0x12F8
    modes, memory = make(pc=PC, y=y)
    memory.load(PC, [operand])
    memory.load(operand, word(target))
    modes.indy()
    assert modes.ea == target + y
    assert modes.penaltyaddr == 1


def test_indl0_and_indly():
    operand, target, y = 0x20, 0x04ABCD, 0x03
    modes, memory = make(pc=PC, y=y)
    memory.load(PC, [operand, operand])
    memory.load(operand, long(target))
    modes.indl0()
    assert modes.ea == target
    modes.indly()
    assert modes.ea == target + y
    assert modes.regs.pc == PC + 2


def test_ind0p_uses_plain_addition():
    dp, operand, target = 0x0180, 0x10, 0x1357
    modes, memory = make(pc=PC, dp=dp)
    memory.load(PC, [operand])
    memory.load(dp + operand, word(target))
    modes.ind0p()
    assert modes.ea == target
    assert modes.penaltyd == 1


def test_zprel():
    modes, memory = make(pc=PC)
    memory.load(PC, [0x33, 0xF0])
    modes.zprel()
    assert modes.ea == 0x33
    assert modes.reladdr == 0xFF00 | 0xF0
    assert modes.regs.pc == PC + 2


def test_sr():
    sp, operand = 0x01F0, 0x03
    modes, memory = make(pc=PC, sp=sp)
    memory.load(PC, [operand])
    modes.sr()
    assert modes.ea == sp + operand


def test_sridy():
    sp, operand, target, y = 0x01F0, 0x02, 0x4000, 0x05
    modes, memory = make(pc=PC, sp=sp, y=y)
    memory.load(PC, [operand])
    memory.load(sp + operand, word(target))
    modes.sridy()
    assert modes.ea == target + y
    assert modes.penaltyaddr == 0


def test_bmv():
    dest, source = 0x7E, 0x01
    modes, memory = make(pc=PC)
    memory.load(PC, [dest, source])
    modes.bmv()
    assert modes.ea == (source << 8) | dest
    assert modes.regs.pc == PC + 2