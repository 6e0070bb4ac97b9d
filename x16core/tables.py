"""Opcode dispatch tables: addressing mode, operation and base cycle count."""

from __future__ import annotations

from dataclasses import dataclass

_ADDR_C02 = """
imp8 indx imm8  imp   zp   zp   zp   zp  imp immm  acc  imp abso abso abso zprel
 rel indy ind0  imp   zp  zpx  zpx   zp  imp absy  acc  imp abso absx absx zprel
abso indx imm8  imp   zp   zp   zp   zp  imp immm  acc  imp abso abso abso zprel
 rel indy ind0  imp  zpx  zpx  zpx   zp  imp absy  acc  imp absx absx absx zprel
 imp indx imm8  imp imm8   zp   zp   zp  imp immm  acc  imp abso abso abso zprel
 rel indy ind0  imp imm8  zpx  zpx   zp  imp absy  imp  imp  imp absx absx zprel
 imp indx imm8  imp   zp   zp   zp   zp  imp immm  acc  imp  ind abso abso zprel
 rel indy ind0  imp  zpx  zpx  zpx   zp  imp absy  imp  imp ainx absx absx zprel
 rel indx imm8  imp   zp   zp   zp   zp  imp immm  imp  imp abso abso abso zprel
 rel indy ind0  imp  zpx  zpx  zpy   zp  imp absy  imp  imp abso absx absx zprel
immx indx immx  imp   zp   zp   zp   zp  imp immm  imp  imp abso abso abso zprel
 rel indy ind0  imp  zpx  zpx  zpy   zp  imp absy  imp  imp absx absx absy zprel
immx indx imm8  imp   zp   zp   zp   zp  imp immm  imp  imp abso abso abso zprel
 rel indy ind0  imp imm8  zpx  zpx   zp  imp absy  imp  imp  imp absx absx zprel
immx indx imm8  imp   zp   zp   zp   zp  imp immm  imp  imp abso abso abso zprel
 rel indy ind0  imp imm8  zpx  zpx   zp  imp absy  imp  imp  imp absx absx zprel
"""

_ADDR_C816 = """
imp8 indx  imp8    sr    zp   zp   zp indl0  imp immm  acc  imp  abso abso abso  absl
 rel indy  ind0 sridy    zp  zpx  zpx indly  imp absy  acc  imp  abso absx absx abslx
abso indx  absl    sr    zp   zp   zp indl0  imp immm  acc  imp  abso abso abso  absl
 rel indy  ind0 sridy   zpx  zpx  zpx indly  imp absy  acc  imp  absx absx absx abslx
 imp indx  imm8    sr   bmv   zp   zp indl0  imp immm  acc  imp  abso abso abso  absl
 rel indy  ind0 sridy   bmv  zpx  zpx indly  imp absy  imp  imp  absl absx absx abslx
 imp indx rel16    sr    zp   zp   zp indl0  imp immm  acc  imp   ind abso abso  absl
 rel indy  ind0 sridy   zpx  zpx  zpx indly  imp absy  imp  imp  ainx absx absx abslx
 rel indx rel16    sr    zp   zp   zp indl0  imp immm  imp  imp  abso abso abso  absl
 rel indy  ind0 sridy   zpx  zpx  zpy indly  imp absy  imp  imp  abso absx absx abslx
immx indx  immx    sr    zp   zp   zp indl0  imp immm  imp  imp  abso abso abso  absl
 rel indy  ind0 sridy   zpx  zpx  zpy indly  imp absy  imp  imp  absx absx absy abslx
immx indx  imm8    sr    zp   zp   zp indl0  imp immm  imp  imp  abso abso abso  absl
 rel indy  ind0 sridy ind0p  zpx  zpx indly  imp absy  imp  imp aindl absx absx abslx
immx indx  imm8    sr    zp   zp   zp indl0  imp immm  imp  imp  abso abso abso  absl
 rel indy  ind0 sridy imm16  zpx  zpx indly  imp absy  imp  imp  ainx absx absx abslx
"""

_OPS_C02 = """
brk ora nop nop tsb ora asl rmb0 php ora asl nop tsb ora asl bbr0
bpl ora ora nop trb ora asl rmb1 clc ora inc nop trb ora asl bbr1
jsr and nop nop bit and rol rmb2 plp and rol nop bit and rol bbr2
bmi and and nop bit and rol rmb3 sec and dec nop bit and rol bbr3
rti eor nop nop nop eor lsr rmb4 pha eor lsr nop jmp eor lsr bbr4
bvc eor eor nop nop eor lsr rmb5 cli eor phy nop nop eor lsr bbr5
rts adc nop nop stz adc ror rmb6 pla adc ror nop jmp adc ror bbr6
bvs adc adc nop stz adc ror rmb7 sei adc ply nop jmp adc ror bbr7
bra sta nop nop sty sta stx smb0 dey bit txa nop sty sta stx bbs0
bcc sta sta nop sty sta stx smb1 tya sta txs nop stz sta stz bbs1
ldy lda ldx nop ldy lda ldx smb2 tay lda tax nop ldy lda ldx bbs2
bcs lda lda nop ldy lda ldx smb3 clv lda tsx nop ldy lda ldx bbs3
cpy cmp nop nop cpy cmp dec smb4 iny cmp dex wai cpy cmp dec bbs4
bne cmp cmp nop nop cmp dec smb5 cld cmp phx dbg nop cmp dec bbs5
cpx sbc nop nop cpx sbc inc smb6 inx sbc nop nop cpx sbc inc bbs6
beq sbc sbc nop nop sbc inc smb7 sed sbc plx nop nop sbc inc bbs7
"""

_OPS_C816 = """
brk ora cop ora tsb ora asl ora php ora asl phd tsb ora asl ora
bpl ora ora ora trb ora asl ora clc ora inc tcs trb ora asl ora
jsr and jsl and bit and rol and plp and rol pld bit and rol and
bmi and and and bit and rol and sec and dec tsc bit and rol and
rti eor wdm eor mvp eor lsr eor pha eor lsr phk jmp eor lsr eor
bvc eor eor eor mvn eor lsr eor cli eor phy tcd jml eor lsr eor
rts adc per adc stz adc ror adc pla adc ror rtl jmp adc ror adc
bvs adc adc adc stz adc ror adc sei adc ply tdc jmp adc ror adc
bra sta brl sta sty sta stx sta dey bit txa phb sty sta stx sta
bcc sta sta sta sty sta stx sta tya sta txs txy stz sta stz sta
ldy lda ldx lda ldy lda ldx lda tay lda tax plb ldy lda ldx lda
bcs lda lda lda ldy lda ldx lda clv lda tsx tyx ldy lda ldx lda
cpy cmp rep cmp cpy cmp dec cmp iny cmp dex wai cpy cmp dec cmp
bne cmp cmp cmp pei cmp dec cmp cld cmp phx dbg jml cmp dec cmp
cpx sbc sep sbc cpx sbc inc sbc inx sbc nop xba cpx sbc inc sbc
beq sbc sbc sbc pea sbc inc sbc sed sbc plx xce jsr sbc inc sbc
"""

_TICKS_C02 = """
7 6 2 1 5 3 5 5 3 2 2 1 6 4 6 5
2 5 5 1 5 4 6 5 2 4 2 1 6 4 7 5
6 6 2 1 3 3 5 5 4 2 2 1 4 4 6 5
2 5 5 1 4 4 6 5 2 4 2 1 4 4 7 5
6 6 2 1 3 3 5 5 3 2 2 1 3 4 6 5
2 5 5 1 4 4 6 5 2 4 3 1 8 4 7 5
6 6 2 1 3 3 5 5 4 2 2 1 5 4 6 5
2 5 5 1 4 4 6 5 2 4 4 1 6 4 7 5
3 6 2 1 3 3 3 5 2 2 2 1 4 4 4 5
2 6 5 1 4 4 4 5 2 5 2 1 4 5 5 5
2 6 2 1 3 3 3 5 2 2 2 1 4 4 4 5
2 5 5 1 4 4 4 5 2 4 2 1 4 4 4 5
2 6 2 1 3 3 5 5 2 2 2 3 4 4 6 5
2 5 5 1 4 4 6 5 2 4 3 1 4 4 7 5
2 6 2 1 3 3 5 5 2 2 2 1 4 4 6 5
2 5 5 1 4 4 6 5 2 4 4 1 4 4 7 5
"""

_TICKS_C816 = """
7 6 7 4 5 3 5 6 3 2 2 4 6 4 6 5
2 5 5 7 5 4 6 6 2 4 2 2 6 4 7 5
6 6 8 4 3 3 5 6 4 2 2 5 4 4 6 5
2 5 5 7 4 4 6 6 2 4 2 2 4 4 7 5
6 6 2 4 7 3 5 6 3 2 2 3 3 4 6 5
2 5 5 7 7 4 6 6 2 4 3 2 4 4 7 5
6 6 6 4 3 3 5 6 4 2 2 6 5 4 6 5
2 5 5 7 4 4 6 6 2 4 4 2 6 4 7 5
3 6 4 4 3 3 3 6 2 2 2 3 4 4 4 5
2 6 5 7 4 4 4 6 2 5 2 2 4 5 5 5
2 6 2 4 3 3 3 6 2 2 2 4 4 4 4 5
2 5 5 7 4 4 4 6 2 4 2 2 4 4 4 5
2 6 3 4 3 3 5 6 2 2 2 3 4 4 6 5
2 5 5 7 6 4 6 6 2 4 3 1 6 4 7 5
2 6 3 4 3 3 5 6 2 2 2 3 4 4 6 5
2 5 5 7 5 4 6 6 2 4 4 2 8 4 7 5
"""

# "and" is a keyword; the operation is implemented under this name.
_RENAMED = {"and": "and_"}


def _words(text: str) -> tuple[str, ...]:
    words = tuple(text.split())
    if len(words) != 256:
        raise ValueError(f"opcode table has {len(words)} entries, expected 256")
    return words


@dataclass(frozen=True)
class OpcodeTable:
    """Per-opcode addressing mode name, operation name and base cycle count."""

    modes: tuple[str, ...]
    operations: tuple[str, ...]
    ticks: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.modes)

    def __getitem__(self, opcode: int) -> tuple[str, str, int]:
        if not 0 <= opcode <= 0xFF:
            raise ValueError(f"opcode out of range: {opcode}")
        return self.modes[opcode], self.operations[opcode], self.ticks[opcode]


def _build(modes: str, operations: str, ticks: str) -> OpcodeTable:
    return OpcodeTable(
        modes=_words(modes),
        operations=tuple(_RENAMED.get(name, name) for name in _words(operations)),
        ticks=tuple(int(tick) for tick in _words(ticks)),
    )


_C02 = _build(_ADDR_C02, _OPS_C02, _TICKS_C02)
_C816 = _build(_ADDR_C816, _OPS_C816, _TICKS_C816)


def opcode_table(is65c816: bool = False) -> OpcodeTable:
    """Return the dispatch table for the 65C02 or the 65C816."""
    return _C816 if is65c816 else _C02