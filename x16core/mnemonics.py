"""Disassembly templates for the 65C02 and 65C816 opcode sets.

Each template is a printf-style string; operands are filled in by the caller.
"""

from __future__ import annotations

_C02 = (
    # $0X
    "brk #$%02x", "ora ($%02x,x)", "nop #$%02x", "nop ",
    "tsb $%02x", "ora $%02x", "asl $%02x", "rmb0 $%02x",
    "php ", "ora #$%%0%hhux", "asl a", "nop ",
    "tsb $%04x", "ora $%04x", "asl $%04x", "bbr0 $%02x, $%04x",
    # $1X
    "bpl $%02x", "ora ($%02x),y", "ora ($%02x)", "nop ",
    "trb $%02x", "ora $%02x,x", "asl $%02x,x", "rmb1 $%02x",
    "clc ", "ora $%04x,y", "inc a", "nop ",
    "trb $%04x", "ora $%04x,x", "asl $%04x,x", "bbr1 $%02x, $%04x",
    # $2X
    "jsr $%04x", "and ($%02x,x)", "nop #$%02x", "nop ",
    "bit $%02x", "and $%02x", "rol $%02x", "rmb2 $%02x",
    "plp ", "and #$%%0%hhux", "rol a", "nop ",
    "bit $%04x", "and $%04x", "rol $%04x", "bbr2 $%02x, $%04x",
    # $3X
    "bmi $%02x", "and ($%02x),y", "and ($%02x)", "nop ",
    "bit $%02x,x", "and $%02x,x", "rol $%02x,x", "rmb3 $%02x",
    "sec ", "and $%04x,y", "dec a", "nop ",
    "bit $%04x,x", "and $%04x,x", "rol $%04x,x", "bbr3 $%02x, $%04x",
    # $4X
    "rti ", "eor ($%02x,x)", "nop #$%02x", "nop ",
    "nop #$%02x", "eor $%02x", "lsr $%02x", "rmb4 $%02x",
    "pha ", "eor #$%%0%hhux", "lsr a", "nop ",
    "jmp $%04x", "eor $%04x", "lsr $%04x", "bbr4 $%02x, $%04x",
    # $5X
    "bvc $%02x", "eor ($%02x),y", "eor ($%02x)", "nop ",
    "nop #$%02x", "eor $%02x,x", "lsr $%02x,x", "rmb5 $%02x",
    "cli ", "eor $%04x,y", "phy ", "nop ",
    "nop ", "eor $%04x,x", "lsr $%04x,x", "bbr5 $%02x, $%04x",
    # $6X
    "rts ", "adc ($%02x,x)", "nop #$%02x", "nop ",
    "stz $%02x", "adc $%02x", "ror $%02x", "rmb6 $%02x",
    "pla ", "adc #$%%0%hhux", "ror a", "nop ",
    "jmp ($%04x)", "adc $%04x", "ror $%04x", "bbr6 $%02x, $%04x",
    # $7X
    "bvs $%02x", "adc ($%02x),y", "adc ($%02x)", "nop ",
    "stz $%02x,x", "adc $%02x,x", "ror $%02x,x", "rmb7 $%02x",
    "sei ", "adc $%04x,y", "ply ", "nop ",
    "jmp ($%04x,x)", "adc $%04x,x", "ror $%04x,x", "bbr7 $%02x, $%04x",
    # $8X
    "bra $%02x", "sta ($%02x,x)", "nop #$%02x", "nop ",
    "sty $%02x", "sta $%02x", "stx $%02x", "smb0 $%02x",
    "dey ", "bit #$%%0%hhux", "txa ", "nop ",
    "sty $%04x", "sta $%04x", "stx $%04x", "bbs0 $%02x, $%04x",
    # $9X
    "bcc $%02x", "sta ($%02x),y", "sta ($%02x)", "nop ",
    "sty $%02x,x", "sta $%02x,x", "stx $%02x,y", "smb1 $%02x",
    "tya ", "sta $%04x,y", "txs ", "nop ",
    "stz $%04x", "sta $%04x,x", "stz $%04x,x", "bbs1 $%02x, $%04x",
    # $AX
    "ldy #$%%0%hhux", "lda ($%02x,x)", "ldx #$%%0%hhux", "nop ",
    "ldy $%02x", "lda $%02x", "ldx $%02x", "smb2 $%02x",
    "tay ", "lda #$%%0%hhux", "tax ", "nop ",
    "ldy $%04x", "lda $%04x", "ldx $%04x", "bbs2 $%02x, $%04x",
    # $BX
    "bcs $%02x", "lda ($%02x),y", "lda ($%02x)", "nop ",
    "ldy $%02x,x", "lda $%02x,x", "ldx $%02x,y", "smb3 $%02x",
    "clv ", "lda $%04x,y", "tsx ", "nop ",
    "ldy $%04x,x", "lda $%04x,x", "ldx $%04x,y", "bbs3 $%02x, $%04x",
    # $CX
    "cpy #$%%0%hhux", "cmp ($%02x,x)", "nop #$%02x", "nop ",
    "cpy $%02x", "cmp $%02x", "dec $%02x", "smb4 $%02x",
    "iny ", "cmp #$%%0%hhux", "dex ", "wai ",
    "cpy $%04x", "cmp $%04x", "dec $%04x", "bbs4 $%02x, $%04x",
    # $DX
    "bne $%02x", "cmp ($%02x),y", "cmp ($%02x)", "nop ",
    "nop #$%02x", "cmp $%02x,x", "dec $%02x,x", "smb5 $%02x",
    "cld ", "cmp $%04x,y", "phx ", "dbg ",
    "nop ", "cmp $%04x,x", "dec $%04x,x", "bbs5 $%02x, $%04x",
    # $EX
    "cpx #$%%0%hhux", "sbc ($%02x,x)", "nop #$%02x", "nop ",
    "cpx $%02x", "sbc $%02x", "inc $%02x", "smb6 $%02x",
    "inx ", "sbc #$%%0%hhux", "nop ", "nop ",
    "cpx $%04x", "sbc $%04x", "inc $%04x", "bbs6 $%02x, $%04x",
    # $FX
    "beq $%02x", "sbc ($%02x),y", "sbc ($%02x)", "nop ",
    "nop #$%02x", "sbc $%02x,x", "inc $%02x,x", "smb7 $%02x",
    "sed ", "sbc $%04x,y", "plx ", "nop ",
    "nop ", "sbc $%04x,x", "inc $%04x,x", "bbs7 $%02x, $%04x",
)

# Accumulator operations that own columns 3, 7 and F on the 65C816, one per pair of rows.
_LONG_MODE_OPS = ("ora", "and", "eor", "adc", "sta", "lda", "cmp", "sbc")

_C816_OVERRIDES = {
    0x02: "cop #$%02x",
    0x22: "jsl $%06x",
    0x42: "wdm #$%02x",
    0x62: "per $%04x",
    0x82: "brl $%04x",
    0xC2: "rep #$%02x",
    0xE2: "sep #$%02x",
    0x44: "mvp $%02x,$%02x",
    0x54: "mvn $%02x,$%02x",
    0xD4: "pei ($%02x)",
    0xF4: "pea #$%04x",
    0x5C: "jml $%06x",
    0xDC: "jml [$%04x]",
    0xFC: "jsr ($%04x,x)",
    0x0B: "phd ",
    0x1B: "tcs ",
    0x2B: "pld ",
    0x3B: "tsc ",
    0x4B: "phk ",
    0x5B: "tcd ",
    0x6B: "rtl ",
    0x7B: "tdc ",
    0x8B: "phb ",
    0x9B: "txy ",
    0xAB: "plb ",
    0xBB: "tyx ",
    0xCB: "wai ",
    0xDB: "dbg ",
    0xEB: "xba ",
    0xFB: "xce ",
}


def _build_c816() -> tuple[str, ...]:
    table = list(_C02)
    for pair, op in enumerate(_LONG_MODE_OPS):
        even = (pair * 2) << 4
        odd = even + 0x10
        table[even | 0x3] = op + " $%02x,S"
        table[even | 0x7] = op + " [$%02x]"
        table[even | 0xF] = op + " $%06x"
        table[odd | 0x3] = op + " ($%02x,S),y"
        table[odd | 0x7] = op + " [$%02x],y"
        table[odd | 0xF] = op + " $%06x,x"
    for opcode, text in _C816_OVERRIDES.items():
        table[opcode] = text
    return tuple(table)


_C816 = _build_c816()


def mnemonic(opcode: int, is65c816: bool = False) -> str:
    """Return the disassembly template for an opcode."""
    if not 0 <= opcode <= 0xFF:
        raise ValueError(f"opcode out of range: {opcode}")
    return (_C816 if is65c816 else _C02)[opcode]