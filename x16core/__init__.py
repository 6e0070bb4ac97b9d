"""65C02/65C816 CPU core, cartridge images and helpers for the Commander X16."""

__version__ = "0.49.0"

__all__ = [
    "addressing",
    "cartridge",
    "cpu",
    "instructions",
    "mnemonics",
    "registers",
    "tables",
    "utf8",
]