# x16core

Core pieces of a Commander X16 emulator in plain Python, with no
third-party dependencies:

- `x16core.cpu`: a 65C02 / 65C816 CPU (`Cpu`) with cycle counting,
  interrupts, `WAI`, `DBG` and the Rockwell bit instructions, plus a simple
  sparse 24-bit memory (`Bus`);
- `x16core.registers`: the register file (`Registers`), status flags
  (`Flag`), interrupt vectors (`InterruptVector`) and wrap-around helpers;
- `x16core.addressing`, `x16core.instructions`, `x16core.tables`: the
  addressing modes, instruction handlers and per-opcode dispatch tables
  (`opcode_table(is65c816)`);
- `x16core.mnemonics`: disassembly templates per opcode (`mnemonic`);
- `x16core.cartridge`: reading, building and writing `.crt` cartridge
  images (`Cartridge`, `CartridgeHeader`, `BankType`, `CartridgeError`);
- `x16core.utf8`: `utf8_encode(code_point)`, returning the UTF-8 bytes of a
  single code point and raising `ValueError` outside 0-0x10FFFF.

## Installing

```
pip install .
```

Python 3.10 or newer is required.

## Running code on the CPU

The CPU reads and writes through an object with `read(address, bank)` and
`write(address, bank, value)`. `Bus` is a ready-made one: 256 banks of
64 KiB, unwritten memory reading as zero. Any object with the same two
methods works too, for example a subclass of `Bus`:

```python
from x16core.cpu import Bus, Cpu


class FlatMemory(Bus):
    def __init__(self):
        super().__init__()
        self.ram = bytearray(0x10000)

    def read(self, address, bank):
        return self.ram[address & 0xFFFF]

    def write(self, address, bank, value):
        self.ram[address & 0xFFFF] = value & 0xFF


memory = FlatMemory()
memory.ram[0xFFFC:0xFFFE] = (0x00, 0x02)        # reset vector -> $0200
memory.ram[0x0200:0x0203] = (0xA9, 0x42, 0xEA)  # lda #$42 ; nop

cpu = Cpu(memory, False)
cpu.step()
print(hex(cpu.regs.a))   # 0x42
```

- `Cpu.step()` executes one instruction (or one idle cycle while waiting
  after `WAI`); `Cpu.run(tickcount)` executes until that many more clock
  ticks have passed. The running count is `cpu.clockticks`, the number of
  executed instructions `cpu.instructions`.
- `Cpu.irq()` takes an IRQ when the interrupt-disable flag is clear;
  `Cpu.nmi()` always takes an NMI. Both end a `WAI`.
- `Cpu.reset(is65c816)` reloads PC from `$FFFC` and selects the 65C02 or
  65C816 opcode set.
- `Cpu.hook_external(callback)` calls `callback()` after every instruction;
  `None` removes it.
- `cpu.on_stop(address, bank)` is called by the `DBG` opcode and
  `cpu.on_vector_pull()` whenever an interrupt vector is fetched.
- The first Rockwell instruction (`BBR`, `BBS`, `RMB`, `SMB`) prints a
  warning once; set `cpu.warn_rockwell = False` to silence it.

## Disassembly text

```python
from x16core.mnemonics import mnemonic

print(mnemonic(0xEA, False))   # "nop "
print(mnemonic(0x22, True))    # "jsl $%06x"
```

The templates are printf-style; filling in operands is left to the caller.

## Cartridges

```python
from x16core.cartridge import BankType, Cartridge

cart = Cartridge()
cart.description = "Demo"
cart.fill(32, 33, BankType.ROM, 0xFF)
cart.save("game.crt")

loaded = Cartridge.load("game.crt", False)
print(loaded.read(0xC000, 32))   # 255
print(loaded.description)        # Demo
```

Banks are numbered 32 to 255, as the machine sees them, and are addressed
at `$C000-$FFFF`. `define_bank_range`, `fill` and `import_files` set bank
types; `import_files` copies files back to back and pads the last bank.
`write` only changes RAM and NVRAM banks. `Cartridge.load` takes the
contents of initialized NVRAM banks from the `.nvram` file next to the
`.crt` file when there is one, and `save_nvram()` writes them back there.

Bank numbers outside 32-255, or a start bank after the end bank, raise
`ValueError`. Files that cannot be read or written, are not `.crt` files,
or have a bad header raise `CartridgeError`.

## What this package does not do

It is a CPU and a cartridge format, not a whole machine: there is no
Commander X16 memory map, video, sound, keyboard, storage or debugger, and
no command-line program. Cartridges are always written uncompressed.

## Running the tests

```
pip install .[test]
pytest
```