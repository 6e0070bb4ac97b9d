"""Commander X16 cartridge images (.crt): header, bank layout, load and save."""

from __future__ import annotations

import os
import random
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Optional

EMULATOR_VERSION = "49"
EMULATOR_VERSION_NAME = "next"

CART_MAX_BANKS = 224
CART_BANK_SIZE = 0x4000
CART_MAX_SIZE = CART_BANK_SIZE * CART_MAX_BANKS
FIRST_CART_BANK = 32

MAGIC_NUMBER_SIZE = 16
VERSION_SIZE = 16
DESCRIPTION_SIZE = 32
AUTHOR_SIZE = 32
COPYRIGHT_SIZE = 32
PROGRAM_VERSION_SIZE = 32
RESERVED_SIZE = 64 + 32

MAGIC_NUMBER = b"CX16 CARTRIDGE\r\n"
CURRENT_VERSION = b"01.00" + b" " * 11

HEADER_SIZE = (
    MAGIC_NUMBER_SIZE
    + VERSION_SIZE
    + DESCRIPTION_SIZE
    + AUTHOR_SIZE
    + COPYRIGHT_SIZE
    + PROGRAM_VERSION_SIZE
    + RESERVED_SIZE
    + CART_MAX_BANKS
)


class BankType(IntEnum):
    """How a cartridge bank is stored and whether it is writable."""

    NONE = 0
    ROM = 1
    UNINITIALIZED_RAM = 2
    INITIALIZED_RAM = 3
    UNINITIALIZED_NVRAM = 4
    INITIALIZED_NVRAM = 5


_NUM_BANK_TYPES = 5
_WRITABLE = frozenset(
    (
        BankType.UNINITIALIZED_RAM,
        BankType.INITIALIZED_RAM,
        BankType.UNINITIALIZED_NVRAM,
        BankType.INITIALIZED_NVRAM,
    )
)
# Bank types whose contents are stored in the .crt file.
_STORED_IN_CART = frozenset((BankType.ROM, BankType.INITIALIZED_RAM, BankType.INITIALIZED_NVRAM))
_STORED_IN_NVRAM = frozenset((BankType.UNINITIALIZED_NVRAM, BankType.INITIALIZED_NVRAM))


class CartridgeError(Exception):
    """A cartridge file could not be read, written or understood."""


_FIELDS = (
    ("magic_number", MAGIC_NUMBER_SIZE),
    ("cart_version", VERSION_SIZE),
    ("description", DESCRIPTION_SIZE),
    ("author", AUTHOR_SIZE),
    ("copyright", COPYRIGHT_SIZE),
    ("prg_version", PROGRAM_VERSION_SIZE),
    ("reserved", RESERVED_SIZE),
    ("bank_info", CART_MAX_BANKS),
)


@dataclass
class CartridgeHeader:
    """The fixed-size header at the start of a .crt file."""

    magic_number: bytes = MAGIC_NUMBER
    cart_version: bytes = CURRENT_VERSION
    description: bytes = bytes(DESCRIPTION_SIZE)
    author: bytes = bytes(AUTHOR_SIZE)
    copyright: bytes = bytes(COPYRIGHT_SIZE)
    prg_version: bytes = bytes(PROGRAM_VERSION_SIZE)
    reserved: bytes = bytes(RESERVED_SIZE)
    bank_info: bytearray = field(default_factory=lambda: bytearray(CART_MAX_BANKS))

    def pack(self) -> bytes:
        """Serialize the header to its on-disk form."""
        parts = []
        for name, size in _FIELDS:
            value = bytes(getattr(self, name))
            if len(value) != size:
                raise CartridgeError(f"header field {name} must be {size} bytes, got {len(value)}")
            parts.append(value)
        return b"".join(parts)

    @classmethod
    def unpack(cls, data: bytes) -> "CartridgeHeader":
        """Parse a header from the first HEADER_SIZE bytes of ``data``."""
        if len(data) < HEADER_SIZE:
            raise CartridgeError("Could not read header.")
        values = {}
        offset = 0
        for name, size in _FIELDS:
            values[name] = bytes(data[offset : offset + size])
            offset += size
        values["bank_info"] = bytearray(values["bank_info"])
        return cls(**values)


def _extension(path: str) -> str:
    name = os.path.basename(os.fspath(path))
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def _cart_bank(bank: int) -> Optional[int]:
    """Translate a system bank number (32-255) into a cartridge bank index."""
    index = bank - FIRST_CART_BANK
    if bank < FIRST_CART_BANK or index >= CART_MAX_BANKS:
        return None
    return index


def _bank_range(start_bank: int, end_bank: int) -> range:
    start = _cart_bank(start_bank)
    end = _cart_bank(end_bank)
    if start is None or end is None:
        raise ValueError(f"bank out of range {FIRST_CART_BANK}-{FIRST_CART_BANK + CART_MAX_BANKS - 1}")
    if start > end:
        raise ValueError(f"start bank {start_bank} is after end bank {end_bank}")
    return range(start, end + 1)


def _read_bank(stream, what: str) -> bytes:
    data = stream.read(CART_BANK_SIZE)
    if len(data) != CART_BANK_SIZE:
        raise CartridgeError(f"Could not read bank data from {what}.")
    return data


def _text_field(raw: bytes) -> str:
    text = raw.split(b"\0", 1)[0].decode("latin-1")
    return text.rstrip()


def _padded(text: str, size: int) -> bytes:
    encoded = text.encode("latin-1", errors="replace")[:size]
    return encoded.ljust(size, b" ")


def _text_property(name: str, size: int, doc: str) -> property:
    def getter(self: "Cartridge") -> str:
        return _text_field(getattr(self.header, name))

    def setter(self: "Cartridge", value: str) -> None:
        setattr(self.header, name, _padded(value, size))

    return property(getter, setter, doc=doc)


class Cartridge:
    """A cartridge image: header plus up to 224 banks of 16 KiB."""

    def __init__(self) -> None:
        self.header = CartridgeHeader()
        self.memory = bytearray(CART_MAX_SIZE)
        self.path: Optional[str] = None
        self.nvram_path: Optional[str] = None

    description = _text_property("description", DESCRIPTION_SIZE, "Free-form description.")
    author = _text_property("author", AUTHOR_SIZE, "Author of the program.")
    copyright = _text_property("copyright", COPYRIGHT_SIZE, "Copyright notice.")
    program_version = _text_property("prg_version", PROGRAM_VERSION_SIZE, "Program version.")

    @staticmethod
    def _initialize_bank(bank_data: memoryview, randomize: bool) -> None:
        if randomize:
            bank_data[:] = random.randbytes(CART_BANK_SIZE)
        else:
            bank_data[:] = bytes(CART_BANK_SIZE)

    @classmethod
    def load(cls, path: str, randomize: bool = False) -> "Cartridge":
        """Load a .crt file, taking NVRAM contents from the sibling .nvram file if present."""
        path = os.fspath(path)
        if _extension(path).lower() != ".crt":
            raise CartridgeError(f'Path "{path}" does not appear to be a cartridge (.crt) file.')
        nvram_path = path[:-3] + "nvram"

        cart = cls()
        cart.path = path
        cart.nvram_path = nvram_path
        try:
            cart_file = open(path, "rb")
        except OSError as exc:
            raise CartridgeError(f'Could not load cartridge "{path}": {exc}') from exc
        try:
            nvram_file = open(nvram_path, "rb")
        except OSError:
            nvram_file = None

        try:
            with cart_file:
                raw = cart_file.read(HEADER_SIZE)
                if len(raw) < HEADER_SIZE:
                    raise CartridgeError(f'Could not load cartridge "{path}": Could not read header.')
                header = CartridgeHeader.unpack(raw)
                if header.magic_number != MAGIC_NUMBER:
                    raise CartridgeError(f'Could not load cartridge "{path}": Not a cartridge file.')
                if header.cart_version.split(b"\0", 1)[0] != CURRENT_VERSION:
                    raise CartridgeError(f'Could not load cartridge "{path}": Unsupported version.')
                cart.header = header

                view = memoryview(cart.memory)
                for index, kind in enumerate(header.bank_info):
                    bank_data = view[index * CART_BANK_SIZE : (index + 1) * CART_BANK_SIZE]
                    if kind == BankType.NONE:
                        continue
                    if kind in (BankType.ROM, BankType.INITIALIZED_RAM):
                        bank_data[:] = _read_bank(cart_file, path)
                    elif kind in (BankType.UNINITIALIZED_RAM, BankType.UNINITIALIZED_NVRAM):
                        cls._initialize_bank(bank_data, randomize)
                    elif kind == BankType.INITIALIZED_NVRAM:
                        if nvram_file is not None:
                            bank_data[:] = _read_bank(nvram_file, nvram_path)
                            cart_file.seek(CART_BANK_SIZE, os.SEEK_CUR)
                        else:
                            bank_data[:] = _read_bank(cart_file, path)
                    else:
                        print(f"Warning: Unknown cartridge bank type at {index}")
        finally:
            if nvram_file is not None:
                nvram_file.close()
        return cart

    def define_bank_range(self, start_bank: int, end_bank: int, bank_type: int) -> None:
        """Set the type of system banks start_bank..end_bank (inclusive)."""
        banks = _bank_range(start_bank, end_bank)
        if bank_type > _NUM_BANK_TYPES:
            print(f"Warning: Attempting to define unknown cartridge bank type {bank_type}")
        for index in banks:
            self.header.bank_info[index] = bank_type & 0xFF

    def import_files(
        self,
        paths: Iterable[str],
        start_bank: int,
        bank_type: int,
        fill_value: int = 0,
    ) -> None:
        """Copy files back to back from start_bank, padding the last bank with fill_value."""
        start = _cart_bank(start_bank)
        if start is None:
            raise ValueError(f"bank out of range: {start_bank}")
        address = start * CART_BANK_SIZE
        available = CART_MAX_SIZE - address

        for path in paths:
            if available == 0:
                raise CartridgeError("Cartridge is full.")
            try:
                with open(path, "rb") as stream:
                    data = stream.read(available)
            except OSError as exc:
                raise CartridgeError(f'Could not read "{path}": {exc}') from exc
            self.memory[address : address + len(data)] = data
            available -= len(data)
            address += len(data)

        fill_end = min((address + CART_BANK_SIZE - 1) & (0xFF << 14), CART_MAX_SIZE)
        if fill_end > address:
            self.memory[address:fill_end] = bytes((fill_value & 0xFF,)) * (fill_end - address)

        if address > start * CART_BANK_SIZE:
            last = (address - 1) >> 14
            for index in range(start, last + 1):
                self.header.bank_info[index] = bank_type & 0xFF

    def fill(self, start_bank: int, end_bank: int, bank_type: int, fill_value: int = 0) -> None:
        """Fill system banks start_bank..end_bank with one byte and set their type."""
        banks = _bank_range(start_bank, end_bank)
        begin = banks.start * CART_BANK_SIZE
        end = banks.stop * CART_BANK_SIZE
        self.memory[begin:end] = bytes((fill_value & 0xFF,)) * (end - begin)
        for index in banks:
            self.header.bank_info[index] = bank_type & 0xFF

    def _banks_of(self, kinds: frozenset) -> Iterable[bytes]:
        view = memoryview(self.memory)
        for index, kind in enumerate(self.header.bank_info):
            if kind > _NUM_BANK_TYPES:
                print(f"Warning: Unknown cartridge bank type at {index}")
            elif kind in kinds:
                yield bytes(view[index * CART_BANK_SIZE : (index + 1) * CART_BANK_SIZE])

    def save(self, path: str) -> None:
        """Write the header and every stored bank to a .crt file."""
        path = os.fspath(path)
        if not _extension(path).startswith(".crt"):
            raise CartridgeError(f'Path "{path}" does not appear to be a cartridge (.crt) file.')
        try:
            with open(path, "wb") as stream:
                stream.write(self.header.pack())
                for bank_data in self._banks_of(_STORED_IN_CART):
                    stream.write(bank_data)
        except OSError as exc:
            raise CartridgeError(f'Could not save cartridge "{path}": {exc}') from exc

    def save_nvram(self) -> None:
        """Write every NVRAM bank to the .nvram file next to the loaded cartridge."""
        if self.nvram_path is None:
            raise CartridgeError("No NVRAM path: the cartridge was not loaded from a file.")
        try:
            with open(self.nvram_path, "wb") as stream:
                for bank_data in self._banks_of(_STORED_IN_NVRAM):
                    stream.write(bank_data)
        except OSError as exc:
            raise CartridgeError(f'Could not save nvram "{self.nvram_path}": {exc}') from exc

    @staticmethod
    def _offset(address: int, index: int) -> int:
        return index * CART_BANK_SIZE + ((address - 0xC000) & 0x3FFF)

    def read(self, address: int, bank: int) -> int:
        """Read the byte at $C000-$FFFF of a system bank; 0 outside the cartridge."""
        index = _cart_bank(bank)
        if index is None:
            return 0
        return self.memory[self._offset(address, index)]

    def write(self, address: int, bank: int, value: int) -> None:
        """Write a byte; only RAM and NVRAM banks take the write."""
        index = _cart_bank(bank)
        if index is None:
            return
        if self.header.bank_info[index] in _WRITABLE:
            self.memory[self._offset(address, index)] = value & 0xFF

    def bank_type(self, bank: int) -> int:
        """The type of a system bank; NONE outside the cartridge range."""
        index = _cart_bank(bank)
        if index is None:
            return BankType.NONE
        return self.header.bank_info[index]