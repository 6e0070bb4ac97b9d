import pytest

from x16core.cartridge import (
    CART_BANK_SIZE,
    CART_MAX_BANKS,
    CURRENT_VERSION,
    HEADER_SIZE,
    MAGIC_NUMBER,
    BankType,
    Cartridge,
    CartridgeError,
    CartridgeHeader,
)


def test_new_cartridge_header_magic_and_version():
    cart = Cartridge()
    packed = cart.header.pack()
    assert packed.startswith(b"CX16 CARTRIDGE\r\n01.00")
    assert len(packed) == HEADER_SIZE


def test_header_roundtrip():
    header = CartridgeHeader()
    header.bank_info[3] = BankType.ROM
    header.description = b"d" * 32
    again = CartridgeHeader.unpack(header.pack())
    assert again == header


def test_header_unpack_too_short():
    with pytest.raises(CartridgeError):
        CartridgeHeader.unpack(b"short")


def test_text_fields_pad_and_truncate():
    cart = Cartridge()
    cart.description = "Demo"
    assert cart.header.description == b"Demo".ljust(32, b" ")
    assert cart.description == "Demo"
    cart.author = "x" * 40
    assert cart.author == "x" * 32


def test_define_bank_range_and_errors():
    cart = Cartridge()
    cart.define_bank_range(32, 35, BankType.ROM)
    assert [cart.bank_type(b) for b in range(32, 37)] == [BankType.ROM] * 4 + [BankType.NONE]
    with pytest.raises(ValueError):
        cart.define_bank_range(31, 40, BankType.ROM)
    with pytest.raises(ValueError):
        cart.define_bank_range(40, 35, BankType.ROM)
    with pytest.raises(ValueError):
        cart.define_bank_range(32, 256, BankType.ROM)


def test_bank_type_outside_range_is_none():
    cart = Cartridge()
    cart.fill(32, 32, BankType.ROM, 0x11)
    assert cart.bank_type(0) == BankType.NONE
    assert cart.bank_type(31) == BankType.NONE


def test_fill_and_read():
    cart = Cartridge()
    cart.fill(40, 41, BankType.ROM, 0xAB)
    assert cart.read(0xC000, 40) == 0xAB
    assert cart.read(0xFFFF, 41) == 0xAB
    assert cart.read(0xC000, 42) == 0
    assert cart.read(0xC000, 5) == 0


def test_write_only_to_ram_banks():
    cart = Cartridge()
    cart.fill(32, 32, BankType.ROM, 0x00)
    cart.fill(33, 33, BankType.INITIALIZED_RAM, 0x00)
    cart.write(0xC010, 32, 0x55)
    cart.write(0xC010, 33, 0x55)
    assert cart.read(0xC010, 32) == 0
    assert cart.read(0xC010, 33) == 0x55


def test_save_and_load_roundtrip(tmp_path):
    cart = Cartridge()
    cart.description = "Game"
    cart.fill(32, 32, BankType.ROM, 0x12)
    cart.fill(33, 33, BankType.UNINITIALIZED_RAM, 0x34)
    cart.fill(34, 34, BankType.INITIALIZED_RAM, 0x56)
    path = tmp_path / "game.crt"
    cart.save(str(path))
    # header plus two stored banks (ROM and initialized RAM)
    assert path.stat().st_size == HEADER_SIZE + 2 * CART_BANK_SIZE

    loaded = Cartridge.load(str(path))
    assert loaded.description == "Game"
    assert loaded.read(0xC000, 32) == 0x12
    assert loaded.read(0xC000, 33) == 0
    assert loaded.read(0xC000, 34) == 0x56
    assert loaded.bank_type(33) == BankType.UNINITIALIZED_RAM
    assert loaded.nvram_path == str(tmp_path / "game.nvram")


def test_nvram_overrides_cart_contents(tmp_path):
    cart = Cartridge()
    cart.fill(32, 32, BankType.INITIALIZED_NVRAM, 0x01)
    path = tmp_path / "save.crt"
    cart.save(str(path))

    loaded = Cartridge.load(str(path))
    assert loaded.read(0xC000, 32) == 0x01
    loaded.write(0xC000, 32, 0x99)
    loaded.save_nvram()

    reloaded = Cartridge.load(str(path))
    assert reloaded.read(0xC000, 32) == 0x99
    assert reloaded.read(0xC001, 32) == 0x01


def test_save_nvram_without_path():
    with pytest.raises(CartridgeError):
        Cartridge().save_nvram()


def test_load_rejects_wrong_extension(tmp_path):
    path = tmp_path / "game.bin"
    path.write_bytes(b"")
    with pytest.raises(CartridgeError):
        Cartridge.load(str(path))


def test_save_rejects_wrong_extension(tmp_path):
    with pytest.raises(CartridgeError):
        Cartridge().save(str(tmp_path / "game.bin"))


def test_load_rejects_bad_magic(tmp_path):
    header = CartridgeHeader(magic_number=b"X" * 16)
    path = tmp_path / "bad.crt"
    path.write_bytes(header.pack())
    with pytest.raises(CartridgeError, match="Not a cartridge"):
        Cartridge.load(str(path))


def test_load_rejects_bad_version(tmp_path):
    header = CartridgeHeader(cart_version=b"02.00".ljust(16, b" "))
    path = tmp_path / "bad.crt"
    path.write_bytes(header.pack())
    with pytest.raises(CartridgeError, match="Unsupported version"):
        Cartridge.load(str(path))


def test_load_truncated_bank(tmp_path):
    header = CartridgeHeader()
    header.bank_info[0] = BankType.ROM
    path = tmp_path / "short.crt"
    path.write_bytes(header.pack() + b"\x00" * 10)
    with pytest.raises(CartridgeError):
        Cartridge.load(str(path))


def test_import_files_pads_last_bank(tmp_path):
    first = tmp_path / "a.bin"
    second = tmp_path / "b.bin"
    first.write_bytes(b"\x01" * CART_BANK_SIZE)
    second.write_bytes(b"\x02\x03")
    cart = Cartridge()
    cart.import_files([str(first), str(second)], 32, BankType.ROM, 0xEE)
    assert cart.read(0xFFFF, 32) == 0x01
    assert cart.read(0xC000, 33) == 0x02
    assert cart.read(0xC001, 33) == 0x03
    assert cart.read(0xC002, 33) == 0xEE
    assert cart.read(0xFFFF, 33) == 0xEE
    assert cart.bank_type(33) == BankType.ROM
    assert cart.bank_type(34) == BankType.NONE


def test_import_files_missing_file(tmp_path):
    with pytest.raises(CartridgeError):
        Cartridge().import_files([str(tmp_path / "missing.bin")], 32, BankType.ROM, 0)


def test_import_files_bad_bank(tmp_path):
    with pytest.raises(ValueError):
        Cartridge().import_files([], 10, BankType.ROM, 0)


def test_default_header_layout_fixed_by_format():
    packed = CartridgeHeader().pack()
    assert packed[:16] == MAGIC_NUMBER == b"CX16 CARTRIDGE\r\n"
    assert packed[16:32] == CURRENT_VERSION
    assert packed[16:21] == b"01.00"
    assert packed[-CART_MAX_BANKS:] == bytes(224)
    assert len(packed) == HEADER_SIZE