import pytest

from x16core.registers import (
    Flag,
    Registers,
    add_wrap_at_page_boundary,
    bank_byte,
    mask_long_addr,
    subtract_wrap_at_page_boundary,
)


def test_accumulator_halves_compose_to_c():
    regs = Registers(c=0x1234)
    assert (regs.b << 8) | regs.a == regs.c


def test_setting_low_half_keeps_high_half():
    regs = Registers(c=0x1234)
    old_b = regs.b
    regs.a = 0xAB
    assert regs.a == 0xAB
    assert regs.b == old_b


def test_index_halves_compose():
    regs = Registers(x=0xBEEF, y=0xCAFE)
    assert (regs.xh << 8) | regs.xl == regs.x
    assert (regs.yh << 8) | regs.yl == regs.y


def test_high_half_setter_keeps_low_half():
    regs = Registers(x=0x1234)
    old_low = regs.xl
    regs.xh = 0
    assert regs.xl == old_low
    assert regs.x == old_low


def test_fields_are_masked_to_width():
    regs = Registers()
    regs.c = 0x12345
    regs.k = 0x1FF
    assert regs.c == 0x12345 & 0xFFFF
    assert regs.k == 0x1FF & 0xFF


def test_width_queries():
    wide = Registers(is65c816=True, status=0)
    assert wide.memory_16bit() is True
    assert wide.index_16bit() is True
    narrow = Registers(is65c816=True, status=Flag.MEMORY_WIDTH | Flag.INDEX_WIDTH)
    assert narrow.memory_16bit() is False
    assert narrow.index_16bit() is False
    c02 = Registers(is65c816=False, status=0)
    assert c02.memory_16bit() is False


def test_save_accumulator_8bit_leaves_b():
    regs = Registers(c=0x1234, is65c816=True, status=Flag.MEMORY_WIDTH)
    old_b = regs.b
    regs.save_accumulator(0x1FF)
    assert regs.a == 0x1FF & 0xFF
    assert regs.b == old_b
    assert regs.accumulator() == regs.a


def test_save_accumulator_16bit():
    regs = Registers(is65c816=True, status=0)
    regs.save_accumulator(0xBEEF)
    assert regs.accumulator() == 0xBEEF
    assert regs.c == 0xBEEF


def test_set_flag_round_trip():
    regs = Registers(status=0)
    regs.set_flag(Flag.DECIMAL, True)
    assert regs.status == 0x08
    regs.set_flag(Flag.DECIMAL, False)
    assert regs.status == 0


@pytest.mark.parametrize("n, wide, expected", [(0x100, False, 0x02), (0x100, True, 0), (0, True, 0x02)])
def test_zero_calc(n, wide, expected):
    regs = Registers(status=0)
    regs.zero_calc(n, wide)
    assert regs.status == expected


@pytest.mark.parametrize("n, wide, expected", [(0x80, False, 0x80), (0x80, True, 0), (0x8000, True, 0x80)])
def test_sign_calc(n, wide, expected):
    regs = Registers(status=0)
    regs.sign_calc(n, wide)
    assert regs.status == expected


@pytest.mark.parametrize("n, wide, expected", [(0x100, False, 0x01), (0x100, True, 0), (0x10000, True, 0x01)])
def test_carry_calc(n, wide, expected):
    regs = Registers(status=0)
    regs.carry_calc(n, wide)
    assert regs.status == expected


def test_overflow_calc8():
    regs = Registers(status=0)
    regs.overflow_calc8(0x50 + 0x50, 0x50, 0x50)
    assert regs.status == 0x40
    regs.overflow_calc8(0x10 + 0x20, 0x10, 0x20)
    assert regs.status == 0


def test_overflow_calc16():
    regs = Registers(status=0)
    regs.overflow_calc16(0x5000 + 0x5000, 0x5000, 0x5000)
    assert regs.status == 0x40
    regs.overflow_calc16(0x1000 + 0x2000, 0x1000, 0x2000)
    assert regs.status == 0


def test_direct_page_add_wraps_in_emulation():
    regs = Registers(dp=0x2000, e=1)
    result = regs.direct_page_add(0x1FF)
    assert result >> 8 == 0x2000 >> 8
    assert result & 0xFF == 0x1FF & 0xFF


def test_direct_page_add_native():
    regs = Registers(dp=0x2000, e=0)
    assert regs.direct_page_add(0x1FF) == 0x2000 + 0x1FF


def test_stack_pointer_stays_in_page_one_in_emulation():
    regs = Registers(sp=0x100, e=1)
    regs.decrement_sp()
    assert regs.sp >> 8 == 1
    regs.increment_sp()
    assert regs.sp == 0x100


def test_stack_pointer_crosses_page_in_native_mode():
    regs = Registers(sp=0x100, e=0)
    regs.decrement_sp()
    assert regs.sp == 0x100 - 1


@pytest.mark.parametrize("value", [0x0000, 0x12FF, 0xFFFF, 0x80F0])
@pytest.mark.parametrize("amount", [1, 0x10, 0xFF])
@pytest.mark.parametrize("emulation", [True, False])
def test_add_subtract_round_trip(value, amount, emulation):
    added = add_wrap_at_page_boundary(value, amount, emulation)
    assert subtract_wrap_at_page_boundary(added, amount, emulation) == value
    if emulation:
        assert added & 0xFF00 == value & 0xFF00


def test_add_wrap_native_carries_into_high_byte():
    assert add_wrap_at_page_boundary(0x12FF, 1, False) == 0x12FF + 1


def test_long_address_helpers():
    assert mask_long_addr(0x1234567) == 0x1234567 & 0xFFFFFF
    assert bank_byte(0x123456) == 0x12
    assert bank_byte(mask_long_addr(0xFF123456)) == bank_byte(0x123456)