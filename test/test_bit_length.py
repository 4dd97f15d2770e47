import sys

import pytest
from amaranth import *
from amaranth.sim import Simulator

import bit_length
import field


def test_bit_length_boundaries(request):
    """Values in [0, 2^b) pass, everything else reports 0"""
    dut = bit_length.BitLengthChecker(width=4)

    test_cases = [
        # (value, expected_out)
        (0, 1),
        (1, 1),
        (9, 1),
        (15, 1),  # 2^b - 1
        (16, 0),  # 2^b
        (17, 0),
        (1000, 0),
        (field.encode(-1), 0),
        (field.encode(-8), 0),
    ]

    async def bench(ctx):
        for value, expected in test_cases:
            ctx.set(dut.value, value)

            result = ctx.get(dut.out)
            assert ctx.get(dut.valid) == 1, f"value={value}: decomposition must always exist"
            assert result == expected, f"value={value}: got out={result}, expected {expected}"

    sim = Simulator(dut)
    sim.add_testbench(bench)

    if request.config.getoption("--vcd"):
        vcd_name = f"BitLengthChecker_{sys._getframe().f_code.co_name}.vcd"
        with sim.write_vcd(vcd_name):
            sim.run()
    else:
        sim.run()


def test_bit_length_wide(request):
    dut = bit_length.BitLengthChecker(width=64)

    test_cases = [
        (2**64 - 1, 1),
        (2**64, 0),
        (2**63 + 12345, 1),
    ]

    async def bench(ctx):
        for value, expected in test_cases:
            ctx.set(dut.value, value)

            assert ctx.get(dut.valid) == 1
            assert ctx.get(dut.out) == expected, f"value={value:#x}: expected {expected}"

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()


class HidingBitLengthChecker(bit_length.BitLengthChecker):
    """Hides the overflow of 2^b inside a top bit of 2 and claims extra = 0"""

    def decomposition_hint(self):
        bits = [Const(0)] * (self.width - 1) + [Const(2)]
        return bits, Const(0)


def test_bit_length_rejects_forged_decomposition(request):
    dut = HidingBitLengthChecker(width=4)

    async def bench(ctx):
        ctx.set(dut.value, 16)

        assert ctx.get(dut.out) == 1, "the forged witness does claim the value fits"
        assert ctx.get(dut.valid) == 0, "but the bit constraint must reject it"

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()


def test_bit_length_width_validation():
    with pytest.raises(ValueError):
        bit_length.BitLengthChecker(width=0)
    with pytest.raises(ValueError):
        bit_length.BitLengthChecker(width=field.CAPACITY)
