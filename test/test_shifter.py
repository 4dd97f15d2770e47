import sys

import pytest
from amaranth import *
from amaranth.sim import Simulator

import field
import shifter


def test_left_shift_in_bound(request):
    dut = shifter.DynamicLeftShifter(shift_bound=5)

    test_cases = [
        # (x, shift, expected_y)
        (3, 0, 3),
        (3, 1, 6),
        (3, 2, 12),
        (3, 4, 48),
        (0b1011, 3, 0b1011000),
        (0, 4, 0),
    ]

    async def bench(ctx):
        ctx.set(dut.skip_checks, 0)
        for x, shift, expected in test_cases:
            ctx.set(dut.x, x)
            ctx.set(dut.shift, shift)

            result = ctx.get(dut.y)
            assert ctx.get(dut.valid) == 1, f"shift={shift} is below the bound"
            assert result == expected, f"{x} << {shift}: got {result}, expected {expected}"

    sim = Simulator(dut)
    sim.add_testbench(bench)

    if request.config.getoption("--vcd"):
        vcd_name = f"DynamicLeftShifter_{sys._getframe().f_code.co_name}.vcd"
        with sim.write_vcd(vcd_name):
            sim.run()
    else:
        sim.run()


def test_left_shift_out_of_bound(request):
    dut = shifter.DynamicLeftShifter(shift_bound=5)

    async def bench(ctx):
        ctx.set(dut.x, 3)
        ctx.set(dut.skip_checks, 0)

        for shift in [5, 6, 100, field.encode(-1)]:
            ctx.set(dut.shift, shift)
            assert ctx.get(dut.valid) == 0, f"shift={shift} must violate the bound"

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()


def test_left_shift_skip_checks(request):
    """With checks skipped any shift is accepted and x passes through"""
    dut = shifter.DynamicLeftShifter(shift_bound=5)

    async def bench(ctx):
        ctx.set(dut.x, 9)
        ctx.set(dut.skip_checks, 1)

        for shift in [0, 3, 5, 250, field.encode(-7)]:
            ctx.set(dut.shift, shift)
            assert ctx.get(dut.valid) == 1, f"shift={shift} with skip_checks"
            assert ctx.get(dut.y) == 9

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()


class OverclaimingShifter(shifter.DynamicLeftShifter):
    """Always doubles twice, whatever shift says"""

    def multipliers_hint(self):
        return [Const(2), Const(2)] + [Const(1)] * (self.shift_bound - 2)


def test_left_shift_rejects_forged_multipliers(request):
    dut = OverclaimingShifter(shift_bound=5)

    async def bench(ctx):
        ctx.set(dut.x, 3)
        ctx.set(dut.skip_checks, 0)

        ctx.set(dut.shift, 2)
        assert ctx.get(dut.valid) == 1, "the forged witness is honest for shift=2"
        assert ctx.get(dut.y) == 12

        ctx.set(dut.shift, 1)
        assert ctx.get(dut.y) == 12
        assert ctx.get(dut.valid) == 0, "count of doublings no longer matches shift"

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()


def test_right_shift(request):
    dut = shifter.RightShifter(width=8, shift=3)

    test_cases = [
        # (x, expected_y)
        (0b10110111, 0b10110),
        (0b00000111, 0),
        (0b11111111, 0b11111),
        (0b00001000, 1),
    ]

    async def bench(ctx):
        for x, expected in test_cases:
            ctx.set(dut.x, x)

            result = ctx.get(dut.y)
            assert ctx.get(dut.valid) == 1
            assert result == expected, f"0b{x:08b} >> 3: got 0b{result:b}, expected 0b{expected:b}"

        ctx.set(dut.x, 256)
        assert ctx.get(dut.valid) == 0, "x wider than 8 bits must be rejected"

    sim = Simulator(dut)
    sim.add_testbench(bench)

    if request.config.getoption("--vcd"):
        vcd_name = f"RightShifter_{sys._getframe().f_code.co_name}.vcd"
        with sim.write_vcd(vcd_name):
            sim.run()
    else:
        sim.run()


def test_right_shift_full_width(request):
    dut = shifter.RightShifter(width=4, shift=4)

    async def bench(ctx):
        ctx.set(dut.x, 15)
        assert ctx.get(dut.y) == 0
        assert ctx.get(dut.valid) == 1

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()


def test_shifter_parameters_are_validated():
    with pytest.raises(ValueError):
        shifter.DynamicLeftShifter(shift_bound=0)
    with pytest.raises(ValueError):
        shifter.RightShifter(width=4, shift=5)
