from amaranth import *
from amaranth.build import Platform
from amaranth.lib import data, wiring
from amaranth.lib.wiring import In, Out

import field
from field import WIDTH
from primitives import And, IsEqual, IsZero, Num2Bits


class MSNZBFinder(wiring.Component):
    """One-hot position of the most significant non-zero bit

    Position i is selected when bit i is set and the prefix sum of bits
    0..i already reproduces the input, i.e. every higher bit is clear.
    A zero input is rejected unless skip_checks is set, in which case the
    vector comes out all zero.
    """

    def __init__(self, width: int):
        self.width = width

        super().__init__(
            {
                "value": In(WIDTH),
                "skip_checks": In(WIDTH),
                "one_hot": Out(data.ArrayLayout(WIDTH, width)),
                "valid": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.is_zero = is_zero = IsZero()
        m.d.comb += is_zero.value.eq(self.value)

        m.submodules.n2b = n2b = Num2Bits(self.width)
        m.d.comb += n2b.value.eq(self.value)

        bits = [n2b.bits[i] for i in range(self.width)]
        checks = [
            field.mul(is_zero.out, field.sub(1, self.skip_checks)) == 0,
            is_zero.valid,
            n2b.valid,
        ]

        for i in range(self.width):
            eq = IsEqual()
            top = And()
            m.submodules[f"prefix_eq_{i}"] = eq
            m.submodules[f"select_{i}"] = top

            m.d.comb += eq.a.eq(field.recompose(bits[: i + 1]))
            m.d.comb += eq.b.eq(self.value)

            m.d.comb += top.a.eq(eq.out)
            m.d.comb += top.b.eq(bits[i])
            m.d.comb += self.one_hot[i].eq(top.out)

            checks.append(eq.valid)

        m.d.comb += self.valid.eq(Cat(*checks).all())

        return m
