from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

import field
from float_value import FieldFloat
from primitives import IfThenElse, LessThan
from shifter import RightShifter


class Rounder(wiring.Component):
    """Rounds a normalized precision-P mantissa down to precision p

    Round to nearest with ties going up: add half an output ulp, then drop
    P - p bits. When the addition would carry past bit P the result is
    (e + 1, 2^p) instead. Both outcomes are always computed and muxed.
    """

    def __init__(self, k: int, p: int, P: int):
        if P <= p:
            raise ValueError(f"rounding needs P > p, got P={P}, p={p}")

        self.k = k
        self.p = p
        self.P = P
        self.round_amt = P - p

        super().__init__(
            {
                "value_in": In(FieldFloat),
                "value_out": Out(FieldFloat),
                "valid": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        half_ulp = 1 << (self.round_amt - 1)

        m.submodules.shifter = shifter = RightShifter(self.P + 2, self.round_amt)
        m.d.comb += shifter.x.eq(field.add(self.value_in.m, half_ulp))

        # carry happens iff m + half_ulp reaches 2^(P+1)
        m.submodules.no_overflow = no_overflow = LessThan(self.P + 2)
        m.d.comb += no_overflow.a.eq(self.value_in.m)
        m.d.comb += no_overflow.b.eq((1 << (self.P + 1)) - half_ulp)

        m.submodules.select_e = select_e = IfThenElse()
        m.d.comb += select_e.cond.eq(no_overflow.out)
        m.d.comb += select_e.if_true.eq(self.value_in.e)
        m.d.comb += select_e.if_false.eq(field.add(self.value_in.e, 1))

        m.submodules.select_m = select_m = IfThenElse()
        m.d.comb += select_m.cond.eq(no_overflow.out)
        m.d.comb += select_m.if_true.eq(shifter.y)
        m.d.comb += select_m.if_false.eq(1 << self.p)

        m.d.comb += self.value_out.e.eq(select_e.out)
        m.d.comb += self.value_out.m.eq(select_m.out)

        m.d.comb += self.valid.eq(shifter.valid & no_overflow.valid)

        return m
