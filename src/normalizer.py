from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

import field
from field import WIDTH
from float_value import FieldFloat
from msnzb import MSNZBFinder


class Normalizer(wiring.Component):
    """Moves the leading mantissa bit to position P

    The mantissa (at most P + 1 bits) is multiplied by 2^(P - l), where l is
    its MSNZB, and the exponent grows by l - p so that the output reads as a
    precision-P float.
    """

    def __init__(self, k: int, p: int, P: int):
        if P < p:
            raise ValueError(f"target precision P={P} is below p={p}")

        self.k = k
        self.p = p
        self.P = P

        super().__init__(
            {
                "value_in": In(FieldFloat),
                "skip_checks": In(WIDTH),
                "value_out": Out(FieldFloat),
                "valid": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.msnzb = msnzb = MSNZBFinder(self.P + 1)
        m.d.comb += msnzb.value.eq(self.value_in.m)
        m.d.comb += msnzb.skip_checks.eq(self.skip_checks)

        one_hot = [msnzb.one_hot[i] for i in range(self.P + 1)]

        position = Signal(WIDTH)
        m.d.comb += position.eq(field.linear((i, bit) for i, bit in enumerate(one_hot)))

        # 2^(P - l) picked out of the one-hot vector
        scale = Signal(WIDTH)
        m.d.comb += scale.eq(field.linear((1 << (self.P - i), bit) for i, bit in enumerate(one_hot)))

        m.d.comb += self.value_out.m.eq(field.mul(self.value_in.m, scale))
        m.d.comb += self.value_out.e.eq(field.sub(field.add(self.value_in.e, position), self.p))

        m.d.comb += self.valid.eq(msnzb.valid)

        return m
