from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

import field
from bit_length import BitLengthChecker
from float_value import FieldFloat
from primitives import And, IfThenElse, IsZero


class WellFormednessChecker(wiring.Component):
    """Asserts that (e, m) is a well-formed (k, p) float

    e = 0 forces m = 0; otherwise e must fit k bits and m - 2^p must fit
    p bits, i.e. 2^p <= m < 2^(p+1).
    """

    def __init__(self, k: int, p: int):
        self.k = k
        self.p = p

        super().__init__(
            {
                "value": In(FieldFloat),
                "valid": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.e_is_zero = e_is_zero = IsZero()
        m.submodules.m_is_zero = m_is_zero = IsZero()
        m.submodules.e_fits = e_fits = BitLengthChecker(self.k)
        m.submodules.m_fits = m_fits = BitLengthChecker(self.p)
        m.submodules.both_fit = both_fit = And()
        m.submodules.select = select = IfThenElse()

        m.d.comb += e_is_zero.value.eq(self.value.e)
        m.d.comb += m_is_zero.value.eq(self.value.m)

        m.d.comb += e_fits.value.eq(self.value.e)
        m.d.comb += m_fits.value.eq(field.sub(self.value.m, 1 << self.p))

        m.d.comb += both_fit.a.eq(e_fits.out)
        m.d.comb += both_fit.b.eq(m_fits.out)

        m.d.comb += select.cond.eq(e_is_zero.out)
        m.d.comb += select.if_true.eq(m_is_zero.out)
        m.d.comb += select.if_false.eq(both_fit.out)

        checks = [
            select.out == 1,
            e_is_zero.valid,
            m_is_zero.valid,
            e_fits.valid,
            m_fits.valid,
        ]
        m.d.comb += self.valid.eq(Cat(*checks).all())

        return m
