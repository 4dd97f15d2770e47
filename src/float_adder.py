from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

import field
from bit_length import BitLengthChecker
from field import MAX_COMPARE_BITS, WIDTH
from float_value import FieldFloat
from normalizer import Normalizer
from primitives import IfThenElse, IsZero, LessThan, Or, Switcher
from rounder import Rounder
from shifter import DynamicLeftShifter
from well_formed import WellFormednessChecker


class FloatAdder(wiring.Component):
    """Verifiable (k, p) float addition

    Operands are ordered by magnitude e * 2^(p+1) + m. When the exponent gap
    exceeds p + 1, or the larger operand is zero, the smaller one cannot
    move the rounded result and the larger is returned unchanged. Otherwise
    the larger mantissa is shifted onto the smaller one's exponent, added,
    normalized to precision 2p + 1 and rounded back to p. valid is 0 when
    either operand is malformed or the result exponent leaves k bits.
    """

    def __init__(self, k: int = 8, p: int = 23):
        if k < 1 or p < 1:
            raise ValueError(f"k and p must be positive, got k={k}, p={p}")
        if p + 1 >= 1 << k:
            raise ValueError(f"p + 1 = {p + 1} does not fit a {k}-bit exponent difference")
        if k + p + 1 > MAX_COMPARE_BITS:
            raise ValueError(f"magnitudes of k={k}, p={p} floats exceed {MAX_COMPARE_BITS} bits")

        self.k = k
        self.p = p
        self.P = 2 * p + 1

        super().__init__(
            {
                "a": In(FieldFloat),
                "b": In(FieldFloat),
                "result": Out(FieldFloat),
                "valid": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        k, p = self.k, self.p

        m.submodules.check_a = check_a = WellFormednessChecker(k, p)
        m.submodules.check_b = check_b = WellFormednessChecker(k, p)
        m.d.comb += check_a.value.eq(self.a)
        m.d.comb += check_b.value.eq(self.b)

        # ---- Order By Magnitude ----
        m.submodules.a_smaller = a_smaller = LessThan(k + p + 1)
        m.d.comb += a_smaller.a.eq(field.linear([(1 << (p + 1), self.a.e), (1, self.a.m)]))
        m.d.comb += a_smaller.b.eq(field.linear([(1 << (p + 1), self.b.e), (1, self.b.m)]))

        m.submodules.swap_e = swap_e = Switcher()
        m.submodules.swap_m = swap_m = Switcher()
        m.d.comb += swap_e.sel.eq(a_smaller.out)
        m.d.comb += swap_e.left.eq(self.a.e)
        m.d.comb += swap_e.right.eq(self.b.e)
        m.d.comb += swap_m.sel.eq(a_smaller.out)
        m.d.comb += swap_m.left.eq(self.a.m)
        m.d.comb += swap_m.right.eq(self.b.m)

        alpha_e, beta_e = swap_e.out_left, swap_e.out_right
        alpha_m, beta_m = swap_m.out_left, swap_m.out_right

        # ---- Trivial Case Detection ----
        diff = Signal(WIDTH)
        m.d.comb += diff.eq(field.sub(alpha_e, beta_e))

        m.submodules.gap_large = gap_large = LessThan(k)
        m.d.comb += gap_large.a.eq(p + 1)
        m.d.comb += gap_large.b.eq(diff)

        m.submodules.alpha_zero = alpha_zero = IsZero()
        m.d.comb += alpha_zero.value.eq(alpha_e)

        m.submodules.trivial = trivial = Or()
        m.d.comb += trivial.a.eq(gap_large.out)
        m.d.comb += trivial.b.eq(alpha_zero.out)

        # ---- Align And Add ----
        m.submodules.align = align = DynamicLeftShifter(p + 2)
        m.d.comb += align.x.eq(alpha_m)
        m.d.comb += align.shift.eq(diff)
        m.d.comb += align.skip_checks.eq(trivial.out)

        # ---- Normalize And Round ----
        m.submodules.normalizer = normalizer = Normalizer(k, p, self.P)
        m.d.comb += normalizer.value_in.e.eq(beta_e)
        m.d.comb += normalizer.value_in.m.eq(field.add(align.y, beta_m))
        m.d.comb += normalizer.skip_checks.eq(trivial.out)

        m.submodules.rounder = rounder = Rounder(k, p, self.P)
        m.d.comb += rounder.value_in.eq(normalizer.value_out)

        # ---- Select Result ----
        m.submodules.select_e = select_e = IfThenElse()
        m.d.comb += select_e.cond.eq(trivial.out)
        m.d.comb += select_e.if_true.eq(alpha_e)
        m.d.comb += select_e.if_false.eq(rounder.value_out.e)

        m.submodules.select_m = select_m = IfThenElse()
        m.d.comb += select_m.cond.eq(trivial.out)
        m.d.comb += select_m.if_true.eq(alpha_m)
        m.d.comb += select_m.if_false.eq(rounder.value_out.m)

        m.d.comb += self.result.e.eq(select_e.out)
        m.d.comb += self.result.m.eq(select_m.out)

        # exponent carry out of rounding must still fit k bits
        m.submodules.e_range = e_range = BitLengthChecker(k)
        m.d.comb += e_range.value.eq(select_e.out)

        checks = [
            check_a.valid,
            check_b.valid,
            a_smaller.valid,
            gap_large.valid,
            alpha_zero.valid,
            align.valid,
            normalizer.valid,
            rounder.valid,
            e_range.valid,
            e_range.out == 1,
        ]
        m.d.comb += self.valid.eq(Cat(*checks).all())

        return m
