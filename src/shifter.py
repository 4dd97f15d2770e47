from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

import field
from field import WIDTH
from primitives import Num2Bits


class DynamicLeftShifter(wiring.Component):
    """y = x * 2^shift for a shift amount carried on a wire

    The witness supplies shift_bound multipliers, each 1 or 2. Their count of
    2s must equal shift * (1 - skip_checks) and the last one must be 1, which
    pins shift < shift_bound while checks are active. With skip_checks = 1
    every multiplier is 1 and y = x whatever shift holds.
    """

    def __init__(self, shift_bound: int):
        if shift_bound < 1:
            raise ValueError(f"shift_bound must be positive, got {shift_bound}")

        self.shift_bound = shift_bound

        super().__init__(
            {
                "x": In(WIDTH),
                "shift": In(WIDTH),
                "skip_checks": In(WIDTH),
                "y": Out(WIDTH),
                "valid": Out(1),
            }
        )

    def effective_shift(self) -> Value:
        return field.mul(self.shift, field.sub(1, self.skip_checks))

    def multipliers_hint(self) -> list[Value]:
        shift = self.effective_shift()
        return [Mux(shift > i, 2, 1) for i in range(self.shift_bound)]

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        multipliers = [Signal(WIDTH, name=f"multiplier_{i}") for i in range(self.shift_bound)]
        for multiplier, hint in zip(multipliers, self.multipliers_hint()):
            m.d.comb += multiplier.eq(hint)

        # running product of the multipliers, one gate per step
        powers = [Signal(WIDTH, name=f"power_{i}") for i in range(self.shift_bound)]
        m.d.comb += powers[0].eq(multipliers[0])
        for i in range(1, self.shift_bound):
            m.d.comb += powers[i].eq(field.mul(powers[i - 1], multipliers[i]))

        m.d.comb += self.y.eq(field.mul(self.x, powers[-1]))

        checks = [field.mul(field.sub(c, 1), field.sub(c, 2)) == 0 for c in multipliers]
        checks.append(field.linear((1, field.sub(c, 1)) for c in multipliers) == self.effective_shift())
        checks.append(multipliers[-1] == 1)

        m.d.comb += self.valid.eq(Cat(*checks).all())

        return m


class RightShifter(wiring.Component):
    """y = x >> shift for a shift fixed at construction; x must fit width bits"""

    def __init__(self, width: int, shift: int):
        if not 0 <= shift <= width:
            raise ValueError(f"shift must be in 0..{width}, got {shift}")

        self.width = width
        self.shift = shift

        super().__init__(
            {
                "x": In(WIDTH),
                "y": Out(WIDTH),
                "valid": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.n2b = n2b = Num2Bits(self.width)
        m.d.comb += n2b.value.eq(self.x)

        bits = [n2b.bits[i] for i in range(self.width)]
        if self.shift < self.width:
            m.d.comb += self.y.eq(field.recompose(bits, offset=self.shift))
        else:
            m.d.comb += self.y.eq(0)

        m.d.comb += self.valid.eq(n2b.valid)

        return m
