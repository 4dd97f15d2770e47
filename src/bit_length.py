from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

import field
from field import CAPACITY, WIDTH
from primitives import IsZero


class BitLengthChecker(wiring.Component):
    """Flags whether a field element fits in `width` bits

    Unlike Num2Bits this never rejects its input: the hinted decomposition
    carries an unbounded `extra` limb above bit `width`, and out is the zero
    test of that limb. The low bits stay internal.
    """

    def __init__(self, width: int):
        if not 1 <= width < CAPACITY:
            raise ValueError(f"BitLengthChecker width must be in 1..{CAPACITY - 1}, got {width}")

        self.width = width

        super().__init__(
            {
                "value": In(WIDTH),
                "out": Out(WIDTH),
                "valid": Out(1),
            }
        )

    def decomposition_hint(self) -> tuple[list[Value], Value]:
        bits = [self.value[i] for i in range(self.width)]
        extra = self.value[self.width :]
        return bits, extra

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        bits_hint, extra_hint = self.decomposition_hint()

        bits = [Signal(WIDTH, name=f"bit_{i}") for i in range(self.width)]
        for bit, hint in zip(bits, bits_hint):
            m.d.comb += bit.eq(hint)

        extra = Signal(WIDTH)
        m.d.comb += extra.eq(extra_hint)

        m.submodules.is_zero = is_zero = IsZero()
        m.d.comb += is_zero.value.eq(extra)
        m.d.comb += self.out.eq(is_zero.out)

        checks = [field.mul(bit, field.sub(bit, 1)) == 0 for bit in bits]
        checks.append(field.add(field.recompose(bits), field.mul(extra, 1 << self.width)) == self.value)
        checks.append(is_zero.valid)

        m.d.comb += self.valid.eq(Cat(*checks).all())

        return m
