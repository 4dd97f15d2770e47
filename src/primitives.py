from amaranth import *
from amaranth.build import Platform
from amaranth.lib import data, wiring
from amaranth.lib.wiring import In, Out

import field
from field import CAPACITY, MAX_COMPARE_BITS, WIDTH, FieldInverse


class And(wiring.Component):
    a: In(WIDTH)
    b: In(WIDTH)
    out: Out(WIDTH)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()
        m.d.comb += self.out.eq(field.mul(self.a, self.b))
        return m


class Or(wiring.Component):
    a: In(WIDTH)
    b: In(WIDTH)
    out: Out(WIDTH)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()
        m.d.comb += self.out.eq(field.sub(field.add(self.a, self.b), field.mul(self.a, self.b)))
        return m


class IfThenElse(wiring.Component):
    """Field multiplexer: out = cond * (if_true - if_false) + if_false"""

    cond: In(WIDTH)
    if_true: In(WIDTH)
    if_false: In(WIDTH)
    out: Out(WIDTH)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        swing = field.mul(self.cond, field.sub(self.if_true, self.if_false))
        m.d.comb += self.out.eq(field.add(swing, self.if_false))

        return m


class Switcher(wiring.Component):
    """Two-way swap: sel = 1 exchanges left and right"""

    sel: In(WIDTH)
    left: In(WIDTH)
    right: In(WIDTH)
    out_left: Out(WIDTH)
    out_right: Out(WIDTH)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        aux = Signal(WIDTH)
        m.d.comb += aux.eq(field.mul(field.sub(self.right, self.left), self.sel))

        m.d.comb += self.out_left.eq(field.add(aux, self.left))
        m.d.comb += self.out_right.eq(field.sub(self.right, aux))

        return m


class Num2Bits(wiring.Component):
    """Hinted little-endian bit decomposition

    The bits are supplied by the witness generator and constrained to be
    boolean and to recompose to the input, so valid drops whenever the input
    does not fit in width bits.
    """

    def __init__(self, width: int):
        if not 1 <= width <= CAPACITY:
            raise ValueError(f"Num2Bits width must be in 1..{CAPACITY}, got {width}")

        self.width = width

        super().__init__(
            {
                "value": In(WIDTH),
                "bits": Out(data.ArrayLayout(WIDTH, width)),
                "valid": Out(1),
            }
        )

    def bits_hint(self) -> list[Value]:
        return [self.value[i] for i in range(self.width)]

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        bits = [self.bits[i] for i in range(self.width)]
        for bit, hint in zip(bits, self.bits_hint()):
            m.d.comb += bit.eq(hint)

        checks = [field.mul(bit, field.sub(bit, 1)) == 0 for bit in bits]
        checks.append(field.recompose(bits) == self.value)

        m.d.comb += self.valid.eq(Cat(*checks).all())

        return m


class IsZero(wiring.Component):
    value: In(WIDTH)
    out: Out(WIDTH)
    valid: Out(1)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.inverse = inverse = FieldInverse()
        m.d.comb += inverse.x.eq(self.value)

        m.d.comb += self.out.eq(field.sub(1, field.mul(self.value, inverse.inv)))
        m.d.comb += self.valid.eq(field.mul(self.value, self.out) == 0)

        return m


class IsEqual(wiring.Component):
    a: In(WIDTH)
    b: In(WIDTH)
    out: Out(WIDTH)
    valid: Out(1)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.is_zero = is_zero = IsZero()
        m.d.comb += is_zero.value.eq(field.sub(self.b, self.a))

        m.d.comb += self.out.eq(is_zero.out)
        m.d.comb += self.valid.eq(is_zero.valid)

        return m


class LessThan(wiring.Component):
    """out = 1 iff a < b, for operands below 2^width

    Decomposes a + 2^width - b into width + 1 bits; the top bit is set
    exactly when no borrow happened.
    """

    def __init__(self, width: int):
        if not 1 <= width <= MAX_COMPARE_BITS:
            raise ValueError(f"LessThan width must be in 1..{MAX_COMPARE_BITS}, got {width}")

        self.width = width

        super().__init__(
            {
                "a": In(WIDTH),
                "b": In(WIDTH),
                "out": Out(WIDTH),
                "valid": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.n2b = n2b = Num2Bits(self.width + 1)
        m.d.comb += n2b.value.eq(field.sub(field.add(self.a, 1 << self.width), self.b))

        m.d.comb += self.out.eq(field.sub(1, n2b.bits[self.width]))
        m.d.comb += self.valid.eq(n2b.valid)

        return m
