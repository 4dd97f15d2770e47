from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

# BN254 scalar field, the default circom prime
MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617
WIDTH = MODULUS.bit_length()
CAPACITY = WIDTH - 1
MAX_COMPARE_BITS = CAPACITY - 1


def encode(x: int) -> int:
    """Map a Python integer (possibly negative) to its canonical residue"""
    return x % MODULUS


def _tree_sum(terms):
    # pairwise reduction keeps wide sums shallow
    terms = list(terms)
    if not terms:
        return 0
    while len(terms) > 1:
        paired = [terms[i] + terms[i + 1] for i in range(0, len(terms) - 1, 2)]
        if len(terms) % 2:
            paired.append(terms[-1])
        terms = paired
    return terms[0]


def add(*terms):
    return _tree_sum(terms) % MODULUS


def sub(a, b):
    return (a - b) % MODULUS


def mul(a, b):
    return (a * b) % MODULUS


def linear(terms):
    """Weighted sum of (coefficient, value) pairs, reduced to a residue"""
    return _tree_sum(encode(coeff) * value for coeff, value in terms) % MODULUS


def recompose(bits, offset: int = 0):
    return linear((1 << i, bit) for i, bit in enumerate(bits[offset:]))


class _SquareStage(wiring.Component):
    def __init__(self, multiply: bool):
        self.multiply = multiply

        super().__init__(
            {
                "x": In(WIDTH),
                "acc_in": In(WIDTH),
                "acc_out": Out(WIDTH),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        squared = mul(self.acc_in, self.acc_in)
        if self.multiply:
            m.d.comb += self.acc_out.eq(mul(squared, self.x))
        else:
            m.d.comb += self.acc_out.eq(squared)

        return m


class FieldInverse(wiring.Component):
    """Multiplicative inverse by Fermat exponentiation, x^(MODULUS - 2)

    Left-to-right square-and-multiply over the fixed exponent. Every squaring
    lives in its own stage so the simulator never expands a nested product.
    Zero maps to zero.
    """

    x: In(WIDTH)
    inv: Out(WIDTH)

    EXPONENT = MODULUS - 2

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        # leading bit of the exponent seeds the accumulator with x
        acc = self.x
        for i, bit in enumerate(bin(self.EXPONENT)[3:]):
            stage = _SquareStage(multiply=bit == "1")
            m.submodules[f"stage_{i}"] = stage

            m.d.comb += stage.x.eq(self.x)
            m.d.comb += stage.acc_in.eq(acc)
            acc = stage.acc_out

        m.d.comb += self.inv.eq(acc)

        return m
