import math

from amaranth.lib import data

from field import WIDTH


class FieldFloat(data.Struct):
    """(e, m) pair of field elements

    Well-formed for parameters (k, p) when both are zero, or when
    1 <= e < 2^k and 2^p <= m < 2^(p+1). The value is m * 2^(e - p); there is
    no sign and no exponent bias.
    """

    e: WIDTH
    m: WIDTH


class FloatValue:
    """Software helper for (k, p) floats, used as the reference model"""

    def __init__(self, k: int, p: int, e: int, m: int):
        self.k = k
        self.p = p
        self.e = e
        self.m = m

    @classmethod
    def zero(cls, k: int, p: int):
        return cls(k, p, 0, 0)

    @classmethod
    def from_float(cls, k: int, p: int, f: float):
        if f == 0:
            return cls.zero(k, p)
        if f < 0 or not math.isfinite(f):
            raise ValueError(f"{f} has no (e, m) encoding")

        # f is a dyadic rational; scale it to an exact integer ratio
        num, den = f.as_integer_ratio()
        shift = num.bit_length() - den.bit_length()
        if (num << max(0, -shift)) < (den << max(0, shift)):
            shift -= 1

        # 2^shift <= f < 2^(shift+1), so the mantissa needs shift - p fractional bits
        exp = shift
        if p >= shift:
            scaled_num, scaled_den = num << (p - shift), den
        else:
            scaled_num, scaled_den = num, den << (shift - p)
        mant, rem = divmod(scaled_num, scaled_den)
        if 2 * rem >= scaled_den:
            mant += 1
        if mant == 1 << (p + 1):
            mant = 1 << p
            exp += 1

        value = cls(k, p, exp, mant)
        if not value.is_well_formed():
            raise ValueError(f"{f} is outside the range of k={k}, p={p}")
        return value

    def to_float(self) -> float:
        if self.e == 0:
            return 0.0
        return math.ldexp(self.m, self.e - self.p)

    def is_zero(self) -> bool:
        return self.e == 0 and self.m == 0

    def is_well_formed(self) -> bool:
        if self.is_zero():
            return True
        return 1 <= self.e < 1 << self.k and 1 << self.p <= self.m < 1 << (self.p + 1)

    def as_dict(self) -> dict[str, int]:
        return {"e": self.e, "m": self.m}

    def __eq__(self, other):
        if not isinstance(other, FloatValue):
            return NotImplemented
        return (self.k, self.p, self.e, self.m) == (other.k, other.p, other.e, other.m)

    def __repr__(self):
        return f"FloatValue(k={self.k}, p={self.p}, e={self.e}, m={self.m})"

    def __add__(self, other):
        """Round-to-nearest addition, ties rounding up"""
        if not isinstance(other, FloatValue):
            return NotImplemented
        if (self.k, self.p) != (other.k, other.p):
            raise ValueError("operands use different (k, p) parameters")
        if not (self.is_well_formed() and other.is_well_formed()):
            raise ValueError(f"malformed operand in {self!r} + {other!r}")

        if self.is_zero():
            return other
        if other.is_zero():
            return self

        p = self.p
        base = min(self.e, other.e)
        total = (self.m << (self.e - base)) + (other.m << (other.e - base))

        # total * 2^(base - p) is exact; reduce total to p + 1 bits
        excess = total.bit_length() - 1 - p
        mant = (total + (1 << (excess - 1))) >> excess if excess > 0 else total
        exp = base + excess
        if mant == 1 << (p + 1):
            mant = 1 << p
            exp += 1

        if exp >= 1 << self.k:
            raise OverflowError(f"{self!r} + {other!r} overflows a {self.k}-bit exponent")

        return FloatValue(self.k, p, exp, mant)
