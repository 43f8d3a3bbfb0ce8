# nl_tree_ad/core/dual.py
# First-order dual numbers with N simultaneous directions

import numpy as np


class Dual:
    """
    Dual number carrying N epsilon components:
    v = value + sum_i eps[i] * e_i,   e_i * e_j = 0
    eps[i] = directional derivative along direction i

    Only the operations the directional pass needs are defined
    (product, reciprocal/division, power, log, scaling).
    """
    __slots__ = ("value", "eps")

    def __init__(self, value, eps):
        self.value = np.float64(value)
        self.eps = np.asarray(eps, dtype=np.float64)

    @classmethod
    def constant(cls, value, n: int):
        return cls(value, np.zeros(n))

    @classmethod
    def one(cls, n: int):
        return cls.constant(1.0, n)

    def __repr__(self):
        return f"Dual({self.value!r}, {self.eps!r})"

    def _lift(self, b):
        return b if isinstance(b, Dual) else Dual.constant(b, self.eps.size)

    def __add__(a, b):
        b = a._lift(b)
        return Dual(a.value + b.value, a.eps + b.eps)
    __radd__ = __add__

    def __sub__(a, b):
        b = a._lift(b)
        return Dual(a.value - b.value, a.eps - b.eps)

    def __rsub__(b, a):
        a = b._lift(a)
        return Dual(a.value - b.value, a.eps - b.eps)

    def __neg__(a):
        return Dual(-a.value, -a.eps)

    def __mul__(a, b):
        if not isinstance(b, Dual):
            return Dual(a.value * b, a.eps * b)
        return Dual(a.value * b.value, a.eps * b.value + a.value * b.eps)
    __rmul__ = __mul__

    def recip(self):
        r = 1.0 / self.value
        return Dual(r, -(r * r) * self.eps)

    def __truediv__(a, b):
        if not isinstance(b, Dual):
            return a * (1.0 / np.float64(b))
        return a * b.recip()

    def __rtruediv__(b, a):
        return b.recip() * a

    def __pow__(a, b):
        if not isinstance(b, Dual):
            b = np.float64(b)
            return Dual(a.value ** b, (b * a.value ** (b - 1.0)) * a.eps)
        val = a.value ** b.value
        eps = (b.value * a.value ** (b.value - 1.0)) * a.eps
        # Only pull in log(base) when the exponent actually moves; a constant
        # exponent over a negative base must not turn the result into NaN
        if b.eps.any():
            eps = eps + (val * np.log(a.value)) * b.eps
        return Dual(val, eps)

    def log(self):
        return Dual(np.log(self.value), self.eps / self.value)
