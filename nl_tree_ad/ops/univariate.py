# nl_tree_ad/ops/univariate.py
"""
Univariate operator rule table.

Every catalog entry supplies closed forms for
    f(x), f'(x)            -> used by the value/partial pass
    f''(x, f(x))           -> used by the directional pass
The second derivative receives the already computed f(x) so entries such as
exp, tan or sqrt do not evaluate the function twice.

The table is a pair of fixed-size tuples indexed by operator id. Entries whose
first derivative contains |x| (asec, acsc, asecd, acscd, acsch) carry no
second derivative; looking one up raises UnsupportedOperatorError.
"""
import logging

import numpy as np
import scipy.special as sc

from ..core.errors import UnsupportedOperatorError

logger = logging.getLogger(__name__)

_DEG = np.pi / 180.0
_RAD = 180.0 / np.pi
_LN2 = np.log(2.0)
_LN10 = np.log(10.0)
_TWO_OVER_SQRTPI = 2.0 / np.sqrt(np.pi)
_SQRTPI_OVER_TWO = np.sqrt(np.pi) / 2.0


# ----- power, roots, logs, exponentials -----
def _abs(x):
    return abs(x), (1.0 if x >= 0 else -1.0)

def _sqrt(x):
    s = np.sqrt(x)
    return s, 0.5 / s

def _cbrt(x):
    c = np.cbrt(x)
    return c, 1.0 / (3.0 * c * c)

def _inv(x):
    r = 1.0 / x
    return r, -r * r

def _exp(x):
    e = np.exp(x)
    return e, e

def _exp2(x):
    e = np.exp2(x)
    return e, e * _LN2


# ----- trigonometric (radians) -----
def _tan(x):
    t = np.tan(x)
    return t, 1.0 + t * t

def _sec(x):
    s = 1.0 / np.cos(x)
    return s, s * np.tan(x)

def _sec_2nd(x, fx):
    t = np.tan(x)
    return fx * (t * t + fx * fx)

def _csc(x):
    s = 1.0 / np.sin(x)
    return s, -s / np.tan(x)

def _csc_2nd(x, fx):
    c = 1.0 / np.tan(x)
    return fx * (c * c + fx * fx)

def _cot(x):
    c = 1.0 / np.tan(x)
    return c, -(1.0 + c * c)


# ----- trigonometric (degrees): chain rule with d(rad)/d(deg) = pi/180 -----
def _tand(x):
    t = np.tan(_DEG * x)
    return t, _DEG * (1.0 + t * t)

def _secd(x):
    s = 1.0 / np.cos(_DEG * x)
    return s, _DEG * s * np.tan(_DEG * x)

def _secd_2nd(x, fx):
    t = np.tan(_DEG * x)
    return _DEG * _DEG * fx * (t * t + fx * fx)

def _cscd(x):
    s = 1.0 / np.sin(_DEG * x)
    return s, -_DEG * s / np.tan(_DEG * x)

def _cscd_2nd(x, fx):
    c = 1.0 / np.tan(_DEG * x)
    return _DEG * _DEG * fx * (c * c + fx * fx)

def _cotd(x):
    c = 1.0 / np.tan(_DEG * x)
    return c, -_DEG * (1.0 + c * c)


# ----- hyperbolic -----
def _tanh(x):
    t = np.tanh(x)
    return t, 1.0 - t * t

def _sech(x):
    s = 1.0 / np.cosh(x)
    return s, -s * np.tanh(x)

def _sech_2nd(x, fx):
    t = np.tanh(x)
    return fx * (t * t - fx * fx)

def _csch(x):
    s = 1.0 / np.sinh(x)
    return s, -s / np.tanh(x)

def _csch_2nd(x, fx):
    c = 1.0 / np.tanh(x)
    return fx * (c * c + fx * fx)

def _coth(x):
    c = 1.0 / np.tanh(x)
    return c, 1.0 - c * c


# ----- error functions -----
def _erf(x):
    return sc.erf(x), _TWO_OVER_SQRTPI * np.exp(-x * x)

def _erfc(x):
    return sc.erfc(x), -_TWO_OVER_SQRTPI * np.exp(-x * x)

def _erfinv(x):
    y = sc.erfinv(x)
    return y, _SQRTPI_OVER_TWO * np.exp(y * y)

def _erfcinv(x):
    y = sc.erfcinv(x)
    return y, -_SQRTPI_OVER_TWO * np.exp(y * y)

def _erfinv_2nd(x, fx):
    # Same closed form for erfinv and erfcinv: (pi/2) y exp(2 y^2)
    return 0.5 * np.pi * fx * np.exp(2.0 * fx * fx)

def _erfi(x):
    return sc.erfi(x), _TWO_OVER_SQRTPI * np.exp(x * x)

def _erfcx(x):
    y = sc.erfcx(x)
    return y, 2.0 * x * y - _TWO_OVER_SQRTPI

def _dawson(x):
    d = sc.dawsn(x)
    return d, 1.0 - 2.0 * x * d


# ----- gamma family -----
def _gamma(x):
    g = sc.gamma(x)
    return g, g * sc.digamma(x)

def _gamma_2nd(x, fx):
    psi = sc.digamma(x)
    return fx * (psi * psi + float(sc.polygamma(1, x)))


# ----- Airy and Bessel -----
def _airyai(x):
    ai, aip, _, _ = sc.airy(x)
    return ai, aip

def _airybi(x):
    _, _, bi, bip = sc.airy(x)
    return bi, bip

def _airyaiprime(x):
    ai, aip, _, _ = sc.airy(x)
    return aip, x * ai

def _airybiprime(x):
    _, _, bi, bip = sc.airy(x)
    return bip, x * bi


# (name, f and f', f'' or None)
_CATALOG = (
    ("+",           lambda x: (x, 1.0),                              lambda x, fx: 0.0),
    ("-",           lambda x: (-x, -1.0),                            lambda x, fx: 0.0),
    ("abs",         _abs,                                            lambda x, fx: 0.0),
    ("sqrt",        _sqrt,                                           lambda x, fx: -0.25 / (x * fx)),
    ("cbrt",        _cbrt,                                           lambda x, fx: -2.0 / (9.0 * x * fx * fx)),
    ("abs2",        lambda x: (x * x, 2.0 * x),                      lambda x, fx: 2.0),
    ("inv",         _inv,                                            lambda x, fx: 2.0 * fx * fx * fx),
    ("log",         lambda x: (np.log(x), 1.0 / x),                  lambda x, fx: -1.0 / (x * x)),
    ("log10",       lambda x: (np.log10(x), 1.0 / (x * _LN10)),      lambda x, fx: -1.0 / (x * x * _LN10)),
    ("log2",        lambda x: (np.log2(x), 1.0 / (x * _LN2)),        lambda x, fx: -1.0 / (x * x * _LN2)),
    ("log1p",       lambda x: (np.log1p(x), 1.0 / (1.0 + x)),        lambda x, fx: -1.0 / ((1.0 + x) * (1.0 + x))),
    ("exp",         _exp,                                            lambda x, fx: fx),
    ("exp2",        _exp2,                                           lambda x, fx: fx * _LN2 * _LN2),
    ("expm1",       lambda x: (np.expm1(x), np.exp(x)),              lambda x, fx: np.exp(x)),
    ("sin",         lambda x: (np.sin(x), np.cos(x)),                lambda x, fx: -fx),
    ("cos",         lambda x: (np.cos(x), -np.sin(x)),               lambda x, fx: -fx),
    ("tan",         _tan,                                            lambda x, fx: 2.0 * fx * (1.0 + fx * fx)),
    ("sec",         _sec,                                            _sec_2nd),
    ("csc",         _csc,                                            _csc_2nd),
    ("cot",         _cot,                                            lambda x, fx: 2.0 * fx * (1.0 + fx * fx)),
    ("sind",        lambda x: (np.sin(_DEG * x), _DEG * np.cos(_DEG * x)),   lambda x, fx: -_DEG * _DEG * fx),
    ("cosd",        lambda x: (np.cos(_DEG * x), -_DEG * np.sin(_DEG * x)),  lambda x, fx: -_DEG * _DEG * fx),
    ("tand",        _tand,                                           lambda x, fx: 2.0 * _DEG * _DEG * fx * (1.0 + fx * fx)),
    ("secd",        _secd,                                           _secd_2nd),
    ("cscd",        _cscd,                                           _cscd_2nd),
    ("cotd",        _cotd,                                           lambda x, fx: 2.0 * _DEG * _DEG * fx * (1.0 + fx * fx)),
    ("asin",        lambda x: (np.arcsin(x), 1.0 / np.sqrt(1.0 - x * x)),    lambda x, fx: x / (1.0 - x * x) ** 1.5),
    ("acos",        lambda x: (np.arccos(x), -1.0 / np.sqrt(1.0 - x * x)),   lambda x, fx: -x / (1.0 - x * x) ** 1.5),
    ("atan",        lambda x: (np.arctan(x), 1.0 / (1.0 + x * x)),           lambda x, fx: -2.0 * x / (1.0 + x * x) ** 2),
    ("asec",        lambda x: (np.arccos(1.0 / x), 1.0 / (abs(x) * np.sqrt(x * x - 1.0))),   None),
    ("acsc",        lambda x: (np.arcsin(1.0 / x), -1.0 / (abs(x) * np.sqrt(x * x - 1.0))),  None),
    ("acot",        lambda x: (np.arctan(1.0 / x), -1.0 / (1.0 + x * x)),    lambda x, fx: 2.0 * x / (1.0 + x * x) ** 2),
    ("asind",       lambda x: (_RAD * np.arcsin(x), _RAD / np.sqrt(1.0 - x * x)),    lambda x, fx: _RAD * x / (1.0 - x * x) ** 1.5),
    ("acosd",       lambda x: (_RAD * np.arccos(x), -_RAD / np.sqrt(1.0 - x * x)),   lambda x, fx: -_RAD * x / (1.0 - x * x) ** 1.5),
    ("atand",       lambda x: (_RAD * np.arctan(x), _RAD / (1.0 + x * x)),           lambda x, fx: -2.0 * _RAD * x / (1.0 + x * x) ** 2),
    ("asecd",       lambda x: (_RAD * np.arccos(1.0 / x), _RAD / (abs(x) * np.sqrt(x * x - 1.0))),   None),
    ("acscd",       lambda x: (_RAD * np.arcsin(1.0 / x), -_RAD / (abs(x) * np.sqrt(x * x - 1.0))),  None),
    ("acotd",       lambda x: (_RAD * np.arctan(1.0 / x), -_RAD / (1.0 + x * x)),    lambda x, fx: 2.0 * _RAD * x / (1.0 + x * x) ** 2),
    ("sinh",        lambda x: (np.sinh(x), np.cosh(x)),              lambda x, fx: fx),
    ("cosh",        lambda x: (np.cosh(x), np.sinh(x)),              lambda x, fx: fx),
    ("tanh",        _tanh,                                           lambda x, fx: -2.0 * fx * (1.0 - fx * fx)),
    ("sech",        _sech,                                           _sech_2nd),
    ("csch",        _csch,                                           _csch_2nd),
    ("coth",        _coth,                                           lambda x, fx: -2.0 * fx * (1.0 - fx * fx)),
    ("asinh",       lambda x: (np.arcsinh(x), 1.0 / np.sqrt(1.0 + x * x)),   lambda x, fx: -x / (1.0 + x * x) ** 1.5),
    ("acosh",       lambda x: (np.arccosh(x), 1.0 / np.sqrt(x * x - 1.0)),   lambda x, fx: -x / (x * x - 1.0) ** 1.5),
    ("atanh",       lambda x: (np.arctanh(x), 1.0 / (1.0 - x * x)),          lambda x, fx: 2.0 * x / (1.0 - x * x) ** 2),
    ("asech",       lambda x: (np.arccosh(1.0 / x), -1.0 / (x * np.sqrt(1.0 - x * x))),
                    lambda x, fx: (1.0 - 2.0 * x * x) / (x * x * (1.0 - x * x) ** 1.5)),
    ("acsch",       lambda x: (np.arcsinh(1.0 / x), -1.0 / (abs(x) * np.sqrt(1.0 + x * x))),    None),
    ("acoth",       lambda x: (np.arctanh(1.0 / x), 1.0 / (1.0 - x * x)),    lambda x, fx: 2.0 * x / (1.0 - x * x) ** 2),
    ("deg2rad",     lambda x: (_DEG * x, _DEG),                      lambda x, fx: 0.0),
    ("rad2deg",     lambda x: (_RAD * x, _RAD),                      lambda x, fx: 0.0),
    ("erf",         _erf,                                            lambda x, fx: -2.0 * x * _TWO_OVER_SQRTPI * np.exp(-x * x)),
    ("erfinv",      _erfinv,                                         _erfinv_2nd),
    ("erfc",        _erfc,                                           lambda x, fx: 2.0 * x * _TWO_OVER_SQRTPI * np.exp(-x * x)),
    ("erfcinv",     _erfcinv,                                        _erfinv_2nd),
    ("erfi",        _erfi,                                           lambda x, fx: 2.0 * x * _TWO_OVER_SQRTPI * np.exp(x * x)),
    ("erfcx",       _erfcx,                                          lambda x, fx: (2.0 + 4.0 * x * x) * fx - 2.0 * x * _TWO_OVER_SQRTPI),
    ("dawson",      _dawson,                                         lambda x, fx: (4.0 * x * x - 2.0) * fx - 2.0 * x),
    ("digamma",     lambda x: (sc.digamma(x), float(sc.polygamma(1, x))),            lambda x, fx: float(sc.polygamma(2, x))),
    ("trigamma",    lambda x: (float(sc.polygamma(1, x)), float(sc.polygamma(2, x))), lambda x, fx: float(sc.polygamma(3, x))),
    ("gamma",       _gamma,                                          _gamma_2nd),
    ("lgamma",      lambda x: (sc.gammaln(x), sc.digamma(x)),        lambda x, fx: float(sc.polygamma(1, x))),
    ("airyai",      _airyai,                                         lambda x, fx: x * fx),
    ("airybi",      _airybi,                                         lambda x, fx: x * fx),
    ("airyaiprime", _airyaiprime,                                    lambda x, fx: sc.airy(x)[0] + x * fx),
    ("airybiprime", _airybiprime,                                    lambda x, fx: sc.airy(x)[2] + x * fx),
    # J_n' = (J_{n-1} - J_{n+1}) / 2, and likewise for Y_n
    ("besselj0",    lambda x: (sc.j0(x), -sc.j1(x)),                 lambda x, fx: 0.5 * (sc.jv(2, x) - fx)),
    ("besselj1",    lambda x: (sc.j1(x), 0.5 * (sc.j0(x) - sc.jv(2, x))),    lambda x, fx: 0.25 * (sc.jv(3, x) - 3.0 * fx)),
    ("bessely0",    lambda x: (sc.y0(x), -sc.y1(x)),                 lambda x, fx: 0.5 * (sc.yv(2, x) - fx)),
    ("bessely1",    lambda x: (sc.y1(x), 0.5 * (sc.y0(x) - sc.yv(2, x))),    lambda x, fx: 0.25 * (sc.yv(3, x) - 3.0 * fx)),
)

univariate_operators = tuple(name for name, _, _ in _CATALOG)
univariate_operator_to_id = {name: i for i, name in enumerate(univariate_operators)}

_VALUE_AND_DERIV = tuple(rule for _, rule, _ in _CATALOG)
_SECOND_DERIV = tuple(rule for _, _, rule in _CATALOG)
_N_UNIVARIATE = len(_CATALOG)

logger.debug(
    "univariate rule table: %d operators, %d with second derivatives",
    _N_UNIVARIATE, sum(rule is not None for rule in _SECOND_DERIV),
)


def _check_id(operator_id, family):
    if not (isinstance(operator_id, (int, np.integer)) and 0 <= operator_id < _N_UNIVARIATE):
        raise UnsupportedOperatorError(operator_id, family)


def eval_univariate(operator_id: int, x):
    """
    Return (f(x), f'(x)) for univariate operator `operator_id`.

    `x` is promoted to float64 so division by zero and domain errors follow
    IEEE semantics (inf/NaN) instead of raising.
    """
    _check_id(operator_id, "univariate")
    return _VALUE_AND_DERIV[operator_id](np.float64(x))


def eval_univariate_2nd_deriv(operator_id: int, x, fval):
    """Return f''(x) given the already computed fval = f(x)."""
    _check_id(operator_id, "univariate second derivative")
    rule = _SECOND_DERIV[operator_id]
    if rule is None:
        raise UnsupportedOperatorError(
            operator_id, "univariate second derivative", univariate_operators[operator_id]
        )
    return rule(np.float64(x), np.float64(fval))


def has_second_derivative(operator_id: int) -> bool:
    """Whether `operator_id` may appear in a directional evaluation."""
    return 0 <= operator_id < _N_UNIVARIATE and _SECOND_DERIV[operator_id] is not None
