"""Function registry, builtin implementations and the default alias table."""

from __future__ import annotations

import inspect
import logging
import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from wolfcalc._errors import InvalidArgumentError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# formulas library availability
# ---------------------------------------------------------------------------

_formulas_available: bool | None = None


def _check_formulas() -> bool:
    global _formulas_available
    if _formulas_available is None:
        try:
            import formulas  # noqa: F401

            _formulas_available = True
        except ImportError:
            _formulas_available = False
    return _formulas_available


# ---------------------------------------------------------------------------
# FunctionSpec: one registered function
# ---------------------------------------------------------------------------

RETURN_TYPES = frozenset({"numeric", "string", "logical", "any"})


@dataclass(frozen=True)
class FunctionSpec:
    """A callable registered under a name, with its arity.

    ``max_args`` is None for variadic bodies.
    """

    name: str
    return_type: str
    body: Callable[..., Any]
    min_args: int = 0
    max_args: int | None = None

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def __call__(self, *args: Any) -> Any:
        return self.body(*args)


def _arity(body: Callable[..., Any]) -> tuple[int, int | None]:
    """(min, max) positional arguments *body* accepts, from its signature."""
    try:
        params = inspect.signature(body).parameters.values()
    except (ValueError, TypeError):
        return 0, None
    min_args = 0
    max_args: int | None = 0
    for p in params:
        if p.kind == p.VAR_POSITIONAL:
            max_args = None
        elif p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
            if p.default is p.empty:
                min_args += 1
            if max_args is not None:
                max_args += 1
    return min_args, max_args


# ---------------------------------------------------------------------------
# Builtin implementations - pure Python, no external deps.
# Each takes its resolved arguments positionally.
# ---------------------------------------------------------------------------


def _coerce_numeric(values: Iterable[Any]) -> list[float | int]:
    """Flatten lists and keep numbers, skipping None/str.

    Booleans count as 1/0.
    """
    result: list[float | int] = []
    for v in values:
        if isinstance(v, (list, tuple)):
            result.extend(_coerce_numeric(v))
        elif isinstance(v, bool):
            result.append(int(v))
        elif isinstance(v, (int, float)):
            result.append(v)
    return result


def _single_number(name: str, value: Any) -> float | int:
    nums = _coerce_numeric([value])
    if not nums:
        raise InvalidArgumentError(f"{name}: non-numeric argument {value!r}")
    return nums[0]


def _builtin_sum(*args: Any) -> float | int:
    return sum(_coerce_numeric(args))


def _builtin_min(*args: Any) -> float | int:
    nums = _coerce_numeric(args)
    if not nums:
        raise InvalidArgumentError("MIN requires at least one numeric argument")
    return min(nums)


def _builtin_max(*args: Any) -> float | int:
    nums = _coerce_numeric(args)
    if not nums:
        raise InvalidArgumentError("MAX requires at least one numeric argument")
    return max(nums)


def _builtin_average(*args: Any) -> float:
    nums = _coerce_numeric(args)
    if not nums:
        raise InvalidArgumentError("AVERAGE requires at least one numeric argument")
    return sum(nums) / len(nums)


def _builtin_count(*args: Any) -> int:
    """COUNT - counts numeric values only."""
    return len(_coerce_numeric(args))


def _builtin_abs(value: Any) -> float | int:
    return abs(_single_number("ABS", value))


def _builtin_round(value: Any, digits: Any = 0) -> float | int:
    num = _single_number("ROUND", value)
    places = int(_single_number("ROUND", digits))
    if places == 0:
        return round(num)
    return round(num, places)


def _builtin_roundup(value: Any, digits: Any = 0) -> float | int:
    num = _single_number("ROUNDUP", value)
    places = int(_single_number("ROUNDUP", digits))
    factor = 10 ** places
    rounded = math.ceil(abs(num) * factor) / factor
    rounded = rounded if num >= 0 else -rounded
    return int(rounded) if places <= 0 else rounded


def _builtin_rounddown(value: Any, digits: Any = 0) -> float | int:
    num = _single_number("ROUNDDOWN", value)
    places = int(_single_number("ROUNDDOWN", digits))
    factor = 10 ** places
    rounded = math.floor(abs(num) * factor) / factor
    rounded = rounded if num >= 0 else -rounded
    return int(rounded) if places <= 0 else rounded


def _builtin_int(value: Any) -> int:
    return math.floor(_single_number("INT", value))


def _builtin_mod(number: Any, divisor: Any) -> float | int:
    n = _single_number("MOD", number)
    d = _single_number("MOD", divisor)
    if d == 0:
        raise ZeroDivisionError("MOD: division by zero")
    # Python % already gives the result the sign of the divisor
    return n % d


def _builtin_power(base: Any, exponent: Any) -> float | int:
    return _single_number("POWER", base) ** _single_number("POWER", exponent)


def _builtin_sqrt(value: Any) -> float:
    num = _single_number("SQRT", value)
    if num < 0:
        raise InvalidArgumentError(f"SQRT: negative argument {num!r}")
    return math.sqrt(num)


def _builtin_sign(value: Any) -> int:
    num = _single_number("SIGN", value)
    if num > 0:
        return 1
    if num < 0:
        return -1
    return 0


def _builtin_and(*args: Any) -> bool:
    if not args:
        raise InvalidArgumentError("AND requires at least 1 argument")
    return all(bool(a) for a in args)


def _builtin_or(*args: Any) -> bool:
    if not args:
        raise InvalidArgumentError("OR requires at least 1 argument")
    return any(bool(a) for a in args)


def _builtin_not(value: Any) -> bool:
    return not bool(value)


def _coerce_string(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, bool):
        return "TRUE" if val else "FALSE"
    return str(val)


def _char_count(name: str, value: Any) -> int:
    count = int(_single_number(name, value))
    if count < 0:
        raise InvalidArgumentError(f"{name}: negative character count {count}")
    return count


def _builtin_left(text: Any, count: Any = 1) -> str:
    return _coerce_string(text)[: _char_count("LEFT", count)]


def _builtin_right(text: Any, count: Any = 1) -> str:
    n = _char_count("RIGHT", count)
    s = _coerce_string(text)
    return s[-n:] if n else ""


def _builtin_mid(text: Any, start: Any, count: Any) -> str:
    begin = int(_single_number("MID", start))
    if begin < 1:
        raise InvalidArgumentError(f"MID: start must be >= 1, got {begin}")
    n = _char_count("MID", count)
    return _coerce_string(text)[begin - 1 : begin - 1 + n]


def _builtin_len(text: Any) -> int:
    return len(_coerce_string(text))


def _builtin_concat(*args: Any) -> str:
    return "".join(_coerce_string(a) for a in args)


def _builtin_upper(text: Any) -> str:
    return _coerce_string(text).upper()


def _builtin_lower(text: Any) -> str:
    return _coerce_string(text).lower()


def _builtin_trim(text: Any) -> str:
    """TRIM - strip ends and collapse internal runs of spaces."""
    return " ".join(_coerce_string(text).split())


_BUILTINS: dict[str, tuple[str, Callable[..., Any]]] = {
    # Math
    "SUM": ("numeric", _builtin_sum),
    "MIN": ("numeric", _builtin_min),
    "MAX": ("numeric", _builtin_max),
    "AVERAGE": ("numeric", _builtin_average),
    "COUNT": ("numeric", _builtin_count),
    "ABS": ("numeric", _builtin_abs),
    "ROUND": ("numeric", _builtin_round),
    "ROUNDUP": ("numeric", _builtin_roundup),
    "ROUNDDOWN": ("numeric", _builtin_rounddown),
    "INT": ("numeric", _builtin_int),
    "MOD": ("numeric", _builtin_mod),
    "POWER": ("numeric", _builtin_power),
    "SQRT": ("numeric", _builtin_sqrt),
    "SIGN": ("numeric", _builtin_sign),
    # Logic (IF is a parser-level node, evaluated lazily)
    "AND": ("logical", _builtin_and),
    "OR": ("logical", _builtin_or),
    "NOT": ("logical", _builtin_not),
    # Text
    "LEFT": ("string", _builtin_left),
    "RIGHT": ("string", _builtin_right),
    "MID": ("string", _builtin_mid),
    "LEN": ("numeric", _builtin_len),
    "CONCAT": ("string", _builtin_concat),
    "UPPER": ("string", _builtin_upper),
    "LOWER": ("string", _builtin_lower),
    "TRIM": ("string", _builtin_trim),
}


# ---------------------------------------------------------------------------
# FunctionRegistry
# ---------------------------------------------------------------------------


class FunctionRegistry:
    """Registry of callable function implementations.

    A registry may chain to a *parent*: lookups that miss locally fall
    through to it, while registrations always land locally.  Calculators
    get a fresh registry chained to :func:`default_registry` so per-instance
    functions never leak into other calculators.
    """

    def __init__(
        self,
        parent: FunctionRegistry | None = None,
        builtins: bool = False,
    ) -> None:
        self.parent = parent
        self._functions: dict[str, FunctionSpec] = {}
        if builtins:
            for name, (return_type, body) in _BUILTINS.items():
                self.register(name, return_type, body)

    def register(self, name: str, return_type: str, body: Callable[..., Any]) -> FunctionSpec:
        if not callable(body):
            raise InvalidArgumentError(f"function body for {name!r} is not callable")
        if return_type not in RETURN_TYPES:
            raise InvalidArgumentError(
                f"unknown return type {return_type!r} for {name!r}; "
                f"expected one of {sorted(RETURN_TYPES)}"
            )
        min_args, max_args = _arity(body)
        spec = FunctionSpec(name.upper(), return_type, body, min_args, max_args)
        self._functions[spec.name] = spec
        return spec

    def get(self, name: str) -> FunctionSpec | None:
        spec = self._functions.get(name.upper())
        if spec is None and self.parent is not None:
            return self.parent.get(name)
        return spec

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    @property
    def supported_functions(self) -> frozenset[str]:
        names = set(self._functions)
        if self.parent is not None:
            names |= self.parent.supported_functions
        return frozenset(names)


# Process-wide default registry, preloaded with the builtins.
_DEFAULT_REGISTRY = FunctionRegistry(builtins=True)


def default_registry() -> FunctionRegistry:
    """The process-wide registry new calculators chain to."""
    return _DEFAULT_REGISTRY


# ---------------------------------------------------------------------------
# Aliases: alternate function name -> canonical function name
# ---------------------------------------------------------------------------

_DEFAULT_ALIASES: dict[str, str] = {}


def default_aliases() -> dict[str, str]:
    """The process-wide alias table used when a calculator gets none."""
    return _DEFAULT_ALIASES


def set_default_aliases(aliases: Mapping[str, str]) -> None:
    """Replace the process-wide alias table (names are case-insensitive)."""
    global _DEFAULT_ALIASES
    _DEFAULT_ALIASES = {k.upper(): v.upper() for k, v in aliases.items()}


# ---------------------------------------------------------------------------
# formulas library fallback
# ---------------------------------------------------------------------------


def formulas_function(name: str) -> FunctionSpec | None:
    """Look up *name* among the ``formulas`` library's Excel functions.

    Returns None when the library is not installed or lacks the function.
    """
    if not _check_formulas():
        return None
    import formulas as fm

    func = fm.get_functions().get(name.upper())
    if func is None:
        logger.debug("Unsupported function: %s", name)
        return None

    def _call(*args: Any) -> Any:
        return _normalize_formulas_result(func(*args))

    logger.debug("Using formulas library for %s", name)
    return FunctionSpec(name.upper(), "any", _call, 0, None)


def _normalize_formulas_result(raw: Any) -> Any:
    """Convert a ``formulas`` library result to a plain Python value."""
    if raw is None:
        return None
    # numpy arrays with one element and numpy scalars
    if hasattr(raw, "size") and getattr(raw, "size", 0) == 1 and hasattr(raw, "item"):
        try:
            raw = raw.item()
        except (ValueError, TypeError):
            return raw
    elif hasattr(raw, "item") and not hasattr(raw, "shape"):
        try:
            raw = raw.item()
        except (ValueError, TypeError):
            return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    return raw
