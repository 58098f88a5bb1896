"""
Named predicates used by the control catalogue.

A value predicate takes one observed value and returns an Evaluation. A
classify function takes a TargetObject; `check(key, predicate)` binds the two.
Every predicate here is total: absent, mistyped or unparsable values produce
FAIL or UNKNOWN with a detail line, never an exception.
"""

from typing import Any
from typing import Callable
from typing import Iterable

from vsaudit.rules.spec.result import Evaluation
from vsaudit.rules.spec.result import Outcome
from vsaudit.rules.spec.result import TargetObject

ValuePredicate = Callable[[Any], Evaluation]
Classify = Callable[[TargetObject], Evaluation]

NOT_SET = "not set"


def _show(value: Any) -> str:
    if value is None or value == "" or value == []:
        return NOT_SET
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    normalized = str(value).strip().lower()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def check(
    key: str,
    predicate: ValuePredicate,
    label: str | None = None,
    default: Any = None,
) -> Classify:
    """
    Classify a target by applying `predicate` to one of its attributes.

    `default` stands in for an absent value where the platform documents what
    an unset setting means; the detail line then says so.
    """
    label = label or key.split(":", 1)[-1]

    def classify(target: TargetObject) -> Evaluation:
        value = target.get(key)
        if value is None and default is not None:
            evaluation = predicate(default)
            return Evaluation(
                evaluation.outcome, (f"{label}: {NOT_SET} (default {default})",),
            )
        evaluation = predicate(value)
        return Evaluation(
            evaluation.outcome,
            tuple(f"{label}: {detail}" for detail in evaluation.details),
        )

    classify.__name__ = f"check_{label}"
    return classify


def equals(expected: Any) -> ValuePredicate:
    """
    Pass when the value equals `expected`. Integers and booleans are compared
    after coercion, so the string "5" equals 5 and "FALSE" equals False.
    """

    def predicate(value: Any) -> Evaluation:
        if value is None:
            return Evaluation.failed(f"{NOT_SET}, expected {expected}")
        if isinstance(expected, bool):
            observed = _as_bool(value)
        elif isinstance(expected, int):
            observed = _as_int(value)
        else:
            observed = str(value)
        if observed is None:
            return Evaluation.unknown(f"cannot interpret {value!r}, expected {expected}")
        if observed == expected:
            return Evaluation.passed(_show(value))
        return Evaluation.failed(f"{_show(value)}, expected {expected}")

    return predicate


def at_most(limit: int, allow_zero: bool = True) -> ValuePredicate:
    """Pass when the value is a number <= `limit`. Zero means "no timeout" when `allow_zero` is False."""

    def predicate(value: Any) -> Evaluation:
        if value is None:
            return Evaluation.failed(f"{NOT_SET}, expected at most {limit}")
        observed = _as_int(value)
        if observed is None:
            return Evaluation.unknown(f"cannot interpret {value!r}, expected at most {limit}")
        if observed == 0 and not allow_zero:
            return Evaluation.failed(f"0 (disabled), expected 1-{limit}")
        if observed <= limit:
            return Evaluation.passed(str(observed))
        return Evaluation.failed(f"{observed}, expected at most {limit}")

    return predicate


def is_set() -> ValuePredicate:
    """Pass when the value is present and non-empty."""

    def predicate(value: Any) -> Evaluation:
        if value is None or value == "" or value == [] or value == {}:
            return Evaluation.failed(NOT_SET)
        return Evaluation.passed(_show(value))

    return predicate


def is_empty() -> ValuePredicate:
    """Pass when the value is absent or empty."""

    def predicate(value: Any) -> Evaluation:
        if value is None or value == "" or value == [] or value == {}:
            return Evaluation.passed(NOT_SET)
        return Evaluation.failed(_show(value))

    return predicate


def one_of(allowed: Iterable[Any]) -> ValuePredicate:
    allowed = tuple(allowed)

    def predicate(value: Any) -> Evaluation:
        if value is None:
            return Evaluation.failed(f"{NOT_SET}, expected one of {_show(allowed)}")
        if value in allowed:
            return Evaluation.passed(str(value))
        return Evaluation.failed(f"{value}, expected one of {_show(allowed)}")

    return predicate


def none_of(forbidden: Iterable[Any]) -> ValuePredicate:
    """Pass when the value is not one of `forbidden`. An absent value is unknown."""
    forbidden = tuple(forbidden)

    def predicate(value: Any) -> Evaluation:
        if value is None:
            return Evaluation.unknown(NOT_SET)
        if value in forbidden:
            return Evaluation.failed(str(value))
        return Evaluation.passed(str(value))

    return predicate


def is_false() -> ValuePredicate:
    """Pass when the value is False ("reject", "disabled", "not running")."""
    return equals(False)


def not_in_ranges(ranges: Iterable[tuple[int, int]]) -> ValuePredicate:
    """Pass when an integer value lies outside every inclusive range."""
    ranges = tuple(ranges)

    def predicate(value: Any) -> Evaluation:
        observed = _as_int(value) if value is not None else None
        if observed is None:
            return Evaluation.unknown(f"cannot interpret {value!r}")
        for low, high in ranges:
            if low <= observed <= high:
                reserved = str(low) if low == high else f"{low}-{high}"
                return Evaluation.failed(f"{observed} is in reserved range {reserved}")
        return Evaluation.passed(str(observed))

    return predicate


def all_of(*classifiers: Classify) -> Classify:
    """
    Combine several classify functions over the same target with the usual
    priority: any FAIL fails, otherwise any UNKNOWN is unknown.
    """

    def classify(target: TargetObject) -> Evaluation:
        evaluations = [c(target) for c in classifiers]
        details = tuple(d for e in evaluations for d in e.details)
        outcomes = {e.outcome for e in evaluations}
        if Outcome.FAIL in outcomes:
            return Evaluation.failed(*details)
        if Outcome.UNKNOWN in outcomes:
            return Evaluation.unknown(*details)
        return Evaluation.passed(*details)

    return classify


def listed_item(reason: str, *fields: str) -> Classify:
    """
    Classify for controls that fetch offending items (devices, disks): every
    item found fails.
    """

    def classify(target: TargetObject) -> Evaluation:
        shown = ", ".join(f"{f}: {target.get(f)}" for f in fields if target.get(f) is not None)
        return Evaluation.failed(f"{reason} ({shown})" if shown else reason)

    return classify


def device_disconnected(target: TargetObject) -> Evaluation:
    """Removable devices pass only when neither connected nor set to connect at power on."""
    if target.get("connected"):
        return Evaluation.failed("device is connected")
    if target.get("start_connected"):
        return Evaluation.failed("device connects at power on")
    return Evaluation.passed("device is disconnected")
