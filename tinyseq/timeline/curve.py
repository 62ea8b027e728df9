# timeline/curve.py
from bisect import bisect_left
from typing import List, NamedTuple


class CurvePoint(NamedTuple):
    time: float     # seconds, math.inf = hold until cut off
    value: float
    is_ramp: bool   # False: step at time; True: linear ramp arriving at time


Curve = List[CurvePoint]


def cutoff(curve: Curve, t: float) -> None:
    """Cut ``curve`` at time ``t`` in place, keeping the automation continuous.

    Everything from the first point at or after ``t`` is dropped and replaced
    by one point at ``t`` carrying the value the removed segment had reached
    there. The new point keeps the removed point's ramp flag.
    """
    i = bisect_left([p.time for p in curve], t)
    if i >= len(curve):
        return
    removed = curve[i]
    del curve[i:]
    if i > 0:
        prev = curve[i - 1]
        if removed.is_ramp:
            # prev.time < t <= removed.time, so the span is never zero
            x = max(0.0, min(1.0, (t - prev.time) / (removed.time - prev.time)))
        else:
            x = 0.0
        curve.append(CurvePoint(t, prev.value * (1 - x) + removed.value * x, removed.is_ramp))


def is_ordered(curve: Curve) -> bool:
    return all(a.time <= b.time for a, b in zip(curve, curve[1:]))
