import typing as t


def mean(values: t.Iterable[float | None]) -> float | None:
    """Arithmetic mean of the non-null values, or None when there are none"""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def round2(value: float | None) -> float | None:
    return round(value, 2) if value is not None else None
