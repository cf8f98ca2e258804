"""Field-wise merge, intersection and difference of instances."""

from __future__ import annotations

from dynamic_object.frozen_map import FrozenMap, diff_maps
from dynamic_object.runtime import wrap
from dynamic_object.schema import DynamicObject


def _prefer_present(mine: object, theirs: object) -> object:
    return mine if theirs is None else theirs


def merge[S: DynamicObject](left: S, right: DynamicObject) -> S:
    """Combine two instances, taking ``right``'s value for each field unless it is None.

    Parameters
    ----------
    left
        Instance whose schema the result takes.
    right
        Instance whose non-null values win.

    Returns
    -------
    S
        New instance of ``left``'s schema.
    """
    merged = left.get_map().merge_with(_prefer_present, right.get_map())
    return wrap(merged, left.get_type())


def intersect[S: DynamicObject](left: S, right: DynamicObject) -> S:
    """Keep the fields whose values are equal in both instances.

    Returns
    -------
    S
        New instance of ``left``'s schema.
    """
    _, _, shared = diff_maps(left.get_map(), right.get_map())
    return _rewrap(shared, left)


def subtract[S: DynamicObject](left: S, right: DynamicObject) -> S:
    """Keep the fields of ``left`` that are absent from or differ in ``right``.

    Returns
    -------
    S
        New instance of ``left``'s schema.
    """
    only_left, _, _ = diff_maps(left.get_map(), right.get_map())
    return _rewrap(only_left, left)


def _rewrap[S: DynamicObject](data: FrozenMap, source: S) -> S:
    return wrap(data.with_meta(source.get_map().meta), source.get_type())


__all__ = ["intersect", "merge", "subtract"]
