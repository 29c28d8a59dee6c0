"""Target size resolution for the directional and bounded-scale policies."""

import math
from fractions import Fraction
from typing import Optional, Union

from .exceptions import InvalidArgumentError
from .models import BoundedScalePolicy, DirectionalPolicy, ScaleMode, Size


def resolve_target_size(
    original: Size,
    bound: Size,
    policy: Union[DirectionalPolicy, BoundedScalePolicy],
) -> Size:
    """
    Compute the size an image should be saved at.

    Args:
        original: Decoded image size, both dimensions known and positive
        bound: Maximum (or, for bounded scale, target) size; a missing
            dimension leaves that axis unconstrained
        policy: Directional or bounded-scale policy

    Returns:
        The target size. ``original`` itself is returned whenever no
        rescaling is needed, so callers can compare with ``==`` to decide
        whether to resample.

    Raises:
        InvalidArgumentError: If ``original`` is incomplete, or a directional
            policy is given a bound with a missing dimension
    """
    _check_original(original)

    if isinstance(policy, DirectionalPolicy):
        if not bound.is_complete:
            raise InvalidArgumentError(
                f"Scale mode {policy.mode.value} requires both maxWidth and maxHeight"
            )
        if policy.mode.is_any_direction:
            return _resolve_any_direction(original, bound, policy.mode)
        return _resolve_fixed_direction(original, bound, policy.mode)

    if isinstance(policy, BoundedScalePolicy):
        return _resolve_bounded_scale(original, bound, policy.allow_upscale)

    raise InvalidArgumentError(f"Unknown scale policy: {policy!r}")


def _check_original(original: Size) -> None:
    if not original.width or not original.height:
        raise InvalidArgumentError(
            f"Original size must have positive width and height, got {original}"
        )


def _round_half_up(value: Fraction) -> int:
    return max(1, math.floor(value + Fraction(1, 2)))


def _truncate(value: Fraction) -> int:
    return max(1, math.floor(value))


def _resolve_fixed_direction(original: Size, bound: Size, mode: ScaleMode) -> Size:
    width, height = original.as_tuple()
    max_width, max_height = bound.as_tuple()

    if width <= max_width and height <= max_height:
        return original

    # Max size in samples is 1920x1080:
    # x: 1920 / 3264 = 0.588, y: 1080 / 2448 = 0.441
    # fit picks 0.441 -> 1440x1080, fill picks 0.588 -> 1920x1440
    scale_x = Fraction(max_width, width)
    scale_y = Fraction(max_height, height)
    factor = max(scale_x, scale_y) if mode.is_fill else min(scale_x, scale_y)

    return Size(
        width=_round_half_up(factor * width),
        height=_round_half_up(factor * height),
    )


def _resolve_any_direction(original: Size, bound: Size, mode: ScaleMode) -> Size:
    width, height = original.as_tuple()
    max_width, max_height = bound.as_tuple()

    longer_side, shorter_side = max(width, height), min(width, height)
    max_longer_side, max_shorter_side = max(max_width, max_height), min(max_width, max_height)

    # Both sides must exceed the bound. An image exceeding on one side only
    # is kept as-is.
    if not (longer_side > max_longer_side and shorter_side > max_shorter_side):
        return original

    longer_factor = Fraction(max_longer_side, longer_side)
    shorter_factor = Fraction(max_shorter_side, shorter_side)
    if mode.is_fill:
        factor = max(longer_factor, shorter_factor)
    else:
        factor = min(longer_factor, shorter_factor)

    return Size(
        width=_round_half_up(factor * width),
        height=_round_half_up(factor * height),
    )


def _resolve_bounded_scale(original: Size, bound: Size, allow_upscale: bool) -> Size:
    width, height = original.as_tuple()

    factor = _min_factor(
        _axis_factor(bound.width, width),
        _axis_factor(bound.height, height),
    )
    if factor is None or factor == 1:
        return original
    if factor > 1 and not allow_upscale:
        return original

    return Size(width=_truncate(factor * width), height=_truncate(factor * height))


def _axis_factor(limit: Optional[int], length: int) -> Optional[Fraction]:
    """Scale factor for one axis; ``None`` when the axis is unconstrained."""
    if limit is None:
        return None
    return Fraction(limit, length)


def _min_factor(*factors: Optional[Fraction]) -> Optional[Fraction]:
    known = [factor for factor in factors if factor is not None]
    return min(known) if known else None
