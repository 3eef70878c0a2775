"""Equal-window segment planning over the narration timeline."""

import math
from typing import List

from core.errors import InvalidInputError
from core.models.build import SEGMENT_COUNT
from core.models.render import Window


def plan_segments(total_duration: float, segment_count: int = SEGMENT_COUNT) -> List[Window]:
    """
    Split [0, total_duration) into segment_count equal windows.

    Every window gets the same fractional duration; the last one is not
    padded or trimmed to absorb rounding.

    Raises:
        InvalidInputError: If the duration is not a positive finite number
            or segment_count is below 1
    """
    if segment_count < 1:
        raise InvalidInputError(
            f"segment_count must be at least 1, got {segment_count}",
            stage="planning"
        )
    if not math.isfinite(total_duration) or total_duration <= 0:
        raise InvalidInputError(
            f"total duration must be positive, got {total_duration}",
            stage="planning"
        )

    duration = total_duration / segment_count
    return [
        Window(index=i, start=i * total_duration / segment_count, duration=duration)
        for i in range(segment_count)
    ]
