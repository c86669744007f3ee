"""
STARGAZER Visibility Service

Which catalog objects are above the horizon and inside the device's view.
"""

from .visibility_filter import (
    normalized_angle_delta,
    angular_separation,
    separation_from_pointing,
    is_within_view,
    visible_at_lst,
    compute_visible,
)

from .candidate_index import (
    CandidateIndex,
    cone_radius_for_fov,
)

__all__ = [
    "normalized_angle_delta",
    "angular_separation",
    "separation_from_pointing",
    "is_within_view",
    "visible_at_lst",
    "compute_visible",
    "CandidateIndex",
    "cone_radius_for_fov",
]
