"""Names of the predicates referenced by the experiment TSCs.

The predicates themselves are supplied by the caller through a
PredicateRegistry; carla_tsc.data.segments.fact_registry builds one from
annotated segment facts.
"""

from enum import Enum


class PredicateName(str, Enum):
    # Weather
    WEATHER_CLEAR = "weather_clear"
    WEATHER_CLOUDY = "weather_cloudy"
    WEATHER_WET = "weather_wet"
    WEATHER_WET_CLOUDY = "weather_wet_cloudy"
    WEATHER_SOFT_RAIN = "weather_soft_rain"
    WEATHER_MID_RAIN = "weather_mid_rain"
    WEATHER_HARD_RAIN = "weather_hard_rain"
    # Time of day
    SUNSET = "sunset"
    NOON = "noon"
    # Road type
    IS_IN_JUNCTION = "is_in_junction"
    IS_ON_MULTI_LANE = "is_on_multi_lane"
    IS_ON_SINGLE_LANE = "is_on_single_lane"
    # Maneuvers
    MAKES_NO_TURN = "makes_no_turn"
    MAKES_RIGHT_TURN = "makes_right_turn"
    MAKES_LEFT_TURN = "makes_left_turn"
    CHANGED_LANE = "changed_lane"
    HAS_OVERTAKEN = "has_overtaken"
    NO_RIGHT_OVERTAKING = "no_right_overtaking"
    # Stop types
    HAS_RELEVANT_RED_LIGHT = "has_relevant_red_light"
    DID_CROSS_RED_LIGHT = "did_cross_red_light"
    HAS_STOP_SIGN = "has_stop_sign"
    STOP_AT_END = "stop_at_end"
    HAS_YIELD_SIGN = "has_yield_sign"
    # Traffic density
    HAS_HIGH_TRAFFIC_DENSITY = "has_high_traffic_density"
    HAS_MID_TRAFFIC_DENSITY = "has_mid_traffic_density"
    HAS_LOW_TRAFFIC_DENSITY = "has_low_traffic_density"
    # Dynamic relations
    PEDESTRIAN_CROSSED = "pedestrian_crossed"
    MUST_YIELD = "must_yield"
    HAS_YIELDED = "has_yielded"
    FOLLOWS = "follows"
    ONCOMING = "oncoming"


# Predicates taking a second entity id; quantify with any_entity(...)
RELATIONAL_PREDICATES = frozenset(
    {
        PredicateName.MUST_YIELD,
        PredicateName.HAS_YIELDED,
        PredicateName.FOLLOWS,
        PredicateName.ONCOMING,
    }
)

UNARY_PREDICATES = frozenset(set(PredicateName) - RELATIONAL_PREDICATES)
