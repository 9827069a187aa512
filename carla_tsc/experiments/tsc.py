"""The layered TSC used in the CARLA experiments.

Layers follow the 6-layer model for scenario description: layers 1+2 are
the static road network, layer 4 the dynamic objects and layer 5 the
environment. Every layer combination is exposed as a projection of one
tree, so all views share a single definition.
"""

from enum import Enum

from ..core.models import TSCDeclaration
from ..tsc import (
    TSC,
    PredicateRegistry,
    all_of,
    bounded,
    build_tsc,
    exclusive,
    leaf,
    optional,
    projection,
    projection_recursive,
    tsc,
)


class Layer(str, Enum):
    """Projection tags of the experiment TSC."""

    FULL_TSC = "Full TSC"
    LAYER_1_2 = "Layer 1+2"  # static
    LAYER_4 = "Layer 4"  # dynamic
    LAYER_1_2_4 = "Layer 1+2+4"  # static + dynamic
    LAYER_4_5 = "Layer (4)+5"  # environment
    PEDESTRIAN = "Pedestrian"


EXPERIMENT_TSC_IDENTIFIER = "Experiment TSC"

# Projections shared by the three road types
_ROAD_TYPE_PROJECTIONS = [
    projection(Layer.PEDESTRIAN),
    projection(Layer.LAYER_1_2),
    projection(Layer.LAYER_4),
    projection(Layer.LAYER_1_2_4),
]
_DYNAMIC_RELATION_PROJECTIONS = [
    projection(Layer.PEDESTRIAN),
    projection_recursive(Layer.LAYER_4),
    projection_recursive(Layer.LAYER_1_2_4),
]
_STATIC_PROJECTIONS = [
    projection_recursive(Layer.LAYER_1_2),
    projection_recursive(Layer.LAYER_1_2_4),
]

_RED_LIGHT_MONITORS = {"Crossed red light": "not did_cross_red_light"}


def _pedestrian_crossed():
    return leaf(
        "Pedestrian Crossed",
        condition="pedestrian_crossed",
        projections=[projection(Layer.PEDESTRIAN)],
    )


def _following_leading_vehicle(*tags: Layer):
    return leaf(
        "Following Leading Vehicle",
        condition="any_entity(follows)",
        projections=[projection(t) for t in tags],
    )


def _oncoming_traffic():
    return leaf("Oncoming traffic", condition="any_entity(oncoming)")


def _junction():
    return all_of(
        "Junction",
        optional(
            "Dynamic Relation",
            _pedestrian_crossed(),
            leaf(
                "Must Yield",
                condition="any_entity(must_yield)",
                monitors={"Did not yield": "any_entity(has_yielded)"},
            ),
            _following_leading_vehicle(Layer.LAYER_4),
            projections=_DYNAMIC_RELATION_PROJECTIONS,
        ),
        exclusive(
            "Maneuver",
            leaf("No Turn", condition="makes_no_turn"),
            leaf("Right Turn", condition="makes_right_turn"),
            leaf("Left Turn", condition="makes_left_turn"),
            projections=_STATIC_PROJECTIONS,
        ),
        condition="is_in_junction",
        projections=_ROAD_TYPE_PROJECTIONS,
    )


def _multi_lane():
    return all_of(
        "Multi-Lane",
        optional(
            "Dynamic Relation",
            _oncoming_traffic(),
            leaf(
                "Overtaking",
                condition="has_overtaken",
                monitors={"Right Overtaking": "no_right_overtaking"},
            ),
            _pedestrian_crossed(),
            _following_leading_vehicle(Layer.LAYER_4),
            projections=_DYNAMIC_RELATION_PROJECTIONS,
        ),
        exclusive(
            "Maneuver",
            leaf("Lane Change", condition="changed_lane"),
            leaf("Lane Follow", condition="not changed_lane"),
            projections=_STATIC_PROJECTIONS,
        ),
        bounded(
            "Stop Type",
            (0, 1),
            leaf(
                "Has Red Light",
                condition="has_relevant_red_light",
                monitors=_RED_LIGHT_MONITORS,
            ),
            projections=_STATIC_PROJECTIONS,
        ),
        condition="is_on_multi_lane",
        projections=_ROAD_TYPE_PROJECTIONS,
    )


def _single_lane():
    return all_of(
        "Single-Lane",
        optional(
            "Dynamic Relation",
            _oncoming_traffic(),
            _pedestrian_crossed(),
            _following_leading_vehicle(Layer.LAYER_4, Layer.LAYER_1_2_4),
            projections=_DYNAMIC_RELATION_PROJECTIONS,
        ),
        bounded(
            "Stop Type",
            (0, 1),
            leaf(
                "Has Stop Sign",
                condition="has_stop_sign",
                monitors={"Stopped at stop sign": "stop_at_end"},
            ),
            leaf("Has Yield Sign", condition="has_yield_sign"),
            leaf(
                "Has Red Light",
                condition="has_relevant_red_light",
                monitors=_RED_LIGHT_MONITORS,
            ),
            projections=_STATIC_PROJECTIONS,
        ),
        condition="is_on_single_lane",
        projections=_ROAD_TYPE_PROJECTIONS,
    )


def full_tsc_declaration() -> TSCDeclaration:
    """Declaration of the layered experiment TSC."""
    return tsc(
        EXPERIMENT_TSC_IDENTIFIER,
        all_of(
            "TSCRoot",
            exclusive(
                "Weather",
                leaf("Clear", condition="weather_clear"),
                leaf("Cloudy", condition="weather_cloudy"),
                leaf("Wet", condition="weather_wet"),
                leaf("Wet Cloudy", condition="weather_wet_cloudy"),
                leaf("Soft Rain", condition="weather_soft_rain"),
                leaf("Mid Rain", condition="weather_mid_rain"),
                leaf("Hard Rain", condition="weather_hard_rain"),
                projections=[
                    projection_recursive(Layer.LAYER_4_5),
                    projection_recursive(Layer.PEDESTRIAN),
                ],
            ),
            exclusive(
                "Road Type",
                _junction(),
                _multi_lane(),
                _single_lane(),
                projections=_ROAD_TYPE_PROJECTIONS,
            ),
            exclusive(
                "Traffic Density",
                leaf("High Traffic", condition="has_high_traffic_density"),
                leaf("Middle Traffic", condition="has_mid_traffic_density"),
                leaf("Low Traffic", condition="has_low_traffic_density"),
                projections=[
                    projection_recursive(Layer.LAYER_4_5),
                    projection_recursive(Layer.LAYER_4),
                    projection_recursive(Layer.LAYER_1_2_4),
                ],
            ),
            exclusive(
                "Time of Day",
                leaf("Sunset", condition="sunset"),
                leaf("Noon", condition="noon"),
                projections=[
                    projection_recursive(Layer.LAYER_4_5),
                    projection_recursive(Layer.PEDESTRIAN),
                ],
            ),
            projections=[
                projection_recursive(Layer.FULL_TSC),
                projection(Layer.LAYER_1_2),
                projection(Layer.LAYER_4),
                projection(Layer.LAYER_1_2_4),
                projection(Layer.LAYER_4_5),
                projection(Layer.PEDESTRIAN),
            ],
        ),
    )


def full_tsc(registry: PredicateRegistry) -> TSC:
    """Build the layered experiment TSC against ``registry``."""
    return build_tsc(full_tsc_declaration(), registry)
