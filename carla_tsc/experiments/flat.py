"""Flat counterparts of the layered experiment TSC.

A flat TSC is one optional root over leaves. Most leaves carry the
conjunction of the conditions on their path in the layered tree; the
Layer 1+2+4 flat tree keeps only each leaf's own predicate. No structural
constraint (exclusivity, bounds) restricts the combinations.
Comparing both shows how much the structure shrinks the instance space.
"""

from ..tsc import TSC, PredicateRegistry, build_tsc, leaf, optional, tsc

# Leaf label -> condition expression, per layer group
_WEATHER = {
    "Clear": "weather_clear",
    "Cloudy": "weather_cloudy",
    "Wet": "weather_wet",
    "Wet Cloudy": "weather_wet_cloudy",
    "Soft Rain": "weather_soft_rain",
    "Mid Rain": "weather_mid_rain",
    "Hard Rain": "weather_hard_rain",
}

_TRAFFIC_DENSITY = {
    "High Traffic": "has_high_traffic_density",
    "Middle Traffic": "has_mid_traffic_density",
    "Low Traffic": "has_low_traffic_density",
}

_TIME_OF_DAY = {
    "Sunset": "sunset",
    "Noon": "noon",
}

_PEDESTRIAN_CROSSED = {
    "Pedestrian Crossed in Junction": "is_in_junction and pedestrian_crossed",
    "Pedestrian Crossed on Multi-Lane": "is_on_multi_lane and pedestrian_crossed",
    "Pedestrian Crossed on Single-Lane": "is_on_single_lane and pedestrian_crossed",
}

_FOLLOWING = {
    "Following Leading Vehicle in Junction": "is_in_junction and any_entity(follows)",
    "Following Leading Vehicle on Single-Lane": "is_on_single_lane and any_entity(follows)",
    "Following Leading Vehicle on Multi-Lane": "is_on_multi_lane and any_entity(follows)",
}

_STATIC = {
    "Junction": "is_in_junction",
    "No Turn": "is_in_junction and makes_no_turn",
    "Right Turn": "is_in_junction and makes_right_turn",
    "Left Turn": "is_in_junction and makes_left_turn",
    "Multi-Lane": "is_on_multi_lane",
    "Lane Change": "is_on_multi_lane and changed_lane",
    "Lane Follow": "is_on_multi_lane and not changed_lane",
    "Has Red Light": "(is_on_multi_lane or is_on_single_lane) and has_relevant_red_light",
    "Single-Lane": "is_on_single_lane",
    "Has Stop Sign": "is_on_single_lane and has_stop_sign",
    "Has Yield Sign": "is_on_single_lane and has_yield_sign",
}

_MUST_YIELD = "is_in_junction and any_entity(must_yield)"
_OVERTAKING = "is_on_multi_lane and has_overtaken"


def _flat(identifier: str, conditions: dict[str, str]):
    return tsc(
        identifier,
        optional(
            "TSCRoot",
            *(leaf(label, condition=cond) for label, cond in conditions.items()),
        ),
    )


def layer_1_2_flat_declaration():
    return _flat("Layer 1+2 Flat", _STATIC)


def layer_1_2_4_flat_declaration():
    # Leaves carry only their own predicate, without the road type
    conditions = {
        "Junction": "is_in_junction",
        "Pedestrian Crossed": "pedestrian_crossed",
        "Must Yield": "any_entity(must_yield)",
        "Following Leading Vehicle": "any_entity(follows)",
        "No Turn": "makes_no_turn",
        "Right Turn": "makes_right_turn",
        "Left Turn": "makes_left_turn",
        "Multi-Lane": "is_on_multi_lane",
        "Oncoming traffic": "any_entity(oncoming)",
        "Overtaking": "has_overtaken",
        "Lane Change": "changed_lane",
        "Lane Follow": "not changed_lane",
        "Has Red Light": "has_relevant_red_light",
        "Single-Lane": "is_on_single_lane",
        "Has Stop Sign": "has_stop_sign",
        "Has Yield Sign": "has_yield_sign",
        **_TRAFFIC_DENSITY,
    }
    return _flat("Layer 1+2+4 Flat", conditions)


def layer_4_flat_declaration():
    conditions = {
        "Junction": "is_in_junction",
        **_PEDESTRIAN_CROSSED,
        "Must Yield": _MUST_YIELD,
        **_FOLLOWING,
        "Multi-Lane": "is_on_multi_lane",
        "Oncoming traffic": "(is_on_multi_lane or is_on_single_lane) and any_entity(oncoming)",
        "Overtaking": _OVERTAKING,
        "Single-Lane": "is_on_single_lane",
        **_TRAFFIC_DENSITY,
    }
    return _flat("Layer 4 Flat", conditions)


def layer_4_5_flat_declaration():
    return _flat("Layer (4)+5 Flat", {**_WEATHER, **_TRAFFIC_DENSITY, **_TIME_OF_DAY})


def pedestrian_flat_declaration():
    conditions = {
        **_WEATHER,
        "Junction": "is_in_junction",
        **_PEDESTRIAN_CROSSED,
        "Multi-Lane": "is_on_multi_lane",
        "Single-Lane": "is_on_single_lane",
        **_TIME_OF_DAY,
    }
    return _flat("Pedestrian Flat", conditions)


def full_flat_declaration():
    conditions = {
        **_WEATHER,
        "Junction": "is_in_junction",
        **_PEDESTRIAN_CROSSED,
        "Must Yield": _MUST_YIELD,
        **_FOLLOWING,
        "No Turn": _STATIC["No Turn"],
        "Right Turn": _STATIC["Right Turn"],
        "Left Turn": _STATIC["Left Turn"],
        "Multi-Lane": "is_on_multi_lane",
        "Oncoming traffic on Multi-Lane": "is_on_multi_lane and any_entity(oncoming)",
        "Oncoming traffic on Single-Lane": "is_on_single_lane and any_entity(oncoming)",
        "Overtaking": _OVERTAKING,
        "Lane Change": _STATIC["Lane Change"],
        "Lane Follow": _STATIC["Lane Follow"],
        "Has Red Light on Multi-Lane": "is_on_multi_lane and has_relevant_red_light",
        "Has Red Light on Single-Lane": "is_on_single_lane and has_relevant_red_light",
        "Single-Lane": "is_on_single_lane",
        "Has Stop Sign": _STATIC["Has Stop Sign"],
        "Has Yield Sign": _STATIC["Has Yield Sign"],
        **_TRAFFIC_DENSITY,
        **_TIME_OF_DAY,
    }
    return _flat("Full Flat", conditions)


# Short name -> declaration factory, in experiment order
FLAT_DECLARATIONS = {
    "layer-1-2": layer_1_2_flat_declaration,
    "layer-1-2-4": layer_1_2_4_flat_declaration,
    "layer-4": layer_4_flat_declaration,
    "layer-4-5": layer_4_5_flat_declaration,
    "pedestrian": pedestrian_flat_declaration,
    "full": full_flat_declaration,
}


def flat_tscs(registry: PredicateRegistry) -> list[TSC]:
    """Build every flat experiment TSC against ``registry``."""
    return [build_tsc(make(), registry) for make in FLAT_DECLARATIONS.values()]
