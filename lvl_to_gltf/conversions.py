"""
Small pure conversions from level enums and values to glTF ones.
"""

import logging

import pygltflib

from .source_graph import Topology

log = logging.getLogger(__name__)


# Source topology -> glTF primitive mode.
# LINE_LIST maps to LINE_LOOP, matching how existing level exports were
# converted.
_TOPOLOGY_TO_MODE = {
    Topology.LINE_LIST: pygltflib.LINE_LOOP,
    Topology.LINE_STRIP: pygltflib.LINE_STRIP,
    Topology.POINT_LIST: pygltflib.POINTS,
    Topology.TRIANGLE_FAN: pygltflib.TRIANGLE_FAN,
    Topology.TRIANGLE_LIST: pygltflib.TRIANGLES,
    Topology.TRIANGLE_STRIP: pygltflib.TRIANGLE_STRIP,
}


def gltf_mode(topology):
    """
    Map a source topology tag to a glTF primitive mode.

    Unknown tags are logged and treated as a triangle list. This never
    raises.

    Args:
        topology: Topology member or raw tag value.

    Returns:
        int: glTF primitive mode (pygltflib.POINTS ... TRIANGLE_FAN).
    """
    try:
        return _TOPOLOGY_TO_MODE[topology]
    except (KeyError, TypeError):
        log.warning("Unknown topology type: %r! Assuming triangle list!", topology)
        return pygltflib.TRIANGLES


def normalize_color(color):
    """
    Convert an 8-bit RGBA color to four floats in [0, 1].

    Channel order is kept and no gamma correction is applied.

    Args:
        color: (red, green, blue, alpha) with 0..255 channels.

    Returns:
        list[float]: [r, g, b, a] each divided by 255.0.
    """
    red, green, blue, alpha = color
    return [red / 255.0, green / 255.0, blue / 255.0, alpha / 255.0]
