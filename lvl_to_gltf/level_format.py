"""
JSON level description format.

A level reader exports a loaded level as a single JSON document that this
package turns back into the read-only scene graph in source_graph.

Document layout:
    format_version  - semver string ("1.0.0")
    type            - "level"
    name            - level name (e.g. "geo1")
    worlds          - list of worlds:
        name        - world (layer) name
        terrain     - optional {name, vertices, normals, uvs, indices}
        instances   - list of {name, position, rotation, properties}
    models          - list of models:
        name        - model name, referenced by the GeometryName property
        segments    - list of {vertices, normals, uvs, indices,
                               topology, material: {diffuse_color}}

Vectors are JSON arrays: positions and normals [x, y, z], uvs [u, v],
rotations [x, y, z, w], diffuse colors [r, g, b, a] with 0..255 channels.
Topology is a name ("TriangleList", "triangle_strip", ...) or the numeric
tag. A level that only contributes models (a shared "common" level) may
have an empty worlds list.
"""

import json
import logging
import os

from .errors import LevelFormatError
from .source_graph import (Container, Instance, Level, Material, Model,
                           Segment, Terrain, Topology, World)

log = logging.getLogger(__name__)


FORMAT_VERSION = "1.0.0"
LEVEL_TYPE = "level"


# ---------------------------------------------------------------------------
# JSON I/O helpers
# ---------------------------------------------------------------------------

def load_json(filepath):
    """
    Load and parse a JSON file.

    Args:
        filepath: Path to the JSON file.

    Returns:
        dict: Parsed JSON data.
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        return json.load(f)


def save_json(filepath, data, indent=2):
    """
    Write a dict to a JSON file, creating parent directories as needed.

    Args:
        filepath: Destination file path.
        data: Dict (or list) to serialize.
        indent: JSON indentation level (default 2).
    """
    parent = os.path.dirname(filepath)
    if parent and not os.path.exists(parent):
        os.makedirs(parent)
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _check_vectors(errors, where, values, size):
    if not isinstance(values, list):
        errors.append("{} must be a list".format(where))
        return
    for i, value in enumerate(values):
        if not isinstance(value, list) or len(value) != size:
            errors.append("{}[{}] must be a list of {} numbers".format(where, i, size))
            return


def _check_geometry(errors, where, data):
    if "vertices" not in data:
        errors.append("{} missing key 'vertices'".format(where))
    else:
        _check_vectors(errors, where + ".vertices", data["vertices"], 3)
    if "normals" in data:
        _check_vectors(errors, where + ".normals", data["normals"], 3)
    if "uvs" in data:
        _check_vectors(errors, where + ".uvs", data["uvs"], 2)
    if "indices" in data and not isinstance(data["indices"], list):
        errors.append("{}.indices must be a list".format(where))


def validate_level(data):
    """
    Validate a level description dict.

    Returns a list of error strings.  An empty list means the level is valid.

    Required fields:
        format_version, type, name, worlds, models

    Constraints:
        - type must be "level"
        - format_version major must match FORMAT_VERSION
        - every world, instance, model and segment must have a name
          (segments excepted) and correctly shaped vector lists
    """
    if not isinstance(data, dict):
        return ["level description must be a JSON object"]

    errors = []
    required = ["format_version", "type", "name", "worlds", "models"]
    for field in required:
        if field not in data:
            errors.append("Missing required field: {}".format(field))

    # Stop early if fundamental fields are missing
    if errors:
        return errors

    if data["type"] != LEVEL_TYPE:
        errors.append("type must be '{}', got '{}'".format(LEVEL_TYPE, data["type"]))

    major = str(data["format_version"]).split('.')[0]
    if major != FORMAT_VERSION.split('.')[0]:
        errors.append("Unsupported format_version '{}' (expected {}.x)".format(
            data["format_version"], FORMAT_VERSION.split('.')[0]))

    if not isinstance(data["worlds"], list):
        errors.append("worlds must be a list")
    else:
        for i, world in enumerate(data["worlds"]):
            where = "worlds[{}]".format(i)
            if not isinstance(world, dict):
                errors.append("{} must be a dict".format(where))
                continue
            if "name" not in world:
                errors.append("{} missing key 'name'".format(where))
            terrain = world.get("terrain")
            if terrain is not None:
                if not isinstance(terrain, dict):
                    errors.append("{}.terrain must be a dict".format(where))
                else:
                    _check_geometry(errors, where + ".terrain", terrain)
            for j, inst in enumerate(world.get("instances", [])):
                inst_where = "{}.instances[{}]".format(where, j)
                if not isinstance(inst, dict):
                    errors.append("{} must be a dict".format(inst_where))
                    continue
                if "name" not in inst:
                    errors.append("{} missing key 'name'".format(inst_where))
                if "position" in inst:
                    _check_vectors(errors, inst_where + ".position", [inst["position"]], 3)
                if "rotation" in inst:
                    _check_vectors(errors, inst_where + ".rotation", [inst["rotation"]], 4)
                if not isinstance(inst.get("properties", {}), dict):
                    errors.append("{}.properties must be a dict".format(inst_where))

    if not isinstance(data["models"], list):
        errors.append("models must be a list")
    else:
        for i, model in enumerate(data["models"]):
            where = "models[{}]".format(i)
            if not isinstance(model, dict):
                errors.append("{} must be a dict".format(where))
                continue
            if "name" not in model:
                errors.append("{} missing key 'name'".format(where))
            for j, segment in enumerate(model.get("segments", [])):
                seg_where = "{}.segments[{}]".format(where, j)
                if not isinstance(segment, dict):
                    errors.append("{} must be a dict".format(seg_where))
                    continue
                _check_geometry(errors, seg_where, segment)
                material = segment.get("material", {})
                if "diffuse_color" in material:
                    _check_vectors(errors, seg_where + ".material.diffuse_color",
                                   [material["diffuse_color"]], 4)

    return errors


# ---------------------------------------------------------------------------
# Dict -> scene graph
# ---------------------------------------------------------------------------

def _terrain_from_dict(data):
    return Terrain(
        name=data.get("name", "terrain"),
        vertices=data.get("vertices"),
        normals=data.get("normals"),
        uvs=data.get("uvs"),
        indices=data.get("indices"),
    )


def _segment_from_dict(data):
    material = data.get("material", {})
    return Segment(
        vertices=data.get("vertices"),
        normals=data.get("normals"),
        uvs=data.get("uvs"),
        indices=data.get("indices"),
        material=Material(material.get("diffuse_color", (255, 255, 255, 255))),
        topology=data.get("topology", Topology.TRIANGLE_LIST),
    )


def level_from_dict(data):
    """
    Build a Level from a level description dict.

    Raises:
        LevelFormatError: If the dict does not validate.
    """
    errors = validate_level(data)
    if errors:
        raise LevelFormatError("Invalid level description: {}".format("; ".join(errors)))

    worlds = []
    for world in data["worlds"]:
        terrain = world.get("terrain")
        instances = [
            Instance(
                name=inst["name"],
                position=inst.get("position", (0.0, 0.0, 0.0)),
                rotation=inst.get("rotation", (0.0, 0.0, 0.0, 1.0)),
                properties=inst.get("properties"),
            )
            for inst in world.get("instances", [])
        ]
        worlds.append(World(
            name=world["name"],
            terrain=_terrain_from_dict(terrain) if terrain is not None else None,
            instances=instances,
        ))

    models = [
        Model(model["name"],
              [_segment_from_dict(seg) for seg in model.get("segments", [])])
        for model in data["models"]
    ]
    return Level(data["name"], worlds=worlds, models=models)


def load_level(filepath):
    """
    Load a level description file.

    Args:
        filepath: Path to the .json level description.

    Returns:
        Level: The loaded level.

    Raises:
        LevelFormatError: If the file is not valid JSON or does not
            validate.
    """
    try:
        data = load_json(filepath)
    except ValueError as e:
        raise LevelFormatError("{}: not valid JSON ({})".format(filepath, e))
    level = level_from_dict(data)
    log.info("Loaded level '%s' from %s (%d worlds, %d models)",
             level.name, filepath, len(level.worlds), len(level.models))
    return level


def load_container(filepath, common_path=None):
    """
    Load a world level and an optional common level into a Container.

    A missing common level is logged and ignored.
    """
    container = Container()
    container.add_level(load_level(filepath))
    if common_path:
        if os.path.isfile(common_path):
            container.add_level(load_level(common_path))
        else:
            log.warning("Could not find '%s'!", common_path)
    return container


# ---------------------------------------------------------------------------
# Scene graph -> dict
# ---------------------------------------------------------------------------

def _geometry_to_dict(geometry):
    return {
        "vertices": [list(v) for v in geometry.vertices],
        "normals": [list(n) for n in geometry.normals],
        "uvs": [list(uv) for uv in geometry.uvs],
        "indices": list(geometry.indices),
    }


def level_to_dict(level):
    """Serialize a Level back into a level description dict."""
    worlds = []
    for world in level.worlds:
        entry = {"name": world.name, "instances": []}
        if world.terrain is not None:
            entry["terrain"] = dict(_geometry_to_dict(world.terrain),
                                    name=world.terrain.name)
        for inst in world.instances:
            entry["instances"].append({
                "name": inst.name,
                "position": list(inst.position),
                "rotation": list(inst.rotation),
                "properties": inst.properties,
            })
        worlds.append(entry)

    models = []
    for model in level.models.values():
        segments = []
        for segment in model.segments:
            seg = _geometry_to_dict(segment)
            topology = segment.topology
            seg["topology"] = topology.name if isinstance(topology, Topology) else topology
            seg["material"] = {"diffuse_color": list(segment.material.diffuse_color)}
            segments.append(seg)
        models.append({"name": model.name, "segments": segments})

    return {
        "format_version": FORMAT_VERSION,
        "type": LEVEL_TYPE,
        "name": level.name,
        "worlds": worlds,
        "models": models,
    }
