"""
Read-only scene graph of a loaded game level.

These classes mirror what a level reader exposes once loading is done:
worlds (layers) with an optional terrain and placed instances, and a model
registry that instances refer to by geometry name.

The converter only ever reads from these objects. Attribute arrays are
copied into tuples once, when an object is built, and are not copied
again during translation.

Vector conventions:
    positions / normals - (x, y, z) float triples
    uvs                 - (u, v) float pairs
    indices             - unsigned 16-bit integers
    rotation            - quaternion (x, y, z, w)
    diffuse colors      - (red, green, blue, alpha), 0..255 each
"""

import logging
from enum import IntEnum

log = logging.getLogger(__name__)


class Topology(IntEnum):
    """Primitive topology of a segment, numbered like Direct3D's."""
    POINT_LIST = 1
    LINE_LIST = 2
    LINE_STRIP = 3
    TRIANGLE_LIST = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6

    @classmethod
    def parse(cls, value):
        """
        Resolve a topology given by number or name.

        Names are matched case-insensitively with or without underscores,
        so "TriangleList", "triangle_list" and "TRIANGLE_LIST" all resolve.
        Values that match nothing are returned unchanged; deciding what to
        do with them is the topology mapper's job.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.replace('_', '').replace('-', '').lower()
            for member in cls:
                if member.name.replace('_', '').lower() == key:
                    return member
            return value
        try:
            return cls(value)
        except (ValueError, TypeError):
            return value


def _as_tuples(values):
    if values is None:
        return ()
    return tuple(tuple(v) for v in values)


def _as_ints(values):
    if values is None:
        return ()
    return tuple(int(v) for v in values)


class Material:
    """Segment material; only the diffuse color is carried over."""

    def __init__(self, diffuse_color=(255, 255, 255, 255)):
        self.diffuse_color = tuple(int(c) for c in diffuse_color)

    def __repr__(self):
        return "Material(diffuse_color={!r})".format(self.diffuse_color)


class Segment:
    """One material- and topology-homogeneous chunk of a model."""

    def __init__(self, vertices, normals=None, uvs=None, indices=None,
                 material=None, topology=Topology.TRIANGLE_LIST):
        self.vertices = _as_tuples(vertices)
        self.normals = _as_tuples(normals)
        self.uvs = _as_tuples(uvs)
        self.indices = _as_ints(indices)
        self.material = material if material is not None else Material()
        self.topology = Topology.parse(topology)


class Model:
    """A named model made of ordered segments."""

    def __init__(self, name, segments=None):
        self.name = name
        self.segments = tuple(segments or ())

    def __repr__(self):
        return "Model({!r}, {} segments)".format(self.name, len(self.segments))


class Terrain:
    """
    Terrain of a world.

    Terrain has a single implicit geometry whose index buffer is always
    a triangle list.
    """

    topology = Topology.TRIANGLE_LIST

    def __init__(self, name, vertices, normals=None, uvs=None, indices=None):
        self.name = name
        self.vertices = _as_tuples(vertices)
        self.normals = _as_tuples(normals)
        self.uvs = _as_tuples(uvs)
        self.indices = _as_ints(indices)


class Instance:
    """A placed object in a world."""

    def __init__(self, name, position=(0.0, 0.0, 0.0),
                 rotation=(0.0, 0.0, 0.0, 1.0), properties=None):
        self.name = name
        self.position = tuple(float(v) for v in position)
        self.rotation = tuple(float(v) for v in rotation)
        # Property names are hashed case-insensitively by the game, so
        # "GeometryName" and "geometryname" are the same property.
        self._properties = {}
        for key, value in (properties or {}).items():
            self._properties[key.lower()] = value

    @property
    def properties(self):
        return dict(self._properties)

    def get_property(self, name, default=None):
        """Return the property value, or *default* when it is not set."""
        return self._properties.get(name.lower(), default)

    def __repr__(self):
        return "Instance({!r})".format(self.name)


class World:
    """A world (layer) of a level."""

    def __init__(self, name, terrain=None, instances=None):
        self.name = name
        self.terrain = terrain
        self.instances = tuple(instances or ())

    def __repr__(self):
        return "World({!r}, {} instances)".format(self.name, len(self.instances))


class Level:
    """One loaded level file: its worlds and the models it defines."""

    def __init__(self, name, worlds=None, models=None):
        self.name = name
        self.worlds = tuple(worlds or ())
        self.models = {}
        for model in models or ():
            if model.name in self.models:
                log.debug("Level '%s' defines model '%s' twice, keeping the first",
                          name, model.name)
                continue
            self.models[model.name] = model

    def find_model(self, name):
        return self.models.get(name)


class Container:
    """
    Set of loaded levels queried together.

    A world level is usually loaded alongside a shared "common" level
    that only contributes models (command posts, turrets, droids). Model
    lookups search every level in the order they were added.
    """

    def __init__(self, levels=None):
        self.levels = []
        for level in levels or ():
            self.add_level(level)

    def add_level(self, level):
        self.levels.append(level)
        log.debug("Added level '%s' (%d worlds, %d models)",
                  level.name, len(level.worlds), len(level.models))

    def world_level(self):
        """Return the first level that contains worlds, or None."""
        for level in self.levels:
            if level.worlds:
                return level
        return None

    def get_worlds(self):
        level = self.world_level()
        if level is None:
            return ()
        return level.worlds

    def find_model(self, name):
        """Resolve a geometry name to a Model, or None when unknown."""
        if not name:
            return None
        for level in self.levels:
            model = level.find_model(name)
            if model is not None:
                return model
        return None
