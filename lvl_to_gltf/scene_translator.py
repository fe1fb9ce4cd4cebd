"""
Translates the worlds of a loaded level into one glTF document.

For every selected world (layer) a glTF scene is created. Its terrain,
if any, becomes a node at the origin. Every instance whose geometry name
resolves to a known model becomes a node carrying the instance's position
and rotation. Models are converted once per geometry name and shared by
all nodes that place them.

Worlds and instances are processed in declaration order, so converting
the same level twice yields identical documents.

Usage:
    from lvl_to_gltf import Container, SceneTranslator, load_level

    container = Container([load_level('geo1.json')])
    translator = SceneTranslator(container)
    document = translator.translate(layers=['geo1'])
    print(translator.stats.as_dict())
"""

import logging

from .document import DEFAULT_GENERATOR, GltfDocument
from .errors import NoWorldsError
from .mesh_builder import MeshBuilder

log = logging.getLogger(__name__)


# Instance property naming the model to place.
GEOMETRY_NAME_PROPERTY = "GeometryName"


class TranslationStats:
    """Counters collected during one translation run."""

    def __init__(self):
        self.worlds = 0
        self.terrains = 0
        self.instances = 0
        self.nodes = 0
        self.meshes = 0
        self.cache_hits = 0
        self.skipped_no_geometry_name = 0
        self.skipped_unknown_model = 0
        self.empty_models = 0

    @property
    def skipped(self):
        return self.skipped_no_geometry_name + self.skipped_unknown_model

    def as_dict(self):
        return dict(vars(self), skipped=self.skipped)


class SceneTranslator:
    """
    Converts worlds of a Container into a GltfDocument.

    The geometry-name -> mesh-index cache lives on the translator and is
    reset at the start of every translate() call.

    Args:
        container: Container holding the loaded levels.
        generator: Generator string written to the glTF asset.
        copyright: Optional copyright string for the glTF asset.
        dedupe_materials: Share materials between segments with equal
            diffuse colors instead of creating one per segment.
    """

    def __init__(self, container, generator=DEFAULT_GENERATOR, copyright=None,
                 dedupe_materials=False):
        self.container = container
        self.generator = generator
        self.copyright = copyright
        self.dedupe_materials = dedupe_materials

        self.document = None
        self.stats = TranslationStats()
        self._mesh_cache = {}
        self._mesh_builder = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def world_names(self):
        """Names of the worlds available for conversion."""
        return [world.name for world in self.container.get_worlds()]

    def select_worlds(self, layers=None):
        """
        Pick the worlds to convert, in declaration order.

        Args:
            layers: Iterable of world names, or None for every world.

        Returns:
            list[World]: Selected worlds.

        Raises:
            NoWorldsError: If the level has no worlds, or none of the
                requested names exist.
        """
        worlds = self.container.get_worlds()
        if not worlds:
            raise NoWorldsError("The loaded level doesn't contain any world data")
        if layers is None:
            return list(worlds)

        wanted = set(layers)
        known = set(world.name for world in worlds)
        for name in sorted(wanted - known):
            log.warning("Layer '%s' not found, available: %s",
                        name, ", ".join(world.name for world in worlds))

        selected = [world for world in worlds if world.name in wanted]
        if not selected:
            raise NoWorldsError("None of the requested layers exist: {}".format(
                ", ".join(sorted(wanted))))
        return selected

    def translate(self, layers=None):
        """
        Run a translation over the selected worlds.

        Args:
            layers: Iterable of world names to convert, or None for all.

        Returns:
            GltfDocument: The populated document (also kept as
                self.document).

        Raises:
            NoWorldsError: If there is nothing to convert.
            MissingGeometryError: If a terrain or segment has no positions.
            IndexRangeError: If an index buffer does not fit in 16 bits.
        """
        worlds = self.select_worlds(layers)

        self.document = GltfDocument(generator=self.generator,
                                     copyright=self.copyright)
        self.stats = TranslationStats()
        self._mesh_cache = {}
        self._mesh_builder = MeshBuilder(self.document,
                                         dedupe_materials=self.dedupe_materials)

        for world in worlds:
            self._translate_world(world)

        self.stats.nodes = len(self.document.gltf.nodes)
        self.stats.meshes = len(self.document.gltf.meshes)
        log.info("Translated %d worlds: %d nodes, %d meshes, %d instances skipped",
                 self.stats.worlds, self.stats.nodes, self.stats.meshes,
                 self.stats.skipped)
        return self.document

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _translate_world(self, world):
        log.info("Converting world '%s' (%d instances)",
                 world.name, len(world.instances))
        scene = self.document.add_scene(world.name)
        self.stats.worlds += 1

        if world.terrain is not None:
            self._translate_terrain(scene, world.terrain)

        for instance in world.instances:
            self._translate_instance(scene, world, instance)

    def _translate_terrain(self, scene, terrain):
        mesh = self._mesh_builder.build_terrain_mesh(terrain)
        self.document.add_node(scene, terrain.name, mesh=mesh)
        self.stats.terrains += 1

    def _translate_instance(self, scene, world, instance):
        geometry_name = instance.get_property(GEOMETRY_NAME_PROPERTY)
        if not geometry_name:
            log.debug("Instance '%s' in world '%s' has no '%s' property, skipping",
                      instance.name, world.name, GEOMETRY_NAME_PROPERTY)
            self.stats.skipped_no_geometry_name += 1
            return

        if not isinstance(geometry_name, str):
            log.warning("Instance '%s' has a non-string '%s' value %r, skipping",
                        instance.name, GEOMETRY_NAME_PROPERTY, geometry_name)
            self.stats.skipped_unknown_model += 1
            return

        # A cached None marks a model without segments.
        if geometry_name in self._mesh_cache:
            mesh = self._mesh_cache[geometry_name]
            log.debug("Reusing mesh %s for '%s'", mesh, geometry_name)
            self.stats.cache_hits += 1
        else:
            model = self.container.find_model(geometry_name)
            if model is None:
                log.warning("Could not find model '%s' for instance '%s'!",
                            geometry_name, instance.name)
                self.stats.skipped_unknown_model += 1
                return
            if not model.segments:
                log.warning("Model '%s' has no segments, placing '%s' without a mesh",
                            geometry_name, instance.name)
                self.stats.empty_models += 1
                mesh = None
            else:
                mesh = self._mesh_builder.build_model_mesh(model)
            self._mesh_cache[geometry_name] = mesh

        self.document.add_node(scene, instance.name,
                               translation=instance.position,
                               rotation=instance.rotation,
                               mesh=mesh)
        self.stats.instances += 1


def translate_level(container, layers=None, **options):
    """
    Translate *container* in one call.

    Args:
        container: Container holding the loaded levels.
        layers: World names to convert, or None for all.
        **options: Passed to SceneTranslator.

    Returns:
        GltfDocument: The populated document.
    """
    return SceneTranslator(container, **options).translate(layers)
