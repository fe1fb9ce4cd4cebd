"""
Builds glTF meshes from level models and terrain.

Every model segment becomes one primitive backed by a buffer of its own
(see buffer_packer). Each segment also gets a new material made from its
diffuse color; identical colors are only merged when material
deduplication is switched on.
"""

import logging

import pygltflib

from .buffer_packer import pack_geometry
from .conversions import gltf_mode, normalize_color

log = logging.getLogger(__name__)


# Terrain has no diffuse color of its own.
TERRAIN_BASE_COLOR = (1.0, 1.0, 1.0, 1.0)


class MeshBuilder:
    """
    Appends meshes, materials and geometry buffers to a GltfDocument.

    Args:
        document: GltfDocument being populated.
        dedupe_materials: When True, segments whose normalized diffuse
            colors are equal share one material.
    """

    def __init__(self, document, dedupe_materials=False):
        self.document = document
        self.dedupe_materials = dedupe_materials
        self._material_cache = {}

    def _material(self, base_color):
        key = tuple(base_color)
        if self.dedupe_materials and key in self._material_cache:
            return self._material_cache[key]
        index = self.document.add_material(base_color, metallic=0.0)
        if self.dedupe_materials:
            self._material_cache[key] = index
        return index

    def _primitive(self, name, geometry, mode, material):
        packed = pack_geometry(
            self.document, name,
            geometry.vertices, geometry.normals, geometry.uvs, geometry.indices)
        return pygltflib.Primitive(
            attributes=packed.attributes(),
            indices=packed.indices,
            mode=mode,
            material=material,
        )

    def build_model_mesh(self, model):
        """
        Convert every segment of *model* into one mesh.

        Returns:
            int: Index of the new mesh.
        """
        log.info("Converting mesh '%s'", model.name)
        primitives = []
        for segment_index, segment in enumerate(model.segments):
            unit_name = "{}[{}]".format(model.name, segment_index)
            material = self._material(normalize_color(segment.material.diffuse_color))
            primitives.append(self._primitive(
                unit_name, segment, gltf_mode(segment.topology), material))
        return self.document.add_mesh(model.name, primitives)

    def build_terrain_mesh(self, terrain):
        """
        Convert *terrain* into a single-primitive triangle mesh.

        Returns:
            int: Index of the new mesh.
        """
        log.info("Converting terrain '%s'", terrain.name)
        material = self._material(TERRAIN_BASE_COLOR)
        primitive = self._primitive(
            terrain.name, terrain, pygltflib.TRIANGLES, material)
        return self.document.add_mesh(terrain.name, [primitive])
