"""
In-memory glTF 2.0 document built during a translation run.

Wraps a pygltflib.GLTF2 and keeps the raw bytes of every buffer next to
it. Each geometry unit (terrain or model segment) gets a buffer of its
own; the writer decides how buffers end up in the output file (one GLB
binary chunk, or base64 data URIs for .gltf).

Every add_* method appends and returns the index of the new entry, so
entries are created once, in append order.
"""

import logging

import pygltflib

log = logging.getLogger(__name__)


DEFAULT_GENERATOR = "lvl-to-gltf converter"
GLTF_VERSION = "2.0"


class GltfDocument:
    """
    Output document: scenes, nodes, meshes, materials and packed buffers.

    Attributes:
        gltf: The pygltflib.GLTF2 being populated. Its buffers carry only
            byteLength; the bytes live in buffer_data.
        buffer_data: List of bytes objects, one per gltf.buffers entry.
    """

    def __init__(self, generator=DEFAULT_GENERATOR, copyright=None):
        self.gltf = pygltflib.GLTF2(
            asset=pygltflib.Asset(
                generator=generator,
                copyright=copyright,
                version=GLTF_VERSION,
                minVersion=GLTF_VERSION,
            ),
        )
        self.buffer_data = []

    # ------------------------------------------------------------------
    # Scene graph
    # ------------------------------------------------------------------

    def add_scene(self, name):
        index = len(self.gltf.scenes)
        self.gltf.scenes.append(pygltflib.Scene(name=name, nodes=[]))
        if self.gltf.scene is None:
            self.gltf.scene = 0
        return index

    def add_node(self, scene_index, name, translation=(0.0, 0.0, 0.0),
                 rotation=(0.0, 0.0, 0.0, 1.0), mesh=None):
        """Append a node and list it among the scene's root nodes."""
        index = len(self.gltf.nodes)
        self.gltf.nodes.append(pygltflib.Node(
            name=name,
            mesh=mesh,
            translation=[float(v) for v in translation],
            rotation=[float(v) for v in rotation],
        ))
        self.gltf.scenes[scene_index].nodes.append(index)
        return index

    def add_mesh(self, name, primitives):
        index = len(self.gltf.meshes)
        self.gltf.meshes.append(pygltflib.Mesh(name=name, primitives=list(primitives)))
        return index

    def add_material(self, base_color, metallic=0.0, name=None):
        index = len(self.gltf.materials)
        self.gltf.materials.append(pygltflib.Material(
            name=name,
            pbrMetallicRoughness=pygltflib.PbrMetallicRoughness(
                baseColorFactor=list(base_color),
                metallicFactor=metallic,
            ),
        ))
        return index

    # ------------------------------------------------------------------
    # Binary data
    # ------------------------------------------------------------------

    def add_buffer(self, data):
        """Append a buffer holding *data* (bytes) and return its index."""
        index = len(self.gltf.buffers)
        data = bytes(data)
        self.gltf.buffers.append(pygltflib.Buffer(byteLength=len(data)))
        self.buffer_data.append(data)
        return index

    def add_buffer_view(self, buffer, byte_offset, byte_length,
                        byte_stride=None, target=None):
        index = len(self.gltf.bufferViews)
        self.gltf.bufferViews.append(pygltflib.BufferView(
            buffer=buffer,
            byteOffset=byte_offset,
            byteLength=byte_length,
            byteStride=byte_stride,
            target=target,
        ))
        return index

    def add_accessor(self, buffer_view, component_type, element_type, count,
                     byte_offset=0, minimum=None, maximum=None):
        index = len(self.gltf.accessors)
        self.gltf.accessors.append(pygltflib.Accessor(
            bufferView=buffer_view,
            byteOffset=byte_offset,
            componentType=component_type,
            type=element_type,
            count=count,
            min=minimum,
            max=maximum,
        ))
        return index

    def summary(self):
        """Return a dict with the number of entries of each kind."""
        gltf = self.gltf
        return {
            'scenes': len(gltf.scenes),
            'nodes': len(gltf.nodes),
            'meshes': len(gltf.meshes),
            'materials': len(gltf.materials),
            'buffers': len(gltf.buffers),
            'bufferViews': len(gltf.bufferViews),
            'accessors': len(gltf.accessors),
            'bytes': sum(len(data) for data in self.buffer_data),
        }
