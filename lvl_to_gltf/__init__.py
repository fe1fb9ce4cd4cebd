"""
LVL to glTF - converts game level scene graphs to glTF 2.0.

Turns the worlds of a loaded level (terrain, placed instances, models made
of segments) into a glTF scene per world with nodes, meshes, materials and
tightly packed vertex/index buffers. Models placed many times are
converted once and shared between their nodes.

Levels are read from the JSON level description format (level_format);
output is written as .glb or .gltf (gltf_writer).
"""

import logging

from .errors import (ConversionError, NoWorldsError, MissingGeometryError,
                     IndexRangeError, LevelFormatError)
from .source_graph import (Topology, Material, Segment, Model, Terrain,
                           Instance, World, Level, Container)
from .conversions import gltf_mode, normalize_color
from .document import GltfDocument, DEFAULT_GENERATOR, GLTF_VERSION
from .buffer_packer import pack_geometry, PackedGeometry
from .mesh_builder import MeshBuilder
from .scene_translator import (SceneTranslator, TranslationStats,
                               translate_level, GEOMETRY_NAME_PROPERTY)
from .level_format import (load_level, load_container, level_from_dict,
                           level_to_dict, validate_level)
from .gltf_writer import (write_document, write_glb, write_gltf, load_gltf,
                          read_accessor, default_output_path)
from .validation import (validate_document, validate_gltf, ValidationResult,
                         ValidationSeverity)

log = logging.getLogger(__name__)


def convert_level(input_path, output_path=None, common_path=None, layers=None,
                  binary=True, dedupe_materials=False):
    """
    High-level API: convert a level description file to .glb / .gltf.

    Args:
        input_path: World level description (.json).
        output_path: Destination file. Default: input path with the
            extension replaced by .glb (or .gltf when binary is False).
        common_path: Optional common level supplying shared models.
        layers: World names to convert. Default: every world.
        binary: Write .glb when True, .gltf otherwise.
        dedupe_materials: Share materials between equal diffuse colors.

    Returns:
        dict: {
            'output_path': str,
            'stats': dict of TranslationStats counters,
            'document': dict of entry counts,
        }

    Raises:
        ConversionError: On any fatal conversion failure.
    """
    container = load_container(input_path, common_path)
    translator = SceneTranslator(container, dedupe_materials=dedupe_materials)
    document = translator.translate(layers)

    if output_path is None:
        output_path = default_output_path(input_path, binary)
    write_document(document, output_path, binary=binary)

    return {
        'output_path': output_path,
        'stats': translator.stats.as_dict(),
        'document': document.summary(),
    }
