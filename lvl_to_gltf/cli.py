"""
LVL to glTF 2.0 converter command line.

Usage:
  lvl2gltf -i geo1.json [-c ingame.json] [-o geo1.glb] [--gltf]
  lvl2gltf -i geo1.json --list-layers
  lvl2gltf -i geo1.json -l geo1 -l geo1_conquest --validate
"""

import argparse
import logging
import os
import sys

from .errors import ConversionError
from .gltf_writer import default_output_path, write_document
from .level_format import load_container
from .scene_translator import SceneTranslator
from .validation import ValidationSeverity, failed, validate_document

log = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='lvl2gltf', description='LVL to glTF 2.0 converter')
    parser.add_argument('-i', '--inlvl', required=True,
                        help='Path to the world level description to convert')
    parser.add_argument('-c', '--incommon',
                        help='(optional) Path to the common level description '
                             '(needed for command posts, turrets, health droids, etc.)')
    parser.add_argument('-o', '--outglb',
                        help='(optional) Output file. Default: input path with '
                             'the extension replaced by .glb (.gltf with --gltf)')
    parser.add_argument('--gltf', action='store_true',
                        help='Write a .gltf text file with embedded buffers '
                             'instead of a .glb binary')
    parser.add_argument('-l', '--layer', action='append', dest='layers',
                        metavar='NAME',
                        help='World layer to convert (repeatable). Default: all')
    parser.add_argument('--list-layers', action='store_true',
                        help='List the available layers and exit')
    parser.add_argument('--dedupe-materials', action='store_true',
                        help='Share materials between segments with equal colors')
    parser.add_argument('--validate', action='store_true',
                        help='Validate the converted document before writing')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if not os.path.isfile(args.inlvl):
        log.error("Specified file '%s' doesn't exist!", args.inlvl)
        return 1

    try:
        container = load_container(args.inlvl, args.incommon)
        translator = SceneTranslator(container,
                                     dedupe_materials=args.dedupe_materials)

        if args.list_layers:
            for world in translator.select_worlds():
                print("  {:25s} [{} objects]".format(world.name, len(world.instances)))
            return 0

        document = translator.translate(args.layers)
    except ConversionError as e:
        log.error("Conversion of '%s' failed: %s", args.inlvl, e)
        return 1

    if args.validate:
        results = validate_document(document)
        for result in failed(results, ValidationSeverity.WARNING):
            log.warning("%s: %s", result.check_id, result.message)
        errors = failed(results)
        for result in errors:
            log.error("%s: %s", result.check_id, result.message)
        if errors:
            log.error("Validation failed with %d errors, nothing written", len(errors))
            return 1

    output = args.outglb or default_output_path(args.inlvl, binary=not args.gltf)
    log.info("Writing output file: %s...", output)
    try:
        write_document(document, output, binary=not args.gltf)
    except OSError as e:
        log.error("Could not write '%s': %s", output, e)
        return 1

    stats = translator.stats
    summary = document.summary()
    print("{} -> {} ({} worlds, {} nodes, {} meshes, {} materials, "
          "{} instances skipped)".format(
              args.inlvl, output, stats.worlds, summary['nodes'],
              summary['meshes'], summary['materials'], stats.skipped))
    return 0


if __name__ == '__main__':
    sys.exit(main())
