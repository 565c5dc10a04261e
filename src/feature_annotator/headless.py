"""Headless annotation renderer - CLI entry point.

Loads a task file, imports its annotations (or those of a separate export
file) and renders the image with every shape to a PNG at fit zoom. No Qt
application or window is created.

Usage:
    feature-annotator-render <task_file> -o OUTPUT.png [--annotations ANN.json]

Examples:
    feature-annotator-render task.json -o preview.png
    feature-annotator-render task.json -o preview.png --annotations exported.json -v
"""

import sys
import os
import argparse
import logging

from feature_annotator.components.annotation_renderer import AnnotationRenderer
from feature_annotator.models.session import AnnotationSession
from feature_annotator.models.task_config import ConstructionError
from feature_annotator.services.annotation_io import load_task_file, load_annotations_file
from feature_annotator.services.drawing_surface import PillowSurface
from feature_annotator.services.image_loader import open_image, resolve_src

logger = logging.getLogger(__name__)


def render_session(session, image=None):
    """Render a session's current state into a PIL image.

    Args:
        session: AnnotationSession to draw
        image: decoded PIL image, or None for the "No Image" placeholder

    Returns:
        RGB PIL image sized to the session's view
    """
    viewport = session.viewport
    surface = PillowSurface(viewport.view_width, viewport.view_height)
    AnnotationRenderer().paint(surface, viewport, session.features,
                               current_shape=None, image=image)
    return surface.image


def render_task(task_file, output_file, annotations_file=None):
    """Render ``task_file`` to ``output_file``; returns the session used."""
    config = load_task_file(task_file)
    session = AnnotationSession.from_config(config)
    if annotations_file:
        session.import_annotations(load_annotations_file(annotations_file))

    src = resolve_src(config.src, os.path.dirname(os.path.abspath(task_file)))
    image = None
    try:
        image = open_image(src)
        session.on_image_loaded(image.width, image.height)
    except OSError as e:
        logger.warning(f"Could not load image {src}: {e}; rendering placeholder")

    render_session(session, image).save(output_file, format='PNG')
    logger.debug(f"Rendered {task_file} to {output_file}")
    return session


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Render a task image with its annotations to PNG (headless).',
    )
    parser.add_argument(
        'task_file',
        help='Path to the task JSON file.',
    )
    parser.add_argument(
        '-o', '--output',
        default='annotations.png',
        help='Output PNG path (default: annotations.png).',
    )
    parser.add_argument(
        '-a', '--annotations',
        help='Exported annotations JSON to draw instead of the task\'s own.',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging.',
    )
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    task_path = os.path.abspath(args.task_file)
    if not os.path.isfile(task_path):
        print(f"Error: Task file not found: {task_path}")
        return 1

    try:
        session = render_task(task_path, args.output, args.annotations)
    except (ConstructionError, ValueError, OSError) as e:
        # json.JSONDecodeError is a ValueError
        print(f"Error: {e}")
        return 1

    shape_count = sum(len(f.valid_shapes()) for f in session.features)
    print(f"Rendered {shape_count} shape(s) across {len(session.features)} feature(s) to {args.output}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
