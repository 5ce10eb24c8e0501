# flake8: noqa E501

from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _("Draw polygons over an image and export the flattened result")


def command(subparser):
    subparser.add_argument("input", type=Path, help=_("Image to annotate"))
    subparser.add_argument("output", type=Path, help=_("Where to save the exported PNG"))
    subparser.add_argument("--width", dest="width", type=int, default=1280, help=_("Window width"))
    subparser.add_argument("--height", dest="height", type=int, default=800, help=_("Window height"))
    subparser.add_argument(
        "--fill-color",
        dest="fill_color",
        type=str,
        default=None,
        help=_("Fill color for new polygons (also saved as the default)"),
    )
    subparser.add_argument(
        "--overwrite",
        action="store_true",
        help=_("Overwrite the output file if it exists"),
    )

    def handle(args):
        from .annotator import handle as annotator_handle

        annotator_handle(args)

    return handle
