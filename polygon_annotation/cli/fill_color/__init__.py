import logging
from gettext import gettext as _

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTION = _("Show or change the default polygon fill color")


def command(subparser):
    subparser.add_argument(
        "color",
        nargs="?",
        default=None,
        help=_("New default fill color (hex like #00ff00 or a color name)"),
    )
    subparser.add_argument(
        "--presets",
        action="store_true",
        help=_("List the preset colors"),
    )

    def handle(args):
        from polygon_annotation.config import FILL_COLOR_PREFERENCE, get_config
        from polygon_annotation.core.editor.render import normalize_color
        from polygon_annotation.utils.preferences import PreferenceStore

        cfg = get_config()
        if args.presets:
            for preset in cfg.fill_color.presets:
                print(preset)
            return

        preferences = PreferenceStore(cfg.preferences.path)
        if args.color is None:
            print(preferences.get(FILL_COLOR_PREFERENCE, cfg.fill_color.default))
            return

        try:
            color = normalize_color(args.color)
        except ValueError:
            logger.error(_("Invalid color: {color}").format(color=args.color))
            raise SystemExit(1)
        preferences.set(FILL_COLOR_PREFERENCE, color)
        print(color)

    return handle
