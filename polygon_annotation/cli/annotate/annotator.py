import logging
from gettext import gettext as _

import cv2

from polygon_annotation.config import get_config
from polygon_annotation.core.editor import EditorSession
from polygon_annotation.core.editor.render import normalize_color
from polygon_annotation.interfaces.gui_adapter import QUIT, SAVE, GUIEditorAdapter
from polygon_annotation.utils.preferences import PreferenceStore

logger = logging.getLogger(__name__)

WINDOW_NAME = "polygon_annotation"


def save_export(session: EditorSession, output) -> bool:
    blob = session.export_image()
    if blob is None:
        logger.error(_("Nothing to export"))
        return False
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(blob)
    logger.info(_("Saved {path}").format(path=output))
    return True


def handle(args):  # pragma: no cover
    assert args.input.exists() and args.input.is_file(), _("Input image must exist")
    if not args.overwrite:
        assert not args.output.exists(), _(
            "Output exists, use --overwrite to replace it"
        )
    if args.fill_color:
        try:
            normalize_color(args.fill_color)
        except ValueError:
            logger.error(_("Invalid color: {color}").format(color=args.fill_color))
            raise SystemExit(1)

    image = cv2.imread(str(args.input), cv2.IMREAD_COLOR)
    assert image is not None, _("Could not decode image: {path}").format(path=args.input)
    image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    cfg = get_config()
    session = EditorSession(cfg, PreferenceStore(cfg.preferences.path))
    if args.fill_color:
        session.set_fill_color(args.fill_color)
    session.load_image(image)
    session.set_container_size(args.width, args.height)

    adapter = GUIEditorAdapter(session)
    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_AUTOSIZE)
    cv2.setMouseCallback(WINDOW_NAME, adapter.on_mouse)

    logger.info(
        _(
            "Click to add points, click the first point to close, shift-click to insert, "
            "right-click to delete, Tab to toggle markers, s to save, q to quit"
        )
    )
    try:
        while True:
            if adapter.needs_redraw:
                cv2.imshow(WINDOW_NAME, adapter.get_visualization())
            action = adapter.on_key(cv2.waitKeyEx(20))
            if action == SAVE:
                save_export(session, args.output)
            elif action == QUIT:
                break
            if cv2.getWindowProperty(WINDOW_NAME, cv2.WND_PROP_VISIBLE) < 1:
                break
    finally:
        session.close()
        cv2.destroyWindow(WINDOW_NAME)
