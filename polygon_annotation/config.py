"""
Default configuration for the polygon editor.

Values can be overridden from the environment, e.g.
``POLYGON_EDITOR__CLOSE_THRESHOLD=15``.
"""

import copy
import os
from typing import Dict, Optional

from easydict import EasyDict as edict

from polygon_annotation.utils.env import load_cfg_from_env

ENV_PREFIX = "POLYGON_"

FILL_COLOR_PREFERENCE = "image-editor-polygon-fill-color"

DEFAULT_CONFIG = edict(
    editor=edict(
        point_radius=10.0,
        start_point_radius=12.0,
        close_threshold=10.0,
        insert_point_threshold=50.0,
        min_polygon_points=3,
        history_limit=0,  # 0 keeps every snapshot
    ),
    viewport=edict(
        zoom_scale_by=1.02,
        min_zoom=0.1,
        max_zoom=10.0,
        margin=16.0,
    ),
    render=edict(
        fill_opacity=0.5,
        selected_fill_opacity=0.7,
        export_fill_opacity=1.0,
        stroke_width=2.0,
        selected_stroke_width=3.0,
        control_point_stroke="#000000",
        selected_point_fill="#ffffff",
        background="#f4f4f5",
    ),
    fill_color=edict(
        default="#ff0000",
        presets=[
            "#000000",
            "#ffffff",
            "#ff0000",
            "#00ff00",
            "#0000ff",
            "#ffff00",
            "#ff00ff",
            "#00ffff",
        ],
    ),
    preferences=edict(
        path="~/.config/polygon_annotation/preferences.json",
    ),
)


def get_config(env: Optional[Dict[str, str]] = None) -> edict:
    """Return a fresh copy of the defaults with environment overrides applied."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if env is None:
        env = dict(os.environ)
    return load_cfg_from_env(cfg, env, prefix=ENV_PREFIX)
