import logging
from gettext import gettext as _
from typing import Any, Dict

from easydict import EasyDict as edict

logger = logging.getLogger(__name__)

TRUTHY = ("1", "true", "yes", "on")


def coerce_value(value: Any, current: Any) -> Any:
    """Convert an environment string to the type of the value it replaces."""
    if current is None or not isinstance(value, str):
        return value
    if isinstance(current, bool):
        return value.strip().lower() in TRUTHY
    if isinstance(current, (int, float, str)):
        return type(current)(value)
    return value


def load_cfg_from_env(cfg: edict, env: Dict[str, str], prefix: str = "POLYGON_"):
    for k, v in env.items():
        if k.startswith(prefix):
            cfgkey = k[len(prefix):].replace("__", ".").lower()
            logger.warning(
                _(
                    "Changing configuration entry from environment variable: {k}={v}"
                ).format(
                    k=cfgkey, v=v
                )  # noqa:E501
            )  # noqa: E501
            *parts, last = cfgkey.split(".")
            this_cfg = cfg
            for part in parts:
                if this_cfg.get(part) is None:
                    this_cfg[part] = edict()
                this_cfg = this_cfg[part]
            this_cfg[last] = coerce_value(v, this_cfg.get(last))
    return cfg
