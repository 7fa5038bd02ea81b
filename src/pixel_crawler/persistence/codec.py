from __future__ import annotations

import copy
import logging
from typing import Any, Dict

from ..errors import SaveFormatError
from ..state import GameState

logger = logging.getLogger(__name__)

CURRENT_FORMAT_VERSION = 2
# Saves written before positions moved from cell indices to pixels.
LEGACY_CELL_FORMAT_VERSION = 1


def encode_state(state: GameState) -> Dict[str, Any]:
    return state.to_dict()


def decode_state(data: Dict[str, Any]) -> GameState:
    try:
        return GameState.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise SaveFormatError(f"Cannot decode game state: {exc}") from exc


def _cell_to_pixel(value: float, cell_size: int) -> float:
    return float(int(value) * cell_size + cell_size // 2)


def rescale_legacy(data: Dict[str, Any], cell_size: int) -> Dict[str, Any]:
    """Convert a cell-index game state to pixel coordinates (cell centres).

    Only player and item positions changed units; everything else carries over.
    """
    out = copy.deepcopy(data)
    try:
        pos = out["player"]["position"]
        pos["x"] = _cell_to_pixel(pos["x"], cell_size)
        pos["y"] = _cell_to_pixel(pos["y"], cell_size)
        for item in out.get("items", []):
            item["position"]["x"] = _cell_to_pixel(item["position"]["x"], cell_size)
            item["position"]["y"] = _cell_to_pixel(item["position"]["y"], cell_size)
        for slot in out.get("inventory", []):
            held = slot.get("item")
            if held:
                held["position"]["x"] = _cell_to_pixel(held["position"]["x"], cell_size)
                held["position"]["y"] = _cell_to_pixel(held["position"]["y"], cell_size)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise SaveFormatError(f"Cannot rescale legacy save: {exc}") from exc
    logger.info("Rescaled legacy cell-index save to pixel coordinates")
    return out
