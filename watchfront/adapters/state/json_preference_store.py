import json
import os
from typing import Optional
from ...domain.models import LAYOUTS
from ...domain.ports import PreferenceStorePort


class JsonPreferenceStore(PreferenceStorePort):
    """Single ``layout`` entry kept in a small JSON file."""

    def __init__(self, path: str) -> None:
        self.path = os.path.abspath(path)

    def get_layout(self) -> Optional[str]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            return None
        except ValueError as e:
            print(f"[prefs] Ignoring unreadable {self.path}: {e}")
            return None
        layout = raw.get("layout") if isinstance(raw, dict) else None
        return layout if layout in LAYOUTS else None

    def set_layout(self, layout: str) -> None:
        if layout not in LAYOUTS:
            raise ValueError(f"unknown layout: {layout}")
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"layout": layout}, f)
