"""
Checklist definition loader.

The inspection form is driven by an external, versionable definition:

    {
        "categories": [{"id": ..., "label": ..., "items": [{"id": ..., "label": ...}]}],
        "inspectionTypes": ["Initial", "Second", "Final"]
    }

Usage:
    raw = load_checklist_config()                 # built-in default
    raw = load_checklist_config("/etc/form.json")  # file override
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_CHECKLIST_CONFIG: Dict[str, Any] = {
    "categories": [
        {
            "id": "exterior",
            "label": "Exterior",
            "items": [
                {"id": "bodywork", "label": "Body work & doors"},
                {"id": "mirrors_glass", "label": "Mirrors and glass"},
                {"id": "wipers", "label": "Wipers and washers"},
                {"id": "exhaust", "label": "Exhaust (no excessive smoke)"},
            ],
        },
        {
            "id": "lights",
            "label": "Lights",
            "items": [
                {"id": "headlights", "label": "Headlights"},
                {"id": "indicators", "label": "Indicators"},
                {"id": "brake_lights", "label": "Brake lights"},
                {"id": "reverse", "label": "Reverse lights"},
                {"id": "hazards", "label": "Hazard lights"},
            ],
        },
        {
            "id": "tyres",
            "label": "Tyres & Wheels",
            "items": [
                {"id": "tread_depth", "label": "Tread depth (min 1.6mm)"},
                {"id": "pressure", "label": "Inflation pressure"},
                {"id": "damage", "label": "Cuts, cracks and bulges"},
                {"id": "wheel_nuts", "label": "Wheel nuts secure"},
            ],
        },
        {
            "id": "engine",
            "label": "Engine Bay",
            "items": [
                {"id": "oil", "label": "Oil level"},
                {"id": "coolant", "label": "Coolant level"},
                {"id": "brake_fluid", "label": "Brake fluid level"},
                {"id": "battery", "label": "Battery secure, not leaking"},
            ],
        },
        {
            "id": "cab",
            "label": "Cab & Controls",
            "items": [
                {"id": "horn", "label": "Horn"},
                {"id": "seatbelts", "label": "Seats and seatbelts"},
                {"id": "brakes", "label": "Brake operation"},
                {"id": "steering", "label": "Steering operation"},
                {"id": "dashboard", "label": "Dashboard warning lights"},
            ],
        },
        {
            "id": "safety",
            "label": "Safety Equipment",
            "items": [
                {"id": "first_aid", "label": "First aid kit"},
                {"id": "extinguisher", "label": "Fire extinguisher"},
                {"id": "jack", "label": "Jack and wheel spanner"},
            ],
        },
        {
            "id": "comments",
            "label": "General Comments",
            "items": [],
        },
    ],
    "inspectionTypes": ["Initial", "Second", "Final"],
}


def load_checklist_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the raw checklist definition.

    Args:
        path: Optional JSON file; the built-in default is used when omitted

    Returns:
        dict: The raw (unvalidated) definition

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    if not path:
        return copy.deepcopy(DEFAULT_CHECKLIST_CONFIG)

    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Checklist definition not found: {config_file}")

    return json.loads(config_file.read_text(encoding="utf-8"))
