import json
import logging
from functools import lru_cache
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from core.checklist_config import load_checklist_config
from core.environment import get_checklist_definition_path
from schemas.checklist import (
    ChecklistDefinition,
    ChecklistItemPatch,
    ChecklistItemState,
    ChecklistTree,
)
from services.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def load_definition(path: Optional[str] = None) -> ChecklistDefinition:
    """Load and validate a checklist definition (built-in default when no path is given)."""
    try:
        raw = load_checklist_config(path)
        return ChecklistDefinition.model_validate(raw)
    except FileNotFoundError as e:
        raise ValidationError(str(e), "checklist_definition") from e
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise ValidationError(f"Invalid checklist definition: {e}", "checklist_definition") from e


@lru_cache(maxsize=1)
def get_active_definition() -> ChecklistDefinition:
    """Definition configured for this process (CHECKLIST_DEFINITION_PATH or the default)."""
    path = get_checklist_definition_path()
    definition = load_definition(path)
    logger.info(
        "Checklist definition loaded",
        extra={"source": path or "builtin", "categories": len(definition.categories)},
    )
    return definition


def build_initial(definition: ChecklistDefinition) -> ChecklistTree:
    """Every defined item starts unset with an empty comment, in definition order."""
    tree: ChecklistTree = {}
    for category in definition.checklist_categories():
        tree[category.id] = {item.id: ChecklistItemState() for item in category.items}
    return tree


def update_item(
    tree: ChecklistTree,
    category_id: str,
    item_id: str,
    patch: ChecklistItemPatch,
) -> ChecklistTree:
    """Return a new tree where only the addressed item has the patch merged in."""
    if category_id not in tree:
        raise NotFoundError(f"Checklist category {category_id!r} not found.", "category_id")
    if item_id not in tree[category_id]:
        raise NotFoundError(
            f"Checklist item {item_id!r} not found in category {category_id!r}.", "item_id"
        )

    changes = patch.model_dump(exclude_none=True)
    updated: ChecklistTree = {}
    for cat_id, items in tree.items():
        if cat_id != category_id:
            updated[cat_id] = dict(items)
            continue
        updated[cat_id] = {
            key: (state.model_copy(update=changes) if key == item_id else state)
            for key, state in items.items()
        }
    return updated


def align_to_definition(tree: ChecklistTree, definition: ChecklistDefinition) -> ChecklistTree:
    """
    Check a submitted tree against the definition and return it in definition order.

    Raises:
        ValidationError: If a category or item is missing or unknown
    """
    expected = build_initial(definition)
    if set(tree.keys()) != set(expected.keys()):
        raise ValidationError("Checklist categories do not match the checklist definition.", "checklist")

    aligned: ChecklistTree = {}
    for cat_id, items in expected.items():
        submitted = tree[cat_id]
        if set(submitted.keys()) != set(items.keys()):
            raise ValidationError(
                f"Checklist items of category {cat_id!r} do not match the checklist definition.",
                "checklist",
            )
        aligned[cat_id] = {item_id: submitted[item_id] for item_id in items}
    return aligned
