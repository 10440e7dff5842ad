"""Reconcile a prompt's stored variables with an incoming variable list.

Rows are matched by name so ids survive edits; the incoming list order
becomes ``order_index``. Pure: the store applies the plan.
"""
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

VARIABLE_FIELDS = ("name", "type", "required", "default_value", "help", "pattern", "options")


@dataclass
class VariablePlan:
    to_update: list[tuple[Any, dict]] = field(default_factory=list)
    to_insert: list[dict] = field(default_factory=list)
    to_delete: list[Any] = field(default_factory=list)


def normalize_variable(raw: Mapping[str, Any], order_index: int) -> dict:
    """Fill defaults for a variable given as a dict (request body or snapshot)."""
    return {
        "name": raw["name"],
        "type": raw.get("type") or "STRING",
        "required": bool(raw.get("required", False)),
        "default_value": raw.get("default_value"),
        "help": raw.get("help"),
        "pattern": raw.get("pattern"),
        "options": raw.get("options"),
        "order_index": order_index,
    }


def plan_variable_changes(existing: Iterable[Any], incoming: Sequence[Mapping[str, Any]]) -> VariablePlan:
    existing_by_name = {variable.name: variable for variable in existing}
    plan = VariablePlan()
    incoming_names = set()

    for index, raw in enumerate(incoming):
        values = normalize_variable(raw, index)
        incoming_names.add(values["name"])
        current = existing_by_name.get(values["name"])
        if current is not None:
            plan.to_update.append((current, values))
        else:
            plan.to_insert.append(values)

    plan.to_delete = [v for name, v in existing_by_name.items() if name not in incoming_names]
    return plan


def snapshot_variables(variables: Iterable[Any]) -> list[dict]:
    """JSON-serializable copy of a variable set for a version snapshot."""
    ordered = sorted(variables, key=lambda v: v.order_index or 0)
    return [
        {**{name: getattr(v, name) for name in VARIABLE_FIELDS}, "order_index": v.order_index}
        for v in ordered
    ]
