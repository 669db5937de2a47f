"""Branch lookup tools: opening hours and contact details of the four restaurants."""

from datetime import datetime, time
from typing import Any

import pytz

from services.tools.ToolRegistry import ToolRegistry
from shared.models.tools import ToolDefinition

# every branch serves a lunch and a dinner service, seven days a week
BRANCHES: dict[str, dict[str, Any]] = {
    "seraing": {
        "name": "Tasty Food Seraing",
        "address": "15 Rue Gustave Baivy, 4101 Seraing (Jemeppe-sur-Meuse)",
        "coordinates": {"lat": 50.6167, "lng": 5.5000},
        "hours": {"lunch": "12:00-14:30", "dinner": "19:00-23:00"},
    },
    "angleur": {
        "name": "Tasty Food Angleur",
        "address": "100 Rue Vaudrée, 4031 Angleur",
        "coordinates": {"lat": 50.6119, "lng": 5.6003},
        "hours": {"lunch": "12:00-14:30", "dinner": "19:00-23:00"},
    },
    "saint-gilles": {
        "name": "Tasty Food Saint-Gilles",
        "address": "Rue Saint-Gilles 58, 4000 Liège",
        "coordinates": {"lat": 50.6326, "lng": 5.5797},
        "hours": {"lunch": "12:00-14:30", "dinner": "19:00-23:00"},
    },
    "wandre": {
        "name": "Tasty Food Wandre",
        "address": "Rue du Pont de Wandre 75, 4020 Liège",
        "coordinates": {"lat": 50.6667, "lng": 5.6333},
        "hours": {"lunch": "12:00-14:30", "dinner": "19:00-23:00"},
    },
}

BRANCH_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "branch": {"type": "string", "description": "Branch name: seraing, angleur, saint-gilles, wandre"},
    },
    "required": ["branch"],
}


def find_branch(name: str) -> dict[str, Any]:
    """Look a branch up by name, ignoring case and accepting spaces for dashes.

    Raises:
        ValueError: If no branch has that name.
    """
    key = "-".join(str(name).strip().lower().split())
    if key not in BRANCHES:
        raise ValueError(f"Branch not found: {name}")
    return BRANCHES[key]


def _parse_slot(slot: str) -> tuple[time, time]:
    opens, closes = slot.split("-")
    return time.fromisoformat(opens), time.fromisoformat(closes)


def is_open(hours: dict[str, str], now: datetime) -> bool:
    """True if now (local time) falls inside one of the service slots."""
    current = now.time()
    for slot in hours.values():
        opens, closes = _parse_slot(slot)
        if opens <= current < closes:
            return True
    return False


def register_branch_tools(registry: ToolRegistry, tz_name: str = "Europe/Brussels") -> None:
    timezone = pytz.timezone(tz_name)

    async def get_branch_hours(tool_input: dict[str, Any]) -> dict[str, Any]:
        branch = find_branch(tool_input.get("branch", ""))
        return {
            "name": branch["name"],
            "hours": branch["hours"],
            "is_open": is_open(branch["hours"], datetime.now(timezone)),
        }

    async def get_branch_contact(tool_input: dict[str, Any]) -> dict[str, Any]:
        branch = find_branch(tool_input.get("branch", ""))
        return {"name": branch["name"], "address": branch["address"], "coordinates": branch["coordinates"]}

    registry.register(
        ToolDefinition(
            name="get_branch_hours",
            description="Get the opening hours of a branch and whether it is open right now.",
            input_schema=BRANCH_INPUT_SCHEMA,
        ),
        get_branch_hours,
    )
    registry.register(
        ToolDefinition(
            name="get_branch_contact",
            description="Get the address and coordinates of a branch.",
            input_schema=BRANCH_INPUT_SCHEMA,
        ),
        get_branch_contact,
    )
