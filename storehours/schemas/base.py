# storehours/schemas/base.py
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from storehours.core.timeutils import is_valid_hhmm


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; accepts either on input."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def check_hhmm(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    v = v.strip()
    if not is_valid_hhmm(v):
        raise ValueError("time must be HH:MM (24-hour, zero padded)")
    return v


def check_pair(start: Optional[str], end: Optional[str], label: str) -> None:
    if bool(start) != bool(end):
        raise ValueError(f"{label} start and end must be set together")
