from decimal import Decimal, ROUND_DOWN

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


CENT = Decimal("0.01")


def money(value) -> Decimal:
    """Coerce to a two-place currency Decimal, truncating extra precision."""
    return Decimal(str(value if value is not None else 0)).quantize(CENT, rounding=ROUND_DOWN)


class ApiModel(BaseModel):
    """Wire models speak camelCase JSON and accept snake_case too."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        use_enum_values = True
        validate_default = True


def empty_str_to_none(v):
    if v is None:
        return None
    v = str(v).strip()
    return v or None
