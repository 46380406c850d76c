from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel
from typing import Annotated, Union


# Request strings must carry at least one non-blank character
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# JSON "number": ints stay ints, floats stay floats
Number = Union[int, float]

# Largest value of a 32-bit SERIAL primary key
MAX_ROW_ID = 2147483647


class CamelModel(BaseModel):
    """Base for wire contracts: snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ErrorResponse(BaseModel):
    """Error envelope shared by every endpoint"""
    message: str
