"""
Brand-strategy contracts.

Mission, vision, value proposition, target market and background share one
shape: a saved statement plus the free text it was generated from. Each kind
is described once in BRAND_KINDS and its request/response models are derived
from that description.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Type
from datetime import datetime

from pydantic import BaseModel, create_model
from pydantic.alias_generators import to_camel

from .common import CamelModel, NonEmptyStr


class GenerateStatementRequest(CamelModel):
    input: NonEmptyStr


@dataclass
class BrandKind:
    key: str              # URL slug: /generate-<key>
    label: str            # Human-readable name for messages
    field_name: str       # ORM attribute / snake_case field
    collection: str       # URL collection: /<collection>

    generated_model: Type[BaseModel] = field(init=False, repr=False)
    create_request_model: Type[BaseModel] = field(init=False, repr=False)
    update_request_model: Type[BaseModel] = field(init=False, repr=False)
    response_model: Type[BaseModel] = field(init=False, repr=False)

    def __post_init__(self):
        stem = "".join(part.capitalize() for part in self.field_name.split("_"))
        self.generated_model = create_model(
            f"Generated{stem}",
            __base__=CamelModel,
            **{self.field_name: (str, ...)},
        )
        self.create_request_model = create_model(
            f"Create{stem}Request",
            __base__=CamelModel,
            **{self.field_name: (NonEmptyStr, ...), "original_input": (NonEmptyStr, ...)},
        )
        self.update_request_model = create_model(
            f"Update{stem}Request",
            __base__=CamelModel,
            **{self.field_name: (NonEmptyStr, ...)},
        )
        self.response_model = create_model(
            f"{stem}Response",
            __base__=CamelModel,
            id=(int, ...),
            user_id=(str, ...),
            original_input=(str, ...),
            created_at=(Optional[datetime], None),
            **{self.field_name: (str, ...)},
        )

    @property
    def json_field(self) -> str:
        """Field name as it appears in JSON bodies"""
        return to_camel(self.field_name)

    @property
    def generate_path(self) -> str:
        return f"/generate-{self.key}"

    @property
    def collection_path(self) -> str:
        return f"/{self.collection}"


BRAND_KINDS: List[BrandKind] = [
    BrandKind(key="mission", label="mission statement", field_name="mission", collection="missions"),
    BrandKind(key="vision", label="vision statement", field_name="vision", collection="visions"),
    BrandKind(key="value", label="value proposition", field_name="value_proposition", collection="values"),
    BrandKind(key="target", label="target market profile", field_name="target_market", collection="target-markets"),
    BrandKind(key="background", label="business background", field_name="background", collection="backgrounds"),
]

BRAND_KINDS_BY_KEY: Dict[str, BrandKind] = {kind.key: kind for kind in BRAND_KINDS}


def get_brand_kind(key: str) -> BrandKind:
    try:
        return BRAND_KINDS_BY_KEY[key]
    except KeyError:
        raise ValueError(f"Unknown brand kind: {key}")
