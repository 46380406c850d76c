"""
Brand Strategy API Routes for HyperLocal

Each brand kind gets the same five endpoints:
    POST   /generate-<key>          generate a statement (not saved)
    POST   /<collection>            save a statement
    GET    /<collection>            list saved statements
    PATCH  /<collection>/{id}       edit a saved statement
    DELETE /<collection>/{id}       delete (idempotent)
"""
from fastapi import APIRouter, Depends, Path, Request, Response
from typing import List
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db
from models.brand import BrandKind, BRAND_KINDS, GenerateStatementRequest
from models.common import MAX_ROW_ID
from routes.auth import current_user_id
from services import brand_generation_service
from services.brand_service import BrandStatementService
from services.rate_limit import limit_ai

logger = logging.getLogger(__name__)

router = APIRouter(tags=["brand"])


def statement_to_response(kind: BrandKind, item):
    return kind.response_model(
        id=item.id,
        user_id=item.user_id,
        original_input=item.original_input,
        created_at=item.created_at,
        **{kind.field_name: getattr(item, kind.field_name)}
    )


def register_brand_kind(router: APIRouter, kind: BrandKind):
    """Attach the generate + CRUD endpoints for one brand kind"""

    def get_service(session: AsyncSession) -> BrandStatementService:
        return BrandStatementService(session, kind.key, kind.field_name)

    async def generate(
        request: Request,
        body: GenerateStatementRequest,
        user_id: str = Depends(current_user_id)
    ):
        generator = brand_generation_service.GENERATORS[kind.key]
        statement = await generator(body.input)
        return kind.generated_model(**{kind.field_name: statement})

    # slowapi keys limits by module + function name; one bucket per kind
    generate.__name__ = generate.__qualname__ = f"generate_{kind.key}"
    router.post(
        kind.generate_path,
        response_model=kind.generated_model,
        name=f"generate_{kind.key}"
    )(limit_ai()(generate))

    @router.post(
        kind.collection_path,
        response_model=kind.response_model,
        status_code=201,
        name=f"create_{kind.key}"
    )
    async def create(
        body: kind.create_request_model,
        user_id: str = Depends(current_user_id),
        session: AsyncSession = Depends(get_db)
    ):
        item = await get_service(session).create(
            user_id=user_id,
            statement=getattr(body, kind.field_name),
            original_input=body.original_input
        )
        logger.info(f"Saved {kind.label} {item.id}")
        return statement_to_response(kind, item)

    @router.get(kind.collection_path, response_model=List[kind.response_model], name=f"list_{kind.key}")
    async def list_items(
        user_id: str = Depends(current_user_id),
        session: AsyncSession = Depends(get_db)
    ):
        items = await get_service(session).list(user_id)
        return [statement_to_response(kind, item) for item in items]

    @router.patch(
        f"{kind.collection_path}/{{item_id}}",
        response_model=kind.response_model,
        name=f"update_{kind.key}"
    )
    async def update(
        body: kind.update_request_model,
        item_id: int = Path(..., gt=0, le=MAX_ROW_ID),
        user_id: str = Depends(current_user_id),
        session: AsyncSession = Depends(get_db)
    ):
        item = await get_service(session).update(item_id, user_id, getattr(body, kind.field_name))
        return statement_to_response(kind, item)

    @router.delete(f"{kind.collection_path}/{{item_id}}", status_code=204, name=f"delete_{kind.key}")
    async def delete(
        item_id: int = Path(..., gt=0, le=MAX_ROW_ID),
        user_id: str = Depends(current_user_id),
        session: AsyncSession = Depends(get_db)
    ):
        await get_service(session).delete(item_id, user_id)
        return Response(status_code=204)


for _kind in BRAND_KINDS:
    register_brand_kind(router, _kind)
