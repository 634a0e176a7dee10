"""
Generic resource driver.

A ``ResourceHandler`` describes one catalog entity: where it lives, how its
JSON fields map to columns, which pydantic schemas validate its payloads and
which relations to advertise. ``register_resource_routes`` composes a handler
with the shared list/get/create/update/delete/options endpoints on an
APIRouter.
"""

import logging
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional, Tuple, Type, TypeVar

import pydantic
from fastapi import APIRouter, Depends, Path, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import Table, delete, insert, select, update

from music_catalog.core.conditional import check_if_match, if_none_match, quote_etag
from music_catalog.core.database import INTEGER_MAX, INTEGER_MIN, Base, Database, Row, Transaction, get_db
from music_catalog.core.errors import NotFoundError, ValidationError, error_messages
from music_catalog.models._mixins import new_etag
from music_catalog.schemas.envelope import Links, base_url, dump_links, envelope, link

logger = logging.getLogger(__name__)

Entity = Dict[str, Any]
SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Path ids must fit the INTEGER column they are compared with
ItemId = Annotated[int, Path(ge=INTEGER_MIN, le=INTEGER_MAX)]

ITEM_METHODS = ("GET", "PUT", "PATCH", "DELETE")
COLLECTION_METHODS = ("GET", "POST")


async def read_payload(request: Request) -> Dict[str, Any]:
    """Decode the request body, which must be a JSON object."""
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def validate_payload(schema: Type[SchemaT], payload: Dict[str, Any]) -> SchemaT:
    """Validate ``payload`` against ``schema``, raising a 400 with every problem found."""
    try:
        return schema.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(error_messages(exc.errors())) from exc


async def row_exists(db, model: Type[Base], item_id: Any) -> bool:
    table = model.__table__
    row = await db.fetch_one(select(table.c.id).where(table.c.id == item_id))
    return row is not None


class ResourceHandler:
    """
    Per-entity behaviour plugged into the generic driver.

    Subclasses set ``name``, ``path``, ``model``, ``fields`` (JSON key ->
    column name) and the ``create_schema``/``update_schema`` pair, whose
    field names are the column names. ``check_references`` covers rules
    that need the database. The remaining hooks have defaults that work
    for plain single-table entities.
    """

    name: str = "Resource"
    path: str = ""
    model: Type[Base]
    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    fields: Dict[str, str] = {}
    methods: Tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE")

    @property
    def table(self) -> Table:
        return self.model.__table__

    @property
    def replace_schema(self) -> Type[BaseModel]:
        """Schema for PUT; the create schema unless a subclass narrows it."""
        return self.create_schema

    # Hooks

    async def check_references(self, tx: Transaction, data: BaseModel) -> List[str]:
        """Problems that need the store, such as missing referenced rows."""
        return []

    def to_row(self, data: BaseModel) -> Row:
        """Column values for the fields the client sent."""
        return data.model_dump(include=set(self.fields.values()), exclude_unset=True)

    async def serialize(self, db: Database, row: Row) -> Entity:
        entity: Entity = {"id": row["id"]}
        for key, column in self.fields.items():
            entity[key] = row[column]
        return entity

    async def perform_create(self, tx: Transaction, data: BaseModel) -> int:
        result = await tx.execute(insert(self.table).values(**self.to_row(data)))
        return result.inserted_id

    async def delete_dependents(self, tx: Transaction, item_id: int) -> None:
        """Remove rows owned by the item, inside the delete transaction."""

    def relation_links(self, root: str, entity: Entity) -> Links:
        return {}

    # Shared helpers

    def collection_url(self, root: str) -> str:
        return f"{root}/{self.path}"

    def item_url(self, root: str, item_id: Any) -> str:
        return f"{root}/{self.path}/{item_id}"

    async def fetch_row(self, db, item_id: int) -> Optional[Row]:
        return await db.fetch_one(select(self.table).where(self.table.c.id == item_id))

    async def require_row(self, db, item_id: int, message: Optional[str] = None) -> Row:
        row = await self.fetch_row(db, item_id)
        if row is None:
            raise NotFoundError(message)
        return row

    def collection_links(self, root: str) -> Links:
        href = self.collection_url(root)
        links: Links = {"self": link(href, "self")}
        if "POST" in self.methods:
            links["create"] = link(href, "create", method="POST")
        links["item"] = link(f"{href}/{{id}}", "item", templated=True)
        return links

    def item_links(self, root: str, entity: Entity) -> Links:
        href = self.item_url(root, entity["id"])
        links: Links = {"self": link(href, "self")}
        links.update(self.relation_links(root, entity))
        if "PUT" in self.methods:
            links["update"] = link(href, "update", method="PUT")
        if "DELETE" in self.methods:
            links["delete"] = link(href, "delete", method="DELETE")
        links["collection"] = link(self.collection_url(root), "collection")
        return links

    def allow(self, item: bool) -> str:
        verbs = ITEM_METHODS if item else COLLECTION_METHODS
        return ", ".join([verb for verb in verbs if verb in self.methods] + ["OPTIONS"])


def register_resource_routes(router: APIRouter, handler: ResourceHandler) -> APIRouter:
    """Install the standard endpoints for ``handler`` on ``router``."""
    table = handler.table

    @router.get("")
    async def list_items(
        request: Request,
        db: Annotated[Database, Depends(get_db)],
    ) -> JSONResponse:
        rows = await db.fetch_many(select(table).order_by(table.c.id))
        data = [await handler.serialize(db, row) for row in rows]
        return JSONResponse(envelope(data, handler.collection_links(base_url(request))))

    @router.get("/{item_id}")
    async def get_item(
        item_id: ItemId,
        request: Request,
        db: Annotated[Database, Depends(get_db)],
    ) -> Response:
        row = await handler.require_row(db, item_id)
        check_if_match(request, row["etag"])
        headers = {"ETag": quote_etag(row["etag"])}
        if if_none_match(request, row["etag"]):
            return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)

        entity = await handler.serialize(db, row)
        links = handler.item_links(base_url(request), entity)
        return JSONResponse(envelope(entity, links), headers=headers)

    if "POST" in handler.methods:
        @router.post("", status_code=status.HTTP_201_CREATED)
        async def create_item(
            request: Request,
            db: Annotated[Database, Depends(get_db)],
        ) -> JSONResponse:
            data = validate_payload(handler.create_schema, await read_payload(request))
            async with db.transaction() as tx:
                errors = await handler.check_references(tx, data)
                if errors:
                    raise ValidationError(errors)
                item_id = await handler.perform_create(tx, data)

            row = await handler.require_row(db, item_id)
            entity = await handler.serialize(db, row)
            links = handler.item_links(base_url(request), entity)
            logger.info("Created %s %s", handler.name, item_id)
            return JSONResponse(
                status_code=status.HTTP_201_CREATED,
                content=envelope(entity, links),
                headers={"Location": links["self"].href, "ETag": quote_etag(row["etag"])},
            )

    async def replace(item_id: int, request: Request, db: Database, partial: bool) -> JSONResponse:
        payload = await read_payload(request)
        schema = handler.update_schema if partial else handler.replace_schema

        async with db.transaction() as tx:
            row = await handler.require_row(tx, item_id)
            check_if_match(request, row["etag"])

            data = validate_payload(schema, payload)
            if partial and not data.model_fields_set:
                raise ValidationError("At least one field must be provided for update")
            errors = await handler.check_references(tx, data)
            if errors:
                raise ValidationError(errors)

            changed = {
                column: value
                for column, value in handler.to_row(data).items()
                if row.get(column) != value
            }
            if changed:
                changed["etag"] = new_etag()
                changed["updated_at"] = datetime.utcnow()
                await tx.execute(update(table).where(table.c.id == item_id).values(**changed))
                logger.info("Updated %s %s: %s", handler.name, item_id, sorted(changed))

        row = await handler.require_row(db, item_id)
        entity = await handler.serialize(db, row)
        links = handler.item_links(base_url(request), entity)
        return JSONResponse(envelope(entity, links), headers={"ETag": quote_etag(row["etag"])})

    if "PUT" in handler.methods:
        @router.put("/{item_id}")
        async def replace_item(
            item_id: ItemId,
            request: Request,
            db: Annotated[Database, Depends(get_db)],
        ) -> JSONResponse:
            return await replace(item_id, request, db, partial=False)

    if "PATCH" in handler.methods:
        @router.patch("/{item_id}")
        async def patch_item(
            item_id: ItemId,
            request: Request,
            db: Annotated[Database, Depends(get_db)],
        ) -> JSONResponse:
            return await replace(item_id, request, db, partial=True)

    if "DELETE" in handler.methods:
        @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
        async def delete_item(
            item_id: ItemId,
            request: Request,
            db: Annotated[Database, Depends(get_db)],
        ) -> Response:
            async with db.transaction() as tx:
                row = await handler.require_row(tx, item_id)
                check_if_match(request, row["etag"])
                await handler.delete_dependents(tx, item_id)
                result = await tx.execute(delete(table).where(table.c.id == item_id))
                if result.rows_affected == 0:
                    raise NotFoundError()
            logger.info("Deleted %s %s", handler.name, item_id)
            return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.options("")
    async def collection_options(request: Request) -> JSONResponse:
        return JSONResponse(
            {"links": dump_links(handler.collection_links(base_url(request)))},
            headers={"Allow": handler.allow(item=False)},
        )

    @router.options("/{item_id}")
    async def item_options(
        item_id: ItemId,
        request: Request,
        db: Annotated[Database, Depends(get_db)],
    ) -> JSONResponse:
        row = await handler.require_row(db, item_id)
        entity = await handler.serialize(db, row)
        return JSONResponse(
            {"links": dump_links(handler.item_links(base_url(request), entity))},
            headers={"Allow": handler.allow(item=True), "ETag": quote_etag(row["etag"])},
        )

    return router
