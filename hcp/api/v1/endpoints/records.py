"""
Records gateway: one endpoint for every collection, chosen by `type`.

Reads return the whole collection (scoped to the caller's partner codes);
writes carry `{type, data}` where `data` is one record or, for a bulk replace,
a list of records. Every top-level field name of written data must be a plain
identifier.
"""
from contextlib import contextmanager
from typing import Any, Optional, Union
import logging
import re

from fastapi import APIRouter, Header, Query, Response

from hcp.api.deps import CurrentActor, Repos, Scope
from hcp.core.errors import BadRequest, HCPError, InternalError
from hcp.core.permissions import PartnerScope
from hcp.repositories.base import CollectionRepository
from hcp.schemas.gateway import RecordWriteRequest


logger = logging.getLogger(__name__)

router = APIRouter(tags=["Records"])

FIELD_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


@contextmanager
def internal_errors(operation: str):
    """Turn unexpected faults into a generic InternalError, logged here."""
    try:
        yield
    except HCPError:
        raise
    except Exception:
        logger.exception(f"Records gateway: {operation} failed")
        raise InternalError()


def check_field_names(data: Union[list, dict]) -> None:
    """
    Raises:
        BadRequest: an item is not an object, or a field name is not an identifier
    """
    items = data if isinstance(data, list) else [data]
    for item in items:
        if not isinstance(item, dict):
            raise BadRequest("Each record must be a JSON object")
        for key in item:
            if not FIELD_NAME.match(key):
                raise BadRequest(f"Invalid column name in data: {key!r}")


def resolve_type(query_type: Optional[str], body_type: Optional[str]) -> Optional[str]:
    if query_type and body_type and query_type != body_type:
        raise BadRequest("Type parameter does not match the request body")
    return body_type or query_type


def parse_if_match(value: Optional[str]) -> Optional[str]:
    """Revision named by an If-Match header; None for absent or '*'."""
    if not value:
        return None
    value = value.strip()
    if value == "*":
        return None
    if value.startswith("W/"):
        value = value[2:]
    return value.strip('"') or None


def _field_value(repo: CollectionRepository, data: dict, field_name: Optional[str]) -> Any:
    if field_name is None:
        return None
    alias = repo.schema.model_fields[field_name].alias or field_name
    return data.get(alias, data.get(field_name))


def _authorize_write(
    repo: CollectionRepository,
    scope: PartnerScope,
    data: dict,
    existing: Optional[Any] = None,
) -> None:
    if repo.super_admin_writes:
        scope.require_super_admin()
        return
    if not repo.partner_scoped:
        return
    if existing is not None:
        scope.require_access(repo.partner_code_of(existing))
    new_code = _field_value(repo, data, repo.partner_field)
    if existing is None or new_code is not None:
        scope.require_access(new_code)


async def _set_etag(response: Response, repo: CollectionRepository) -> None:
    revision = await repo.revision()
    if revision:
        response.headers["ETag"] = f'"{revision}"'


async def _replace_all(
    repo: CollectionRepository,
    records: list,
    scope: PartnerScope,
    expected_revision: Optional[str],
) -> list:
    scope.require_super_admin()
    saved = await repo.save(records, expected_revision=expected_revision)
    logger.info(f"Replaced {repo.collection} with {len(saved)} records")
    return [repo.public(r) for r in saved]


def _require_record(data: Union[list, dict]) -> dict:
    if not isinstance(data, dict):
        raise BadRequest("A single record object is required")
    if not data:
        raise BadRequest("Missing type or data in request body")
    return data


@router.get("")
async def list_records(
    response: Response,
    repos: Repos,
    scope: Scope,
    entity_type: Optional[str] = Query(None, alias="type"),
    partner_code: Optional[str] = Query(None, alias="partnerCode"),
):
    """
    Get a whole collection.

    Partner-scoped collections only include records the caller may see; an
    optional `partnerCode` narrows the result further.
    """
    repo = repos.for_type(entity_type)
    with internal_errors(f"read {repo.collection}"):
        records = await repo.get_all(partner_code)
        if repo.partner_scoped:
            records = scope.filter(records, repo.partner_code_of)
        await _set_etag(response, repo)
        return [repo.public(r) for r in records]


@router.post("")
async def create_records(
    body: RecordWriteRequest,
    response: Response,
    repos: Repos,
    scope: Scope,
    actor: CurrentActor,
    entity_type: Optional[str] = Query(None, alias="type"),
    if_match: Optional[str] = Header(None),
):
    """Create one record, or replace the collection when `data` is a list."""
    repo = repos.for_type(resolve_type(entity_type, body.type))
    check_field_names(body.data)
    expected = parse_if_match(if_match)

    with internal_errors(f"create {repo.collection}"):
        if isinstance(body.data, list):
            result = await _replace_all(repo, body.data, scope, expected)
        else:
            data = _require_record(body.data)
            _authorize_write(repo, scope, data)
            record = await repo.create(data, actor.id, expected_revision=expected)
            result = repo.public(record)
        await _set_etag(response, repo)
        return result


@router.put("")
async def put_records(
    body: RecordWriteRequest,
    response: Response,
    repos: Repos,
    scope: Scope,
    actor: CurrentActor,
    entity_type: Optional[str] = Query(None, alias="type"),
    if_match: Optional[str] = Header(None),
):
    """Replace (or create) one record, or replace the collection when `data` is a list."""
    repo = repos.for_type(resolve_type(entity_type, body.type))
    check_field_names(body.data)
    expected = parse_if_match(if_match)

    with internal_errors(f"put {repo.collection}"):
        if isinstance(body.data, list):
            result = await _replace_all(repo, body.data, scope, expected)
        else:
            data = _require_record(body.data)
            record_id = _field_value(repo, data, repo.id_field)
            existing = await repo.get_by_id(record_id) if record_id is not None else None
            _authorize_write(repo, scope, data, existing)
            record = await repo.put(data, actor.id, expected_revision=expected)
            result = repo.public(record)
        await _set_etag(response, repo)
        return result


@router.patch("")
async def update_record(
    body: RecordWriteRequest,
    response: Response,
    repos: Repos,
    scope: Scope,
    actor: CurrentActor,
    entity_type: Optional[str] = Query(None, alias="type"),
    if_match: Optional[str] = Header(None),
):
    """Merge the given fields into an existing record identified by its id."""
    repo = repos.for_type(resolve_type(entity_type, body.type))
    check_field_names(body.data)
    data = _require_record(body.data)
    record_id = _field_value(repo, data, repo.id_field)
    if record_id is None:
        raise BadRequest(f"Missing record {repo.id_field}")

    with internal_errors(f"update {repo.collection}"):
        existing = await repo.get_by_id(record_id)
        if existing is not None:
            _authorize_write(repo, scope, data, existing)
        record = await repo.update(record_id, data, actor.id, expected_revision=parse_if_match(if_match))
        await _set_etag(response, repo)
        return repo.public(record)


@router.delete("")
async def delete_record(
    response: Response,
    repos: Repos,
    scope: Scope,
    actor: CurrentActor,
    entity_type: Optional[str] = Query(None, alias="type"),
    record_id: Optional[str] = Query(None, alias="id"),
):
    """Hard-delete one record. Only invoices allow this."""
    repo = repos.for_type(entity_type)
    if not record_id:
        raise BadRequest("Missing id parameter")

    with internal_errors(f"delete {repo.collection}"):
        existing = await repo.get_by_id(record_id)
        if existing is not None:
            _authorize_write(repo, scope, {}, existing)
        removed = await repo.delete(record_id, actor.id)
        await _set_etag(response, repo)
        return repo.public(removed)
