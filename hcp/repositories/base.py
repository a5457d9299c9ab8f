"""
Generic collection repository.

A repository owns one storage key holding the whole collection as a JSON
array. Reads parse the array into schema instances; every write is a
read-modify-write of the full array inside a storage transaction, saved
against the revision that was read so that a concurrent writer surfaces as a
Conflict rather than a lost update.
"""
from typing import Any, ClassVar, Generic, List, Optional, Sequence, Tuple, Type, TypeVar, Union
import logging

from pydantic import ValidationError

from hcp.core.errors import BadRequest, Conflict, NotFound, StorageError
from hcp.core.result import Err, Ok, Result
from hcp.schemas.base import RecordSchema
from hcp.schemas.enums import AuditAction, EntityType
from hcp.services.audit_service import AuditService
from hcp.storage.base import StorageAdapter


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=RecordSchema)


def validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ())) or "record"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


class CollectionRepository(Generic[ModelT]):
    """Typed CRUD over one collection key."""

    collection: ClassVar[str]
    entity_type: ClassVar[EntityType]
    schema: ClassVar[Type[RecordSchema]]

    id_field: ClassVar[str] = "id"
    # Attribute holding the owning partner code; None for unscoped collections
    partner_field: ClassVar[Optional[str]] = "partner_code"
    create_action: ClassVar[AuditAction] = AuditAction.CREATE
    prepend_on_create: ClassVar[bool] = False
    deletable: ClassVar[bool] = False
    super_admin_writes: ClassVar[bool] = False
    private_fields: ClassVar[frozenset] = frozenset()

    def __init__(
        self,
        storage: StorageAdapter,
        audit: AuditService,
        key_prefix: str = "hcp_",
        registry: Optional["CollectionRepository"] = None,
    ):
        self.storage = storage
        self.audit = audit
        self.key_prefix = key_prefix
        self.registry = registry

    @property
    def key(self) -> str:
        return f"{self.key_prefix}{self.collection}"

    @property
    def partner_scoped(self) -> bool:
        return self.partner_field is not None

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def record_id(self, record: ModelT) -> str:
        return str(getattr(record, self.id_field))

    def partner_code_of(self, record: ModelT) -> Optional[str]:
        if self.partner_field is None:
            return None
        return getattr(record, self.partner_field, None) or None

    def coerce(self, record: Union[ModelT, dict]) -> ModelT:
        """Validate a dict (camelCase or snake_case keys) into the schema."""
        if isinstance(record, self.schema):
            return record
        try:
            return self.schema.model_validate(record)
        except ValidationError as e:
            raise BadRequest(f"Invalid {self.entity_type.value} record: {validation_message(e)}")

    def serialize(self, record: ModelT) -> dict:
        """Storage form: camelCase JSON including private fields."""
        return record.to_storage()

    def public(self, record: ModelT) -> dict:
        """API form: camelCase JSON without private fields."""
        return record.to_storage(exclude=self.private_fields)

    def _parse_many(self, raw: Sequence[Any]) -> List[ModelT]:
        records = []
        for item in raw:
            try:
                records.append(self.schema.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable {self.entity_type.value} record in {self.key}: {e.error_count()} errors")
        return records

    async def prepare(self, record: ModelT) -> ModelT:
        """Hook applied to every record before it is written."""
        return record

    def describe_create(self, record: ModelT) -> str:
        return f"Created {self.entity_type.value} {self.record_id(record)}"

    def describe_update(self, record: ModelT) -> str:
        return f"Updated {self.entity_type.value} {self.record_id(record)}"

    def describe_delete(self, record: ModelT) -> str:
        return f"Deleted {self.entity_type.value} {self.record_id(record)}"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_all(self) -> Result[List[ModelT]]:
        """All records, or Err(StorageError) if the collection is unreadable."""
        result = await self.storage.load_result(self.key)
        if not result.ok:
            return result
        raw = result.value.value
        if raw is None:
            return Ok([])
        if not isinstance(raw, list):
            return Err(StorageError(f"{self.key} does not hold a collection"))
        return Ok(self._parse_many(raw))

    async def get_all(self, partner_code: Optional[str] = None) -> List[ModelT]:
        """
        All records, or only those owned by `partner_code` when given.

        An unreadable collection degrades to an empty list (logged).
        """
        result = await self.fetch_all()
        if not result.ok:
            logger.error(f"Failed to read {self.collection}: {result.error.message}")
            return []
        records = result.value
        if partner_code and self.partner_scoped:
            records = [r for r in records if self.partner_code_of(r) == partner_code]
        return records

    async def get_by_id(self, record_id: str) -> Optional[ModelT]:
        for record in await self.get_all():
            if self.record_id(record) == str(record_id):
                return record
        return None

    async def revision(self) -> Optional[str]:
        return await self.storage.revision(self.key)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _snapshot(self) -> Tuple[List[ModelT], Optional[str]]:
        result = await self.storage.load_result(self.key)
        if not result.ok:
            # Refuse to overwrite a collection that cannot be read back
            raise result.error
        raw = result.value.value or []
        if not isinstance(raw, list):
            raise StorageError(f"{self.key} does not hold a collection")
        records = self._parse_many(raw)
        if len(records) != len(raw):
            # Persisting the parsed subset would drop the unreadable items
            raise StorageError(
                f"{self.key} holds {len(raw) - len(records)} unreadable record(s); "
                "replace the collection to repair it"
            )
        return records, result.value.revision

    async def _persist(self, records: Sequence[ModelT], revision: Optional[str]) -> str:
        return await self.storage.save(
            self.key,
            [self.serialize(r) for r in records],
            expected_revision=revision,
        )

    def _index_of(self, records: Sequence[ModelT], record_id: str) -> Optional[int]:
        for index, record in enumerate(records):
            if self.record_id(record) == str(record_id):
                return index
        return None

    def _arrange(self, records: List[ModelT], record: ModelT) -> List[ModelT]:
        if self.prepend_on_create:
            return [record] + records
        return records + [record]

    @staticmethod
    def _check_revision(expected: Optional[str], actual: Optional[str]) -> None:
        if expected is not None and expected != actual:
            raise Conflict("Collection was modified since it was read")

    async def _warn_unregistered(self, record: ModelT) -> None:
        code = self.partner_code_of(record)
        if self.registry is None or not code or self.registry is self:
            return
        if not await self.registry.is_valid_code(code):
            logger.warning(f"{self.entity_type.value} {self.record_id(record)} uses partner code {code} which is not in the registry")

    async def _insert(
        self,
        record: ModelT,
        actor_id: str,
        action: AuditAction,
        details: str,
        expected_revision: Optional[str] = None,
    ) -> ModelT:
        async with self.storage.transaction():
            records, revision = await self._snapshot()
            self._check_revision(expected_revision, revision)
            if self._index_of(records, self.record_id(record)) is not None:
                raise Conflict(f"{self.entity_type.value} {self.record_id(record)} already exists")
            await self._persist(self._arrange(records, record), revision)
            await self._warn_unregistered(record)
            await self.audit.log(
                action=action,
                entity_type=self.entity_type,
                entity_id=self.record_id(record),
                user_id=actor_id,
                details=details,
                partner_code=self.partner_code_of(record),
            )
        return record

    async def create(
        self,
        record: Union[ModelT, dict],
        actor_id: str = "system",
        expected_revision: Optional[str] = None,
    ) -> ModelT:
        """
        Insert a new record, persist the collection and audit the creation.

        Raises:
            Conflict: a record with the same id exists, or the collection changed
                since `expected_revision`
        """
        model = await self.prepare(self.coerce(record))
        return await self._insert(
            model,
            actor_id,
            self.create_action,
            self.describe_create(model),
            expected_revision,
        )

    async def update(
        self,
        record_id: str,
        changes: dict,
        actor_id: str = "system",
        expected_revision: Optional[str] = None,
    ) -> ModelT:
        """
        Merge `changes` into an existing record.

        Raises:
            NotFound: no record has `record_id`
            BadRequest: the merge produces an invalid record, or tries to change the id
        """
        changes = self.schema.alias_keys(changes)
        id_alias = self.schema.model_fields[self.id_field].alias or self.id_field
        if id_alias in changes:
            if str(changes.pop(id_alias)) != str(record_id):
                raise BadRequest(f"{self.entity_type.value} id cannot be changed")

        async with self.storage.transaction():
            records, revision = await self._snapshot()
            self._check_revision(expected_revision, revision)
            index = self._index_of(records, record_id)
            if index is None:
                raise NotFound(f"{self.entity_type.value} {record_id} not found")

            merged = {**self.serialize(records[index]), **changes}
            updated = await self.prepare(self.coerce(merged))
            records[index] = updated
            await self._persist(records, revision)
            await self._warn_unregistered(updated)
            await self.audit.log(
                action=AuditAction.UPDATE,
                entity_type=self.entity_type,
                entity_id=self.record_id(updated),
                user_id=actor_id,
                details=self.describe_update(updated),
                partner_code=self.partner_code_of(updated),
            )
        return updated

    async def put(
        self,
        record: Union[ModelT, dict],
        actor_id: str = "system",
        expected_revision: Optional[str] = None,
    ) -> ModelT:
        """Replace the record with the same id, or create it if absent."""
        model = await self.prepare(self.coerce(record))
        async with self.storage.transaction():
            records, revision = await self._snapshot()
            self._check_revision(expected_revision, revision)
            index = self._index_of(records, self.record_id(model))
            if index is None:
                return await self._insert(model, actor_id, self.create_action, self.describe_create(model))

            records[index] = model
            await self._persist(records, revision)
            await self._warn_unregistered(model)
            await self.audit.log(
                action=AuditAction.UPDATE,
                entity_type=self.entity_type,
                entity_id=self.record_id(model),
                user_id=actor_id,
                details=self.describe_update(model),
                partner_code=self.partner_code_of(model),
            )
        return model

    async def save(
        self,
        records: Sequence[Union[ModelT, dict]],
        expected_revision: Optional[str] = None,
    ) -> List[ModelT]:
        """
        Replace the whole collection (last write wins unless `expected_revision`
        is given). Not audited, matching bulk loads.
        """
        models = [await self.prepare(self.coerce(r)) for r in records]
        seen = set()
        for model in models:
            record_id = self.record_id(model)
            if record_id in seen:
                raise BadRequest(f"Duplicate {self.entity_type.value} id {record_id}")
            seen.add(record_id)

        await self.storage.save(
            self.key,
            [self.serialize(m) for m in models],
            expected_revision=expected_revision,
        )
        return models

    async def delete(self, record_id: str, actor_id: str = "system") -> ModelT:
        """
        Hard-delete a record. Only collections marked deletable allow this.

        Raises:
            BadRequest: the collection does not allow deletion
            NotFound: no record has `record_id`
        """
        if not self.deletable:
            raise BadRequest(f"{self.collection} records cannot be deleted")

        async with self.storage.transaction():
            records, revision = await self._snapshot()
            index = self._index_of(records, record_id)
            if index is None:
                raise NotFound(f"{self.entity_type.value} {record_id} not found")
            removed = records.pop(index)
            await self._persist(records, revision)
            await self.audit.log(
                action=AuditAction.DELETE,
                entity_type=self.entity_type,
                entity_id=self.record_id(removed),
                user_id=actor_id,
                details=self.describe_delete(removed),
                partner_code=self.partner_code_of(removed),
            )
        return removed
