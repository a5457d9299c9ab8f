from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class RecordWriteRequest(BaseModel):
    """
    Body of a gateway write: `{type, data}`.

    `data` is one record (create, upsert or partial update) or a list of
    records (bulk replace of the collection). `type` may instead be given as
    a query parameter.
    """
    type: Optional[str] = Field(None, description="Collection name, e.g. 'invoices'")
    data: Union[list[dict[str, Any]], dict[str, Any]]
