"""Dataset version endpoints: upload, list, activate and delete developer datasets."""
from fastapi import APIRouter

from hcp.api.deps import CurrentActor, Repos, Scope
from hcp.core.errors import NotFound
from hcp.schemas.developer import DatasetUploadRequest


router = APIRouter(tags=["Dataset Versions"])


@router.get("")
async def list_versions(repos: Repos, scope: Scope):
    """Retained versions, newest first, without their records."""
    return [repos.versions.summary(v) for v in await repos.versions.get_all()]


@router.post("")
async def upload_version(data: DatasetUploadRequest, repos: Repos, scope: Scope, actor: CurrentActor):
    """Store an uploaded dataset as a new version (activated unless `activate` is false)."""
    scope.require_super_admin()
    version = await repos.versions.upload(
        data.file_name,
        data.records,
        actor_id=actor.id,
        activate=data.activate,
    )
    return repos.versions.summary(version)


@router.get("/active")
async def get_active_version(repos: Repos, scope: Scope):
    version = await repos.versions.get_active()
    if version is None:
        raise NotFound("No dataset version is active")
    return repos.versions.summary(version)


@router.get("/{version_id}")
async def get_version(version_id: str, repos: Repos, scope: Scope):
    version = await repos.versions.get_by_id(version_id)
    if version is None:
        raise NotFound(f"Dataset version {version_id} not found")
    records = scope.filter(version.records, lambda r: r.partner_code)
    return {**repos.versions.summary(version), "records": [r.to_storage() for r in records]}


@router.post("/{version_id}/activate")
async def activate_version(version_id: str, repos: Repos, scope: Scope, actor: CurrentActor):
    scope.require_super_admin()
    version = await repos.versions.activate(version_id, actor_id=actor.id)
    return repos.versions.summary(version)


@router.delete("/{version_id}")
async def delete_version(version_id: str, repos: Repos, scope: Scope, actor: CurrentActor):
    scope.require_super_admin()
    removed = await repos.versions.delete(version_id, actor_id=actor.id)
    return repos.versions.summary(removed)
