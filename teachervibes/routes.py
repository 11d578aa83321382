"""
View shell API routes.

One endpoint per screen action: browse, profile, submit, edit, delete,
vote, favorite, and the sign-in screens. Catalog errors are translated to
HTTP responses by the handlers registered in ``teachervibes.api``.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel

from .catalog.aggregator import CatalogAggregator
from .catalog.editor import FacetEditor
from .catalog.enums import KeyStage, SortBy, Subject
from .catalog.filters import apply_filters
from .catalog.interactions import toggle_favorite, toggle_vote
from .catalog.schemas import ArtifactInput, FilterSpec, ImageUpload, UserIdentity
from .config import Settings, get_settings
from .dependencies import (
    get_gateway,
    get_identity_provider,
    get_object_store,
    get_token,
    get_viewer,
    require_viewer,
)
from .gateway import Gateway, ObjectStore, SqlIdentityProvider

router = APIRouter()


class Credentials(BaseModel):
    email: str
    password: str


async def _image(upload: Optional[UploadFile]) -> Optional[ImageUpload]:
    if upload is None or not upload.filename:
        return None
    return ImageUpload(
        filename=upload.filename,
        content=await upload.read(),
        content_type=upload.content_type,
    )


# =============================================================================
# Auth Endpoints
# =============================================================================


@router.post("/auth/sign-up", status_code=201, tags=["auth"])
async def sign_up(
    credentials: Credentials,
    identity: SqlIdentityProvider = Depends(get_identity_provider),
) -> Dict[str, Any]:
    """Register a new account."""
    user = await identity.sign_up(credentials.email, credentials.password)
    return {"status": "success", "user": user.model_dump()}


@router.post("/auth/sign-in", tags=["auth"])
async def sign_in(
    credentials: Credentials,
    identity: SqlIdentityProvider = Depends(get_identity_provider),
) -> Dict[str, Any]:
    """Exchange email and password for a bearer token."""
    token = await identity.sign_in(credentials.email, credentials.password)
    user = await identity.current_session(token)
    return {"access_token": token, "token_type": "bearer", "user": user.model_dump()}


@router.post("/auth/sign-out", tags=["auth"])
async def sign_out(
    viewer: UserIdentity = Depends(require_viewer),
    token: Optional[str] = Depends(get_token),
    identity: SqlIdentityProvider = Depends(get_identity_provider),
) -> Dict[str, str]:
    await identity.sign_out(token)
    return {"message": "Signed out"}


@router.get("/auth/me", tags=["auth"])
async def me(viewer: UserIdentity = Depends(require_viewer)) -> Dict[str, Any]:
    return viewer.model_dump()


# =============================================================================
# Browse / Profile Endpoints
# =============================================================================


@router.get("/artifacts", tags=["artifacts"])
async def browse_artifacts(
    search: str = "",
    subject: List[Subject] = Query(default=[]),
    key_stage: List[KeyStage] = Query(default=[]),
    favorites_only: bool = False,
    sort_by: SortBy = SortBy.NEWEST,
    viewer: Optional[UserIdentity] = Depends(get_viewer),
    gateway: Gateway = Depends(get_gateway),
) -> Dict[str, Any]:
    """Load the enriched catalog and return the filtered, sorted slice."""
    catalog = await CatalogAggregator(gateway).load_catalog(
        viewer.id if viewer else None
    )
    spec = FilterSpec(
        favorites_only=favorites_only,
        search_text=search,
        subjects=frozenset(subject),
        key_stages=frozenset(key_stage),
        sort_by=sort_by,
    )
    visible = apply_filters(catalog, spec)
    return {
        "total": len(catalog),
        "count": len(visible),
        "artifacts": [a.model_dump(mode="json") for a in visible],
    }


@router.get("/me/artifacts", tags=["artifacts"])
async def my_artifacts(
    viewer: UserIdentity = Depends(require_viewer),
    gateway: Gateway = Depends(get_gateway),
) -> Dict[str, Any]:
    """Artifacts created by the signed-in user, newest first."""
    artifacts = await CatalogAggregator(gateway).load_owned(viewer.id)
    return {
        "count": len(artifacts),
        "total_votes": sum(a.vote_count for a in artifacts),
        "artifacts": [a.model_dump(mode="json") for a in artifacts],
    }


@router.get("/stats", tags=["artifacts"])
async def stats(
    limit: int = Query(default=6, ge=1, le=50),
    gateway: Gateway = Depends(get_gateway),
) -> Dict[str, Any]:
    """Landing-page totals and top artifacts. Anonymous; no viewer flags."""
    highlights = await CatalogAggregator(gateway).load_highlights(limit)
    return highlights.model_dump(mode="json")


# =============================================================================
# Submit / Edit / Delete Endpoints
# =============================================================================


@router.post("/artifacts", status_code=201, tags=["artifacts"])
async def submit_artifact(
    title: str = Form(""),
    artifact_url: str = Form(""),
    description: Optional[str] = Form(None),
    first_prompt: Optional[str] = Form(None),
    subjects: List[Subject] = Form(default=[]),
    key_stages: List[KeyStage] = Form(default=[]),
    screenshot: Optional[UploadFile] = File(None),
    viewer: Optional[UserIdentity] = Depends(get_viewer),
    gateway: Gateway = Depends(get_gateway),
    object_store: ObjectStore = Depends(get_object_store),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Submit a new artifact with its screenshot and tags."""
    data = ArtifactInput(
        title=title,
        artifact_url=artifact_url,
        description=description,
        first_prompt=first_prompt,
        subjects=subjects,
        key_stages=key_stages,
    )
    editor = FacetEditor(gateway, object_store, settings)
    artifact = await editor.submit_artifact(viewer, data, await _image(screenshot))
    return {"status": "success", "artifact": artifact.model_dump(mode="json")}


@router.put("/artifacts/{artifact_id}", tags=["artifacts"])
async def edit_artifact(
    artifact_id: str,
    title: str = Form(""),
    artifact_url: str = Form(""),
    description: Optional[str] = Form(None),
    first_prompt: Optional[str] = Form(None),
    subjects: List[Subject] = Form(default=[]),
    key_stages: List[KeyStage] = Form(default=[]),
    screenshot: Optional[UploadFile] = File(None),
    viewer: Optional[UserIdentity] = Depends(get_viewer),
    gateway: Gateway = Depends(get_gateway),
    object_store: ObjectStore = Depends(get_object_store),
    settings: Settings = Depends(get_settings),
) -> Dict[str, str]:
    """Edit an artifact the viewer owns. Tags are replaced wholesale."""
    data = ArtifactInput(
        title=title,
        artifact_url=artifact_url,
        description=description,
        first_prompt=first_prompt,
        subjects=subjects,
        key_stages=key_stages,
    )
    editor = FacetEditor(gateway, object_store, settings)
    await editor.update_artifact(viewer, artifact_id, data, await _image(screenshot))
    return {"status": "success"}


@router.delete("/artifacts/{artifact_id}", tags=["artifacts"])
async def delete_artifact(
    artifact_id: str,
    confirm: bool = False,
    viewer: Optional[UserIdentity] = Depends(get_viewer),
    gateway: Gateway = Depends(get_gateway),
    object_store: ObjectStore = Depends(get_object_store),
    settings: Settings = Depends(get_settings),
) -> Dict[str, str]:
    """Delete an artifact the viewer owns. Requires ``confirm=true``."""
    editor = FacetEditor(gateway, object_store, settings)
    await editor.delete_artifact(viewer, artifact_id, confirmed=confirm)
    return {"status": "success"}


# =============================================================================
# Vote / Favorite Endpoints
# =============================================================================


@router.post("/artifacts/{artifact_id}/vote", tags=["artifacts"])
async def vote(
    artifact_id: str,
    viewer: Optional[UserIdentity] = Depends(get_viewer),
    gateway: Gateway = Depends(get_gateway),
) -> Dict[str, bool]:
    """Toggle the viewer's vote."""
    return {"voted": await toggle_vote(gateway, viewer, artifact_id)}


@router.post("/artifacts/{artifact_id}/favorite", tags=["artifacts"])
async def favorite(
    artifact_id: str,
    viewer: Optional[UserIdentity] = Depends(get_viewer),
    gateway: Gateway = Depends(get_gateway),
) -> Dict[str, bool]:
    """Toggle the viewer's favorite."""
    return {"favorited": await toggle_favorite(gateway, viewer, artifact_id)}


@router.get("/vocabularies", tags=["system"])
async def vocabularies(settings: Settings = Depends(get_settings)) -> Dict[str, List[str]]:
    """Fixed option lists for the filter bar and submit form."""
    return {
        "subjects": [s.value for s in Subject],
        "key_stages": [k.value for k in KeyStage],
        "sort_by": [s.value for s in SortBy],
        "artifact_url_prefixes": settings.artifact_url_prefixes,
    }
