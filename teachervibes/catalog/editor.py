"""
Facet editor: validation and write sequences for submit, edit and delete.

The backend offers no multi-statement transaction, so each write is a saga:
an ordered list of steps, each committed on its own. A failure stops the
sequence and raises ``SagaError`` naming the failed step and the steps
already committed. Nothing is compensated.

What a failure leaves behind:

    sequence  failing step           left behind
    --------  ---------------------  -----------------------------------------
    submit    upload_screenshot      nothing
    submit    insert_artifact        orphan screenshot
    submit    insert_subjects        screenshot + artifact without tags
    submit    insert_key_stages      screenshot + artifact with subjects only
    edit      upload_screenshot      nothing
    edit      update_artifact        orphan screenshot
    edit      delete_subjects        new scalars, old tags
    edit      delete_key_stages      new scalars, no subjects, old key stages
    edit      insert_subjects        new scalars, no tags
    edit      insert_key_stages      new scalars, new subjects, no key stages
    delete    delete_<dependants>    artifact + the dependants not yet removed
    delete    delete_artifact        artifact row with no dependants

Between the tag deletes and inserts of an edit the artifact is briefly
tagless. Only the owner reaches that path, so there is one writer.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Sequence

import structlog

from ..config import Settings, get_settings
from ..gateway.base import Gateway, ObjectStore, Row
from .enums import Collection, KeyStage, Subject
from .errors import (
    ArtifactNotFoundError,
    AuthRequiredError,
    CatalogError,
    ConfirmationRequiredError,
    NotOwnerError,
    SagaError,
    ValidationError,
)
from .schemas import Artifact, ArtifactInput, ImageUpload, UserIdentity

logger = structlog.get_logger()

# Dependants are removed before the artifact row; the store does not cascade.
DELETE_ORDER = (
    Collection.ARTIFACT_SUBJECTS,
    Collection.ARTIFACT_KEY_STAGES,
    Collection.VOTES,
    Collection.FAVORITES,
)

SAFE_EXTENSION = re.compile(r"[a-z0-9]{1,8}")


class Saga:
    """Runs write steps in order and records which ones committed."""

    def __init__(self, name: str):
        self.name = name
        self.completed: List[str] = []

    async def step(self, name: str, action: Awaitable[Any]) -> Any:
        try:
            result = await action
        except CatalogError as e:
            logger.error(
                "write_sequence_failed",
                saga=self.name,
                step=name,
                completed=self.completed,
                error=str(e),
            )
            raise SagaError(self.name, name, self.completed, e) from e
        self.completed.append(name)
        return result


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def _unique(values: Iterable[Any]) -> List[Any]:
    return list(dict.fromkeys(values))


def validate_artifact_url(url: str, prefixes: Sequence[str]) -> None:
    """Reject URLs that do not start with an accepted prefix."""
    url = (url or "").strip()
    for prefix in prefixes:
        if url.startswith(prefix):
            return
    raise ValidationError(
        "artifact_url",
        "Please enter a valid artifact URL (must start with "
        f"{' or '.join(prefixes) or 'an accepted prefix'}).",
        "INVALID_ARTIFACT_URL",
    )


def validate_image(image: ImageUpload) -> None:
    """Reject screenshots whose extension cannot be part of an object name."""
    if image.extension and not SAFE_EXTENSION.fullmatch(image.extension):
        raise ValidationError(
            "screenshot",
            "Screenshot file names must end in a plain extension such as .png.",
            "INVALID_SCREENSHOT",
        )


def validate_input(data: ArtifactInput, prefixes: Sequence[str]) -> None:
    """Check submitted fields. Pure: runs before anything is written.

    Raises:
        ValidationError: Naming the first offending field
    """
    validate_artifact_url(data.artifact_url, prefixes)
    if not _clean(data.title):
        raise ValidationError("title", "A title is required.", "TITLE_REQUIRED")
    if not data.subjects:
        raise ValidationError(
            "subjects", "Select at least one subject.", "SUBJECT_REQUIRED"
        )
    if not data.key_stages:
        raise ValidationError(
            "key_stages", "Select at least one key stage.", "KEY_STAGE_REQUIRED"
        )


class FacetEditor:
    """Creates, edits and deletes artifacts together with their tag rows."""

    def __init__(
        self,
        gateway: Gateway,
        object_store: ObjectStore,
        settings: Optional[Settings] = None,
    ):
        self.gateway = gateway
        self.object_store = object_store
        self.settings = settings or get_settings()

    def validate(self, data: ArtifactInput) -> None:
        validate_input(data, self.settings.artifact_url_prefixes)

    @staticmethod
    def _scalars(data: ArtifactInput) -> Row:
        return {
            "title": _clean(data.title),
            "artifact_url": data.artifact_url.strip(),
            "description": _clean(data.description),
            "first_prompt": _clean(data.first_prompt),
        }

    @staticmethod
    def _subject_rows(artifact_id: str, subjects: Iterable[Subject]) -> List[Row]:
        return [
            {"artifact_id": artifact_id, "subject": Subject(s).value}
            for s in _unique(subjects)
        ]

    @staticmethod
    def _key_stage_rows(artifact_id: str, key_stages: Iterable[KeyStage]) -> List[Row]:
        return [
            {"artifact_id": artifact_id, "key_stage": KeyStage(k).value}
            for k in _unique(key_stages)
        ]

    async def _upload(self, saga: Saga, image: ImageUpload) -> str:
        name = uuid.uuid4().hex
        if image.extension:
            name = f"{name}.{image.extension}"
        stored = await saga.step(
            "upload_screenshot", self.object_store.upload(name, image.content)
        )
        return self.object_store.get_public_url(stored)

    async def _owned(self, viewer: Optional[UserIdentity], artifact_id: str) -> Row:
        if viewer is None:
            raise AuthRequiredError()
        rows = await self.gateway.select(Collection.ARTIFACTS, {"id": artifact_id})
        if not rows:
            raise ArtifactNotFoundError(artifact_id)
        if rows[0]["user_id"] != viewer.id:
            raise NotOwnerError(artifact_id)
        return rows[0]

    async def submit_artifact(
        self,
        viewer: Optional[UserIdentity],
        data: ArtifactInput,
        image: Optional[ImageUpload],
    ) -> Artifact:
        """Upload the screenshot, then insert the artifact and its tags.

        Raises:
            AuthRequiredError: If nobody is signed in
            ValidationError: Before any upload or write
            SagaError: If a step fails after the sequence started
        """
        if viewer is None:
            raise AuthRequiredError()
        self.validate(data)
        if image is None or not image.content:
            raise ValidationError(
                "screenshot", "Please upload a screenshot.", "SCREENSHOT_REQUIRED"
            )
        validate_image(image)

        saga = Saga("submit_artifact")
        screenshot_url = await self._upload(saga, image)

        row = self._scalars(data)
        row.update({"screenshot_url": screenshot_url, "user_id": viewer.id})
        inserted = await saga.step(
            "insert_artifact", self.gateway.insert(Collection.ARTIFACTS, [row])
        )
        artifact_row = dict(inserted[0])
        artifact_id = artifact_row["id"]

        subject_rows = self._subject_rows(artifact_id, data.subjects)
        await saga.step(
            "insert_subjects",
            self.gateway.insert(Collection.ARTIFACT_SUBJECTS, subject_rows),
        )
        key_stage_rows = self._key_stage_rows(artifact_id, data.key_stages)
        await saga.step(
            "insert_key_stages",
            self.gateway.insert(Collection.ARTIFACT_KEY_STAGES, key_stage_rows),
        )

        logger.info("artifact_submitted", artifact_id=artifact_id, user_id=viewer.id)
        artifact_row[Collection.ARTIFACT_SUBJECTS.value] = subject_rows
        artifact_row[Collection.ARTIFACT_KEY_STAGES.value] = key_stage_rows
        return Artifact.from_row(artifact_row)

    async def update_artifact(
        self,
        viewer: Optional[UserIdentity],
        artifact_id: str,
        data: ArtifactInput,
        image: Optional[ImageUpload] = None,
    ) -> None:
        """Update scalar fields in place and replace all tag rows.

        The existing screenshot is kept unless a new image is given.
        """
        if viewer is None:
            raise AuthRequiredError()
        self.validate(data)
        if image is not None and image.content:
            validate_image(image)
        current = await self._owned(viewer, artifact_id)

        saga = Saga("update_artifact")
        values = self._scalars(data)
        if image is not None and image.content:
            values["screenshot_url"] = await self._upload(saga, image)
        else:
            values["screenshot_url"] = current.get("screenshot_url")

        by_id = {"id": artifact_id}
        by_artifact = {"artifact_id": artifact_id}
        await saga.step(
            "update_artifact", self.gateway.update(Collection.ARTIFACTS, values, by_id)
        )
        await saga.step(
            "delete_subjects",
            self.gateway.delete(Collection.ARTIFACT_SUBJECTS, by_artifact),
        )
        await saga.step(
            "delete_key_stages",
            self.gateway.delete(Collection.ARTIFACT_KEY_STAGES, by_artifact),
        )
        await saga.step(
            "insert_subjects",
            self.gateway.insert(
                Collection.ARTIFACT_SUBJECTS,
                self._subject_rows(artifact_id, data.subjects),
            ),
        )
        await saga.step(
            "insert_key_stages",
            self.gateway.insert(
                Collection.ARTIFACT_KEY_STAGES,
                self._key_stage_rows(artifact_id, data.key_stages),
            ),
        )
        logger.info("artifact_updated", artifact_id=artifact_id, user_id=viewer.id)

    async def delete_artifact(
        self,
        viewer: Optional[UserIdentity],
        artifact_id: str,
        confirmed: bool = False,
    ) -> None:
        """Delete dependants collection by collection, then the artifact row.

        Raises:
            ConfirmationRequiredError: Unless ``confirmed`` is True. Nothing
                is read or written.
        """
        if viewer is None:
            raise AuthRequiredError()
        if not confirmed:
            raise ConfirmationRequiredError(
                "Deleting an artifact cannot be undone; confirm to continue."
            )
        await self._owned(viewer, artifact_id)

        saga = Saga("delete_artifact")
        by_artifact: Dict[str, Any] = {"artifact_id": artifact_id}
        for collection in DELETE_ORDER:
            await saga.step(
                f"delete_{collection.value}",
                self.gateway.delete(collection, by_artifact),
            )
        await saga.step(
            "delete_artifact",
            self.gateway.delete(Collection.ARTIFACTS, {"id": artifact_id}),
        )
        logger.info("artifact_deleted", artifact_id=artifact_id, user_id=viewer.id)
