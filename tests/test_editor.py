"""Tests for validation and the submit/edit/delete write sequences."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from teachervibes.catalog import (
    ArtifactInput,
    ArtifactNotFoundError,
    AuthRequiredError,
    Collection,
    ConfirmationRequiredError,
    GatewayError,
    ImageUpload,
    KeyStage,
    NotOwnerError,
    SagaError,
    Subject,
    UserIdentity,
    ValidationError,
)
from teachervibes.catalog.editor import DELETE_ORDER, FacetEditor, validate_artifact_url
from teachervibes.gateway import Gateway, ObjectStore

ALICE = UserIdentity(id="alice", email="alice@school.example")
BOB = UserIdentity(id="bob", email="bob@school.example")
PREFIXES = ["https://claude.ai/public/artifacts/", "https://claude.site/artifacts/"]
SCREENSHOT = ImageUpload(filename="Shot.PNG", content=b"\x89PNG fake", content_type="image/png")


def make_input(**overrides) -> ArtifactInput:
    defaults = {
        "title": "Fraction Wall",
        "artifact_url": "https://claude.ai/public/artifacts/abc123",
        "description": "Drag fractions onto the wall",
        "first_prompt": "Make a fraction wall",
        "subjects": [Subject.MATHEMATICS],
        "key_stages": [KeyStage.KS3, KeyStage.KS4],
    }
    defaults.update(overrides)
    return ArtifactInput(**defaults)


@pytest.fixture
def editor(gateway, object_store, settings):
    return FacetEditor(gateway, object_store, settings)


@pytest.fixture
def mocks(settings):
    """An editor over mocked collaborators, with 'a1' owned by alice."""
    gateway = AsyncMock(spec=Gateway)
    gateway.select.return_value = [
        {"id": "a1", "user_id": "alice", "screenshot_url": "http://test/old.png"}
    ]
    object_store = AsyncMock(spec=ObjectStore)
    object_store.upload.side_effect = lambda name, data: name
    object_store.get_public_url.side_effect = lambda name: f"http://test/{name}"
    return FacetEditor(gateway, object_store, settings), gateway, object_store


@pytest_asyncio.fixture
async def submitted(editor):
    return await editor.submit_artifact(ALICE, make_input(), SCREENSHOT)


async def tags(gateway, artifact_id):
    by_artifact = {"artifact_id": artifact_id}
    subjects = await gateway.select(Collection.ARTIFACT_SUBJECTS, by_artifact)
    key_stages = await gateway.select(Collection.ARTIFACT_KEY_STAGES, by_artifact)
    return {r["subject"] for r in subjects}, {r["key_stage"] for r in key_stages}


class TestValidation:
    @pytest.mark.parametrize(
        "url",
        [
            "https://claude.ai/public/artifacts/abc",
            "https://claude.site/artifacts/xyz",
        ],
    )
    def test_accepts_allowed_prefixes(self, url):
        validate_artifact_url(url, PREFIXES)

    @pytest.mark.parametrize(
        "url", ["https://example.com/x", "", "http://claude.ai/public/artifacts/abc"]
    )
    def test_rejects_other_urls(self, url):
        with pytest.raises(ValidationError) as exc_info:
            validate_artifact_url(url, PREFIXES)
        assert exc_info.value.field == "artifact_url"
        assert exc_info.value.code == "INVALID_ARTIFACT_URL"

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"artifact_url": "https://example.com/x"}, "artifact_url"),
            ({"title": "   "}, "title"),
            ({"subjects": []}, "subjects"),
            ({"key_stages": []}, "key_stages"),
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid_submit_makes_no_calls(self, mocks, overrides, field):
        editor, gateway, object_store = mocks
        with pytest.raises(ValidationError) as exc_info:
            await editor.submit_artifact(ALICE, make_input(**overrides), SCREENSHOT)
        assert exc_info.value.field == field
        assert gateway.mock_calls == []
        assert object_store.mock_calls == []

    @pytest.mark.asyncio
    async def test_screenshot_required(self, mocks):
        editor, gateway, object_store = mocks
        with pytest.raises(ValidationError) as exc_info:
            await editor.submit_artifact(ALICE, make_input(), None)
        assert exc_info.value.code == "SCREENSHOT_REQUIRED"
        assert object_store.mock_calls == []

    @pytest.mark.parametrize("filename", ["a.png/../x", "shot.p ng", "shot.verylongext"])
    @pytest.mark.asyncio
    async def test_unsafe_screenshot_extension(self, mocks, filename):
        editor, gateway, object_store = mocks
        image = ImageUpload(filename=filename, content=b"bytes")
        with pytest.raises(ValidationError) as exc_info:
            await editor.submit_artifact(ALICE, make_input(), image)
        assert exc_info.value.field == "screenshot"
        assert exc_info.value.code == "INVALID_SCREENSHOT"
        assert gateway.mock_calls == []
        assert object_store.mock_calls == []

    @pytest.mark.asyncio
    async def test_unsafe_screenshot_on_edit_makes_no_calls(self, mocks):
        editor, gateway, object_store = mocks
        image = ImageUpload(filename="a.png/../x", content=b"bytes")
        with pytest.raises(ValidationError):
            await editor.update_artifact(ALICE, "a1", make_input(), image)
        assert gateway.mock_calls == []
        assert object_store.mock_calls == []

    @pytest.mark.asyncio
    async def test_screenshot_without_extension_is_accepted(self, mocks):
        editor, gateway, object_store = mocks
        gateway.insert.side_effect = [[{"id": "new"}], GatewayError("insert", "x", "stop")]
        image = ImageUpload(filename="screenshot", content=b"bytes")
        with pytest.raises(SagaError):
            await editor.submit_artifact(ALICE, make_input(), image)
        name = object_store.upload.await_args.args[0]
        assert "." not in name

    @pytest.mark.asyncio
    async def test_invalid_edit_makes_no_calls(self, mocks):
        editor, gateway, object_store = mocks
        with pytest.raises(ValidationError):
            await editor.update_artifact(
                ALICE, "a1", make_input(artifact_url="https://example.com/x")
            )
        assert gateway.mock_calls == []

    @pytest.mark.asyncio
    async def test_anonymous_submit(self, mocks):
        editor, gateway, object_store = mocks
        with pytest.raises(AuthRequiredError):
            await editor.submit_artifact(None, make_input(), SCREENSHOT)
        assert gateway.mock_calls == []


class TestSubmit:
    @pytest.mark.asyncio
    async def test_creates_artifact_with_tags(self, editor, gateway, submitted):
        assert submitted.user_id == "alice"
        assert submitted.title == "Fraction Wall"
        assert submitted.subjects == [Subject.MATHEMATICS]
        assert submitted.key_stages == [KeyStage.KS3, KeyStage.KS4]

        rows = await gateway.select(Collection.ARTIFACTS, {"id": submitted.id})
        assert len(rows) == 1
        assert await tags(gateway, submitted.id) == ({"Mathematics"}, {"KS3", "KS4"})

    @pytest.mark.asyncio
    async def test_screenshot_is_stored(self, object_store, submitted):
        assert submitted.screenshot_url.startswith(
            "http://test/storage/artifact-screenshots/"
        )
        assert submitted.screenshot_url.endswith(".png")
        name = submitted.screenshot_url.rsplit("/", 1)[-1]
        assert (object_store.base_path / name).read_bytes() == SCREENSHOT.content

    @pytest.mark.asyncio
    async def test_blank_optionals_stored_as_none(self, editor):
        artifact = await editor.submit_artifact(
            ALICE, make_input(description="  ", first_prompt=""), SCREENSHOT
        )
        assert artifact.description is None
        assert artifact.first_prompt is None

    @pytest.mark.asyncio
    async def test_duplicate_tags_collapse(self, editor, gateway):
        artifact = await editor.submit_artifact(
            ALICE,
            make_input(subjects=[Subject.PHYSICS, Subject.PHYSICS]),
            SCREENSHOT,
        )
        assert await tags(gateway, artifact.id) == ({"Physics"}, {"KS3", "KS4"})

    @pytest.mark.asyncio
    async def test_step_order(self, mocks):
        editor, gateway, object_store = mocks
        stored = {
            "id": "new",
            "title": "Fraction Wall",
            "artifact_url": "https://claude.ai/public/artifacts/abc123",
            "user_id": "alice",
            "created_at": "2025-01-01T00:00:00+00:00",
        }
        gateway.insert.side_effect = [[stored], [], []]
        artifact = await editor.submit_artifact(ALICE, make_input(), SCREENSHOT)
        assert artifact.id == "new"

        object_store.upload.assert_awaited_once()
        collections = [c.args[0] for c in gateway.insert.await_args_list]
        assert collections == [
            Collection.ARTIFACTS,
            Collection.ARTIFACT_SUBJECTS,
            Collection.ARTIFACT_KEY_STAGES,
        ]

    @pytest.mark.asyncio
    async def test_partial_failure_reports_completed_steps(self, mocks):
        editor, gateway, object_store = mocks
        gateway.insert.side_effect = [
            [{"id": "new"}],
            GatewayError("insert", "artifact_subjects", "constraint failed"),
        ]
        with pytest.raises(SagaError) as exc_info:
            await editor.submit_artifact(ALICE, make_input(), SCREENSHOT)

        error = exc_info.value
        assert error.step == "insert_subjects"
        assert error.completed == ["upload_screenshot", "insert_artifact"]
        assert gateway.insert.await_count == 2

    @pytest.mark.asyncio
    async def test_upload_failure_writes_nothing(self, mocks):
        editor, gateway, object_store = mocks
        object_store.upload.side_effect = GatewayError("upload", "artifact-screenshots", "full")
        with pytest.raises(SagaError) as exc_info:
            await editor.submit_artifact(ALICE, make_input(), SCREENSHOT)
        assert exc_info.value.completed == []
        gateway.insert.assert_not_awaited()


class TestUpdate:
    @pytest.mark.asyncio
    async def test_replaces_tags_and_scalars(self, editor, gateway, submitted):
        await editor.update_artifact(
            ALICE,
            submitted.id,
            make_input(
                title="Fraction Wall v2",
                subjects=[Subject.PHYSICS, Subject.BIOLOGY],
                key_stages=[KeyStage.KS2],
            ),
        )
        row = (await gateway.select(Collection.ARTIFACTS, {"id": submitted.id}))[0]
        assert row["title"] == "Fraction Wall v2"
        assert await tags(gateway, submitted.id) == ({"Physics", "Biology"}, {"KS2"})

    @pytest.mark.asyncio
    async def test_keeps_screenshot_without_new_image(self, editor, gateway, submitted):
        await editor.update_artifact(ALICE, submitted.id, make_input(title="Renamed"))
        row = (await gateway.select(Collection.ARTIFACTS, {"id": submitted.id}))[0]
        assert row["screenshot_url"] == submitted.screenshot_url

    @pytest.mark.asyncio
    async def test_new_image_replaces_screenshot(self, editor, gateway, submitted):
        image = ImageUpload(filename="new.jpg", content=b"jpeg")
        await editor.update_artifact(ALICE, submitted.id, make_input(), image)
        row = (await gateway.select(Collection.ARTIFACTS, {"id": submitted.id}))[0]
        assert row["screenshot_url"] != submitted.screenshot_url
        assert row["screenshot_url"].endswith(".jpg")

    @pytest.mark.asyncio
    async def test_not_owner(self, editor, gateway, submitted):
        with pytest.raises(NotOwnerError):
            await editor.update_artifact(BOB, submitted.id, make_input(title="Mine now"))
        row = (await gateway.select(Collection.ARTIFACTS, {"id": submitted.id}))[0]
        assert row["title"] == "Fraction Wall"

    @pytest.mark.asyncio
    async def test_missing_artifact(self, editor):
        with pytest.raises(ArtifactNotFoundError):
            await editor.update_artifact(ALICE, "missing", make_input())

    @pytest.mark.asyncio
    async def test_step_order(self, mocks):
        editor, gateway, object_store = mocks
        await editor.update_artifact(ALICE, "a1", make_input())

        gateway.update.assert_awaited_once()
        assert gateway.update.await_args.args[1]["screenshot_url"] == "http://test/old.png"
        assert [c.args[0] for c in gateway.delete.await_args_list] == [
            Collection.ARTIFACT_SUBJECTS,
            Collection.ARTIFACT_KEY_STAGES,
        ]
        assert [c.args[0] for c in gateway.insert.await_args_list] == [
            Collection.ARTIFACT_SUBJECTS,
            Collection.ARTIFACT_KEY_STAGES,
        ]
        object_store.upload.assert_not_awaited()


class TestDelete:
    @pytest.mark.asyncio
    async def test_requires_confirmation(self, mocks):
        editor, gateway, object_store = mocks
        with pytest.raises(ConfirmationRequiredError):
            await editor.delete_artifact(ALICE, "a1")
        assert gateway.mock_calls == []

    @pytest.mark.asyncio
    async def test_dependants_deleted_before_artifact(self, mocks):
        editor, gateway, object_store = mocks
        await editor.delete_artifact(ALICE, "a1", confirmed=True)

        calls = [(c.args[0], dict(c.args[1])) for c in gateway.delete.await_args_list]
        assert calls == [
            (Collection.ARTIFACT_SUBJECTS, {"artifact_id": "a1"}),
            (Collection.ARTIFACT_KEY_STAGES, {"artifact_id": "a1"}),
            (Collection.VOTES, {"artifact_id": "a1"}),
            (Collection.FAVORITES, {"artifact_id": "a1"}),
            (Collection.ARTIFACTS, {"id": "a1"}),
        ]

    @pytest.mark.asyncio
    async def test_failure_stops_sequence(self, mocks):
        editor, gateway, object_store = mocks
        gateway.delete.side_effect = [None, GatewayError("delete", "artifact_key_stages", "locked")]

        with pytest.raises(SagaError) as exc_info:
            await editor.delete_artifact(ALICE, "a1", confirmed=True)

        assert exc_info.value.step == "delete_artifact_key_stages"
        assert exc_info.value.completed == ["delete_artifact_subjects"]
        assert gateway.delete.await_count == 2
        deleted = [c.args[0] for c in gateway.delete.await_args_list]
        assert Collection.ARTIFACTS not in deleted

    @pytest.mark.asyncio
    async def test_not_owner(self, mocks):
        editor, gateway, object_store = mocks
        with pytest.raises(NotOwnerError):
            await editor.delete_artifact(BOB, "a1", confirmed=True)
        gateway.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_removes_everything(self, editor, gateway, submitted):
        key = {"artifact_id": submitted.id, "user_id": "bob"}
        await gateway.insert(Collection.VOTES, [key])
        await gateway.insert(Collection.FAVORITES, [key])

        await editor.delete_artifact(ALICE, submitted.id, confirmed=True)

        assert await gateway.count(Collection.ARTIFACTS) == 0
        for collection in DELETE_ORDER:
            assert await gateway.count(collection) == 0
