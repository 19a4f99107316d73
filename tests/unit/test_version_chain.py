from __future__ import annotations

from pathlib import Path

import pytest

from orbi.core.broadcast import RelayBroadcaster
from orbi.core.canonical import is_event_id
from orbi.core.chain import VersionChain, advance_head
from orbi.core.chain_store import ChainStore
from orbi.core.errors import BroadcastError, ChainStateError, StorageError
from orbi.core.events import EventKind
from orbi.testing import MockRelayClient, MockSigner
from orbi.testing.fixtures import TEST_RELAYS


@pytest.mark.critical
@pytest.mark.asyncio
async def test_publish_records_root_equal_to_event_id(
    chain: VersionChain, store: ChainStore, draft: Path, relay_client: MockRelayClient
) -> None:
    outcome = await chain.publish(draft)
    root = await store.read_root("draft.md")
    assert root == outcome.event_id
    assert is_event_id(root)
    assert outcome.event.chain_root() is None
    assert outcome.accepted == list(TEST_RELAYS)
    assert await store.list_tracked() == ["draft.md"]
    assert {eid for _, eid in relay_client.published} == {outcome.event_id}


@pytest.mark.critical
@pytest.mark.asyncio
async def test_publish_refused_when_root_exists(
    chain: VersionChain,
    store: ChainStore,
    draft: Path,
    relay_client: MockRelayClient,
    signer: MockSigner,
) -> None:
    await store.write_root("draft.md", "ab" * 32)
    with pytest.raises(ChainStateError, match="already published"):
        await chain.publish(draft)
    assert relay_client.calls == 0
    assert signer.signed == []
    assert await store.read_root("draft.md") == "ab" * 32


@pytest.mark.critical
@pytest.mark.asyncio
async def test_commit_refused_without_root(
    chain: VersionChain, draft: Path, relay_client: MockRelayClient
) -> None:
    with pytest.raises(ChainStateError, match="not yet published"):
        await chain.commit(draft, message="fix typo")
    assert relay_client.calls == 0


@pytest.mark.critical
@pytest.mark.asyncio
async def test_commits_anchor_to_root_and_leave_pointers_alone(
    chain: VersionChain, store: ChainStore, draft: Path
) -> None:
    first = await chain.publish(draft)
    root_file = store.root_path("draft.md")
    before = root_file.read_bytes()

    draft.write_text("# Draft\n\nsecond words\n", encoding="utf-8")
    c1 = await chain.commit(draft, message="fix typo")
    draft.write_text("# Draft\n\nthird words\n", encoding="utf-8")
    c2 = await chain.commit(draft)

    for commit in (c1, c2):
        assert commit.event.kind is EventKind.FILE_VERSION
        assert commit.event.chain_root() == first.event_id
        assert commit.event.chain_parent() == first.event_id
        assert commit.root == first.event_id
    assert c1.event.message() == "fix typo"
    assert c2.event.message() is None
    assert root_file.read_bytes() == before
    assert not store.head_path("draft.md").exists()
    assert await store.list_tracked() == ["draft.md"]


@pytest.mark.asyncio
async def test_commit_reports_explicit_head_without_advancing(
    chain: VersionChain, store: ChainStore, draft: Path
) -> None:
    await chain.publish(draft)
    head = "cd" * 32
    await chain.set_head(draft, head)
    outcome = await chain.commit(draft)
    assert outcome.head == head
    assert await store.read_head("draft.md") == head
    # parent stays the root even with an explicit head
    assert outcome.event.chain_parent() == outcome.root


@pytest.mark.asyncio
async def test_failed_broadcast_writes_no_state(
    store: ChainStore, signer: MockSigner, draft: Path
) -> None:
    client = MockRelayClient(default="reject")
    chain = VersionChain(
        store,
        signer,
        RelayBroadcaster(client, relay_timeout=0.1, deadline_slack=0.1),
        TEST_RELAYS,
    )
    with pytest.raises(BroadcastError):
        await chain.publish(draft)
    assert await store.read_root("draft.md") is None
    assert await store.list_tracked() == []
    assert not store.directory.exists()


@pytest.mark.asyncio
async def test_tracking_failure_is_only_a_warning(
    chain: VersionChain,
    store: ChainStore,
    draft: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def broken_track(file):
        raise StorageError("disk full", path="tracked_files")

    monkeypatch.setattr(store, "track_file", broken_track)
    outcome = await chain.publish(draft)
    assert await store.read_root("draft.md") == outcome.event_id
    assert outcome.warnings and "disk full" in outcome.warnings[0]


@pytest.mark.asyncio
async def test_publish_file_named_like_tracked_record(
    chain: VersionChain, store: ChainStore, tmp_path: Path
) -> None:
    first = tmp_path / "a.md"
    first.write_text("a", encoding="utf-8")
    await chain.publish(first)

    clash = tmp_path / "tracked_files"
    clash.write_text("not the store's list", encoding="utf-8")
    outcome = await chain.publish(clash)

    assert outcome.warnings == []
    assert await store.read_root("tracked_files") == outcome.event_id
    assert await store.list_tracked() == ["a.md", "tracked_files"]
    confluence = await chain.confluence(message="both")
    assert confluence.event.tags == (("f", "a.md"), ("f", "tracked_files"))


@pytest.mark.asyncio
async def test_missing_source_file_is_storage_error(
    chain: VersionChain, tmp_path: Path, relay_client: MockRelayClient
) -> None:
    with pytest.raises(StorageError):
        await chain.publish(tmp_path / "absent.md")
    assert relay_client.calls == 0


@pytest.mark.asyncio
async def test_confluence_defaults_to_tracked_files(
    chain: VersionChain, store: ChainStore, tmp_path: Path
) -> None:
    for name in ("b.md", "a.md"):
        path = tmp_path / name
        path.write_text(name, encoding="utf-8")
        await chain.publish(path)
    outcome = await chain.confluence(message="weekly")
    assert outcome.event.kind is EventKind.CONFLUENCE
    assert outcome.event.tags == (("f", "b.md"), ("f", "a.md"))
    assert outcome.event.content == "weekly"


@pytest.mark.asyncio
async def test_confluence_with_explicit_refs(chain: VersionChain) -> None:
    ref = "a1" * 32
    outcome = await chain.confluence([ref, "notes.md"], message="merge")
    assert outcome.event.tags == (("e", ref), ("f", "notes.md"))
    assert outcome.event.content == "merge"
    assert outcome.filename is None


@pytest.mark.asyncio
async def test_confluence_without_anything_to_reference(
    chain: VersionChain, relay_client: MockRelayClient
) -> None:
    with pytest.raises(ChainStateError):
        await chain.confluence(message="nothing")
    assert relay_client.calls == 0


@pytest.mark.asyncio
async def test_set_head_requires_root(store: ChainStore) -> None:
    with pytest.raises(ChainStateError):
        await advance_head(store, "draft.md", "cd" * 32)


@pytest.mark.asyncio
async def test_status_lists_pointers(
    chain: VersionChain, draft: Path
) -> None:
    outcome = await chain.publish(draft)
    (ptr,) = await chain.status()
    assert ptr.filename == "draft.md"
    assert ptr.root == outcome.event_id
    assert ptr.head is None
