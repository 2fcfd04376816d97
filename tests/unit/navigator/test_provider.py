"""Unit tests for navigator/provider.py — the editor-facing surface."""

import asyncio
from dataclasses import replace
from datetime import UTC, datetime

import pytest

from content_navigator.errors import Messages
from content_navigator.navigator.drop import CONTENT_ITEM_MIME_TYPE
from content_navigator.navigator.identity import locator_for
from content_navigator.navigator.provider import ContentNavigator, FileStat, FileType


@pytest.fixture
def navigator(repo, editors, events) -> ContentNavigator:  # type: ignore[no-untyped-def]
    return ContentNavigator(repository=repo, editors=editors, events=events)


class TestConnect:
    def test_connect_refreshes_tree(self, navigator, repo, events) -> None:
        asyncio.run(navigator.connect("https://content.example.com"))

        assert repo.connected()
        assert events.tree_events == 1

    def test_acquire_session_id_connects_first(self, navigator, repo) -> None:
        session = asyncio.run(navigator.acquire_session_id("https://content.example.com"))

        assert session == "session-1"
        assert repo.endpoint == "https://content.example.com"

    def test_acquire_session_id_reuses_connection(self, navigator, repo) -> None:
        asyncio.run(navigator.connect("https://first.example.com"))

        asyncio.run(navigator.acquire_session_id("https://second.example.com"))

        assert repo.endpoint == "https://first.example.com"


class TestTreeQueries:
    def test_root_children_are_delegate_folders(self, navigator) -> None:
        names = [child.name for child in asyncio.run(navigator.get_children())]
        assert names == ["Content", "My Folder", "My Favorites", "Recycle Bin"]

    def test_get_children_failure_yields_empty_list(self, navigator, repo) -> None:
        folder = repo.add_folder(repo.my_folder, "data")
        repo.add_file(folder, "a.sas")
        repo.fail("get_children", "data")

        assert asyncio.run(navigator.get_children(folder)) == []

    def test_get_parent(self, navigator, repo) -> None:
        item = repo.add_file(repo.my_folder, "a.sas")
        assert asyncio.run(navigator.get_parent(item)) == repo.my_folder

    def test_get_locator_matches_identity(self, navigator, repo) -> None:
        item = repo.add_file(repo.my_folder, "a.sas")
        assert navigator.get_locator(item, True) == locator_for(item, True)


class TestFileSystemSurface:
    def test_stat_file(self, navigator, repo) -> None:
        item = repo.add_file(repo.my_folder, "a.sas")
        repo.nodes[item.uri] = replace(
            item,
            size=12,
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
            modified_at=datetime(2024, 1, 2, tzinfo=UTC),
        )

        stat = asyncio.run(navigator.stat(locator_for(item)))

        assert stat == FileStat(
            type=FileType.FILE, ctime=1704067200000, mtime=1704153600000, size=12
        )

    def test_stat_folder(self, navigator, repo) -> None:
        folder = repo.add_folder(repo.my_folder, "data")

        stat = asyncio.run(navigator.stat(locator_for(folder)))

        assert stat.type is FileType.DIRECTORY
        assert stat.ctime == 0

    def test_read_and_write(self, navigator, repo, events) -> None:
        item = repo.add_file(repo.my_folder, "a.sas", b"old")
        locator = locator_for(item)

        asyncio.run(navigator.write_file(locator, b"new"))

        assert asyncio.run(navigator.read_file(locator)) == b"new"
        assert events.document_events == [locator]

    def test_read_only_document_content(self, navigator, repo) -> None:
        item = repo.add_file(repo.trash, "old.sas", "données".encode())

        text = asyncio.run(navigator.provide_document_content(locator_for(item, True)))

        assert text == "données"

    def test_read_only_binary_content_is_replaced(self, navigator, repo) -> None:
        item = repo.add_file(repo.trash, "old.sas7bdat", b"\xff\xfe\x00bad")

        text = asyncio.run(navigator.provide_document_content(navigator.get_locator(item, True)))

        assert text == "\ufffd\ufffd\x00bad"

    @pytest.mark.parametrize("method", ["delete", "rename", "read_directory", "create_directory"])
    def test_unsupported_file_system_calls(self, navigator, method: str) -> None:
        with pytest.raises(NotImplementedError, match="Method not implemented."):
            getattr(navigator, method)("content:/a.sas")


class TestMutations:
    def test_create_file_returns_locator(self, navigator, repo) -> None:
        locator = asyncio.run(navigator.create_file(repo.my_folder, "a.sas", b"run;"))

        assert locator is not None
        [created] = repo.children_of(repo.my_folder)
        assert locator == locator_for(created)

    def test_create_folder_under_file_returns_none(self, navigator, repo) -> None:
        item = repo.add_file(repo.my_folder, "a.sas")
        assert asyncio.run(navigator.create_folder(item, "data")) is None

    def test_rename_resource_returns_new_locator(self, navigator, repo) -> None:
        item = repo.add_file(repo.my_folder, "a.sas")

        locator = asyncio.run(navigator.rename_resource(item, "b.sas"))

        assert locator is not None
        assert locator.name == "b.sas"

    def test_recycle_and_restore(self, navigator, repo) -> None:
        item = repo.add_file(repo.my_folder, "a.sas")

        assert asyncio.run(navigator.recycle_resource(item)) is True
        assert asyncio.run(navigator.restore_resource(repo.current(item))) is True
        assert repo.current(item).parent_folder_uri == repo.my_folder.uri

    def test_favorites(self, navigator, repo) -> None:
        item = repo.add_file(repo.my_folder, "a.sas")

        assert asyncio.run(navigator.add_to_my_favorites(item)) is True
        assert asyncio.run(navigator.remove_from_my_favorites(item)) is True
        assert repo.children_of(repo.favorites) == []

    def test_empty_recycle_bin(self, navigator, repo) -> None:
        repo.add_file(repo.trash, "old.sas")

        assert asyncio.run(navigator.empty_recycle_bin()) is True
        assert repo.children_of(repo.trash) == []


class TestCreationResponse:
    def test_success_reveals_resource(self, navigator, editors, repo) -> None:
        item = repo.add_file(repo.my_folder, "a.sas")

        navigator.handle_creation_response(
            item, locator_for(item), Messages.NEW_FILE_CREATION_ERROR
        )

        assert editors.revealed == [item]
        assert editors.errors == []

    def test_failure_shows_message(self, navigator, editors, repo) -> None:
        message = Messages.NEW_FOLDER_CREATION_ERROR.format(name="data")

        navigator.handle_creation_response(repo.my_folder, None, message)

        assert editors.errors == ["Unable to create folder data."]
        assert editors.revealed == []


class TestTransfers:
    def test_drag_and_drop_round_trip(self, navigator, repo) -> None:
        target = repo.add_folder(repo.my_folder, "target")
        item = repo.add_file(repo.my_folder, "a.sas")

        payload = navigator.handle_drag([item])
        report = asyncio.run(navigator.handle_drop(target, payload))

        assert CONTENT_ITEM_MIME_TYPE in payload
        assert report.ok
        assert repo.current(item).parent_folder_uri == target.uri

    def test_upload_uris_to_target(self, navigator, repo, tmp_path) -> None:
        local = tmp_path / "a.sas"
        local.write_bytes(b"run;")

        report = asyncio.run(navigator.upload_uris_to_target([local.as_uri()], repo.my_folder))

        assert report.ok
        assert [child.name for child in repo.children_of(repo.my_folder)] == ["a.sas"]

    def test_download_content_items(self, navigator, repo, tmp_path) -> None:
        item = repo.add_file(repo.my_folder, "a.sas", b"run;")

        report = asyncio.run(navigator.download_content_items(tmp_path, [item], [item]))

        assert report.ok
        assert (tmp_path / "a.sas").read_bytes() == b"run;"
