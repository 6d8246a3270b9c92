"""Tests for the SQLite todo store."""

import pytest

from todo_agent.store import DatabaseError, InvalidArgumentError, TaskStore, TodoStore


class TestTodoStoreBasics:
    """Test store setup."""

    @pytest.mark.asyncio
    async def test_initialize_creates_file(self, temp_data_dir):
        """Test that initialize creates the database file."""
        db_path = temp_data_dir / "sub" / "todos.db"
        store = TodoStore(db_path)

        await store.initialize()

        assert db_path.exists()

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, todo_store):
        """Test that a second initialize is harmless."""
        await todo_store.initialize()

        assert await todo_store.list_all() == []

    @pytest.mark.asyncio
    async def test_context_manager(self, temp_data_dir):
        """Test using the store as an async context manager."""
        async with TodoStore(temp_data_dir / "ctx.db") as store:
            item = await store.create("water plants")

        assert item.id == 1

    def test_satisfies_protocol(self, temp_data_dir):
        """Test that TodoStore implements TaskStore."""
        assert isinstance(TodoStore(temp_data_dir / "todos.db"), TaskStore)

    @pytest.mark.asyncio
    async def test_unusable_path_raises_database_error(self, temp_data_dir):
        """Test that a directory in place of the file is reported."""
        blocked = temp_data_dir / "blocked.db"
        blocked.mkdir()

        with pytest.raises(DatabaseError):
            await TodoStore(blocked).initialize()


class TestTodoStoreCreate:
    """Test creating and reading todos."""

    @pytest.mark.asyncio
    async def test_create_assigns_ids(self, todo_store):
        """Test that ids are assigned in insertion order."""
        first = await todo_store.create("buy milk")
        second = await todo_store.create("walk dog")

        assert first.id == 1
        assert second.id == 2
        assert first.todo == "buy milk"
        assert first.created_at is not None
        assert first.updated_at is None

    @pytest.mark.asyncio
    async def test_create_strips_text(self, todo_store):
        """Test that surrounding whitespace is dropped."""
        item = await todo_store.create("  call mom  ")

        assert item.todo == "call mom"

    @pytest.mark.parametrize("text", ["", "   "])
    @pytest.mark.asyncio
    async def test_create_blank_rejected(self, todo_store, text):
        """Test that blank todo text is an invalid argument."""
        with pytest.raises(InvalidArgumentError):
            await todo_store.create(text)

        assert await todo_store.list_all() == []

    @pytest.mark.asyncio
    async def test_list_all_ordered_by_id(self, todo_store):
        """Test that list_all returns todos in id order."""
        for text in ("a", "b", "c"):
            await todo_store.create(text)

        items = await todo_store.list_all()

        assert [item.todo for item in items] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_get(self, todo_store):
        """Test fetching one todo by id."""
        created = await todo_store.create("buy milk")

        assert (await todo_store.get(created.id)).todo == "buy milk"
        assert await todo_store.get(999) is None


class TestTodoStoreSearch:
    """Test searching todos."""

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, todo_store):
        """Test substring matching ignoring case."""
        await todo_store.create("Buy MILK")
        await todo_store.create("walk dog")
        await todo_store.create("milkshake")

        items = await todo_store.search("milk")

        assert [item.todo for item in items] == ["Buy MILK", "milkshake"]

    @pytest.mark.asyncio
    async def test_search_folds_non_ascii_case(self, todo_store):
        """Test that accented letters match across case."""
        await todo_store.create("Café run")
        await todo_store.create("ÉCOLE pickup")

        assert [i.todo for i in await todo_store.search("CAFÉ")] == ["Café run"]
        assert [i.todo for i in await todo_store.search("école")] == ["ÉCOLE pickup"]

    @pytest.mark.asyncio
    async def test_search_no_match(self, todo_store):
        """Test that no match returns an empty list."""
        await todo_store.create("buy milk")

        assert await todo_store.search("bread") == []

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, todo_store):
        """Test that % and _ are not LIKE wildcards."""
        await todo_store.create("100% done")
        await todo_store.create("1000 things")
        await todo_store.create("snake_case")
        await todo_store.create("snakeXcase")

        assert [i.todo for i in await todo_store.search("0%")] == ["100% done"]
        assert [i.todo for i in await todo_store.search("e_c")] == ["snake_case"]


class TestTodoStoreDelete:
    """Test deleting todos."""

    @pytest.mark.asyncio
    async def test_delete_one(self, todo_store):
        """Test deleting an existing todo."""
        item = await todo_store.create("buy milk")

        status = await todo_store.delete_one(item.id)

        assert status.success is True
        assert status.message == f"Todo {item.id} deleted successfully"
        assert await todo_store.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_one_missing(self, todo_store):
        """Test that a missing id is reported, not raised."""
        status = await todo_store.delete_one(42)

        assert status.success is False
        assert "not found" in status.message

    @pytest.mark.asyncio
    async def test_delete_many(self, todo_store):
        """Test deleting several todos reports the requested ids."""
        for text in ("a", "b", "c"):
            await todo_store.create(text)

        status = await todo_store.delete_many([1, 3, 7])

        assert status.success is True
        assert status.message == "Deleted todos with ids: [1, 3, 7]"
        assert [item.todo for item in await todo_store.list_all()] == ["b"]

    @pytest.mark.asyncio
    async def test_delete_many_empty(self, todo_store):
        """Test that an empty id list is rejected."""
        with pytest.raises(InvalidArgumentError, match="non-empty array"):
            await todo_store.delete_many([])

    @pytest.mark.asyncio
    async def test_delete_all(self, todo_store):
        """Test deleting everything."""
        await todo_store.create("a")
        await todo_store.create("b")

        status = await todo_store.delete_all()

        assert status.success is True
        assert status.message == "All todos deleted successfully."
        assert await todo_store.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_all_on_empty_store(self, todo_store):
        """Test that delete_all succeeds with nothing to delete."""
        status = await todo_store.delete_all()

        assert status.success is True
