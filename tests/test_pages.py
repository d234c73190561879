from bs4 import BeautifulSoup
from fastapi.testclient import TestClient

from src.todo_web.context_menu import ContextMenu
from src.todo_web.dom import Document, Viewport
from src.todo_web.main import app
from src.todo_web.schemas import TodoCreate

client = TestClient(app)


def soup(res) -> BeautifulSoup:
    return BeautifulSoup(res.text, "html.parser")


def seed(repo, *titles):
    return [repo.create(TodoCreate(title=t, description=f"about {t}", done=False))["id"] for t in titles]


class TestIndex:
    def test_rows_carry_todo_ids(self, repo):
        ids = seed(repo, "Walk dog", "Feed cat")
        res = client.get("/todos")
        assert res.status_code == 200
        rows = soup(res).select("tr[data-todo-id]")
        assert [r["data-todo-id"] for r in rows] == [str(i) for i in ids]
        assert "Walk dog" in rows[0].get_text()

    def test_menu_markup_is_present_and_hidden(self):
        page = soup(client.get("/todos"))
        container = page.select_one('[data-controller="context-menu"]')
        assert container is not None
        menu = container.select_one('[data-context-menu-target="menu"]')
        assert "hidden" in menu["class"]
        for name in ("showLink", "editLink", "deleteLink"):
            assert container.select_one(f'[data-context-menu-target="{name}"]') is not None

    def test_notice_is_rendered(self):
        res = client.get("/todos", params={"notice": "Todo was successfully destroyed."})
        assert soup(res).select_one("#notice").get_text() == "Todo was successfully destroyed."


class TestIndexContextMenu:
    def test_rendered_page_drives_the_context_menu(self, repo):
        (tid,) = seed(repo, "Walk dog")
        document = Document(client.get("/todos").text, viewport=Viewport(1024, 768))
        menu = ContextMenu(document).attach()

        cell = document.query(f'tr[data-todo-id="{tid}"] td')
        document.click(cell, x=100, y=120, event_type="contextmenu")

        assert menu.state.visible
        assert menu.state.target_row_id == str(tid)
        assert menu.link("showLink")["href"] == f"/todos/{tid}"
        assert menu.link("editLink")["href"] == f"/todos/{tid}/edit"
        assert menu.link("deleteLink")["href"] == f"/todos/{tid}"

        # the edit link target resolves to a real page
        assert client.get(menu.link("editLink")["href"]).status_code == 200


class TestCreate:
    def test_new_form(self):
        res = client.get("/todos/new")
        assert res.status_code == 200
        form = soup(res).select_one("form")
        assert form["action"] == "/todos"
        assert form.select_one('input[name="_method"]') is None

    def test_create_redirects_to_show_with_notice(self, repo):
        res = client.post(
            "/todos", data={"title": "Walk dog", "description": "", "done": "1"}, follow_redirects=False
        )
        assert res.status_code == 303
        todo = repo.list()[0][0]
        assert res.headers["location"].startswith(f"/todos/{todo['id']}?notice=")
        assert todo["title"] == "Walk dog"
        assert todo["description"] is None
        assert todo["done"] is True

    def test_create_follows_to_show_page(self):
        res = client.post("/todos", data={"title": "Buy milk"})
        assert res.status_code == 200
        assert "Todo was successfully created." in res.text
        assert "Buy milk" in res.text

    def test_whitespace_only_fields_are_stored_as_null(self, repo):
        client.post("/todos", data={"title": "   ", "description": "\t\n"})
        todo = repo.list()[0][0]
        assert todo["title"] is None
        assert todo["description"] is None

    def test_whitespace_only_update_clears_title(self, repo):
        (tid,) = seed(repo, "Old")
        client.patch(f"/todos/{tid}", data={"title": " "})
        assert repo.get(tid)["title"] is None


class TestShowAndEdit:
    def test_show(self, repo):
        (tid,) = seed(repo, "Read book")
        res = client.get(f"/todos/{tid}")
        assert res.status_code == 200
        page = soup(res)
        assert page.select_one(f'a[href="/todos/{tid}/edit"]') is not None
        delete_form = page.select_one(f'form[action="/todos/{tid}"]')
        assert delete_form.select_one('input[name="_method"]')["value"] == "delete"

    def test_edit_prefills_form(self, repo):
        (tid,) = seed(repo, "Read book")
        page = soup(client.get(f"/todos/{tid}/edit"))
        assert page.select_one('input[name="title"]')["value"] == "Read book"
        assert page.select_one('input[name="_method"]')["value"] == "patch"

    def test_missing_todo_renders_404_page(self):
        for path in ("/todos/999", "/todos/999/edit"):
            res = client.get(path)
            assert res.status_code == 404
            assert "Todo not found" in res.text

    def test_non_numeric_id_renders_404_page(self):
        for path in ("/todos/abc", "/todos/abc/edit", "/todos/-1", "/todos/1.5"):
            res = client.get(path)
            assert res.status_code == 404
            assert res.headers["content-type"].startswith("text/html")
            assert "Todo not found" in res.text

    def test_api_still_validates_numeric_id(self):
        res = client.get("/api/v1/todos/abc")
        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"


class TestUpdate:
    def test_patch(self, repo):
        (tid,) = seed(repo, "Old")
        res = client.patch(f"/todos/{tid}", data={"title": "New", "done": "1"}, follow_redirects=False)
        assert res.status_code == 303
        assert res.headers["location"].startswith(f"/todos/{tid}?notice=")
        todo = repo.get(tid)
        assert todo["title"] == "New"
        assert todo["done"] is True
        # fields missing from the form are cleared
        assert todo["description"] is None

    def test_put(self, repo):
        (tid,) = seed(repo, "Old")
        res = client.put(f"/todos/{tid}", data={"title": "Put"}, follow_redirects=False)
        assert res.status_code == 303
        assert repo.get(tid)["title"] == "Put"
        assert repo.get(tid)["done"] is False

    def test_method_override_patch(self, repo):
        (tid,) = seed(repo, "Old")
        res = client.post(f"/todos/{tid}", data={"_method": "patch", "title": "Overridden"})
        assert res.status_code == 200
        assert "Todo was successfully updated." in res.text
        assert repo.get(tid)["title"] == "Overridden"

    def test_update_missing(self):
        res = client.patch("/todos/999", data={"title": "x"})
        assert res.status_code == 404

    def test_update_non_numeric_id(self):
        assert client.patch("/todos/abc", data={"title": "x"}).status_code == 404
        res = client.post("/todos/abc", data={"_method": "put", "title": "x"})
        assert res.status_code == 404
        assert "Todo not found" in res.text


class TestDestroy:
    def test_delete(self, repo):
        (tid,) = seed(repo, "Bye")
        res = client.delete(f"/todos/{tid}", follow_redirects=False)
        assert res.status_code == 303
        assert res.headers["location"].startswith("/todos?notice=")
        assert repo.get(tid) is None

    def test_method_override_delete(self, repo):
        (tid,) = seed(repo, "Bye")
        res = client.post(f"/todos/{tid}", data={"_method": "delete"})
        assert res.status_code == 200
        assert "Todo was successfully destroyed." in res.text
        assert repo.get(tid) is None

    def test_delete_missing(self):
        assert client.delete("/todos/999").status_code == 404

    def test_delete_non_numeric_id(self, repo):
        seed(repo, "Stay")
        res = client.delete("/todos/abc")
        assert res.status_code == 404
        assert "Todo not found" in res.text
        assert repo.list()[1] == 1

    def test_unsupported_override(self, repo):
        (tid,) = seed(repo, "Stay")
        res = client.post(f"/todos/{tid}", data={"_method": "get"})
        assert res.status_code == 405
        assert repo.get(tid) is not None

    def test_override_requires_method_field(self, repo):
        (tid,) = seed(repo, "Stay")
        res = client.post(f"/todos/{tid}", data={"title": "x"})
        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"
