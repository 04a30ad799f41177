"""Include resolution against a real template directory."""

import pytest

import pyejs
from pyejs import TemplateNotFoundError


@pytest.fixture
def views(tmp_path):
    """A small template tree:

    views/
        page.ejs
        partial.ejs
        sub/outer.ejs
        sub/inner.ejs
    shared/
        footer.ejs
    """
    views = tmp_path / "views"
    (views / "sub").mkdir(parents=True)
    (tmp_path / "shared").mkdir()

    (views / "page.ejs").write_text('<%- include("partial", {"name": "x"}) %>')
    (views / "partial.ejs").write_text("Hi <%= name %>")
    (views / "sub" / "outer.ejs").write_text('[<%- include("inner") %>]')
    (views / "sub" / "inner.ejs").write_text("inner <%= name %>")
    (tmp_path / "shared" / "footer.ejs").write_text("footer")
    return views


def test_include_relative(views):
    assert pyejs.render_file(views / "page.ejs") == "Hi x"


def test_nested_include_is_relative_to_child(views):
    out = pyejs.render('<%- include("sub/outer") %>', {"name": "n"}, filename=views / "page.ejs")

    assert out == "[inner n]"


def test_include_from_views(views, tmp_path):
    out = pyejs.render(
        '<%- include("footer") %>',
        filename=views / "page.ejs",
        views=[tmp_path / "shared"],
    )

    assert out == "footer"


def test_include_absolute_from_root(views):
    out = pyejs.render('<%- include("/partial", {"name": "r"}) %>', root=views)

    assert out == "Hi r"


def test_include_missing(views):
    with pytest.raises(TemplateNotFoundError, match='include file "nope"'):
        pyejs.render('<%- include("nope") %>', filename=views / "page.ejs")


def test_render_file_missing(tmp_path):
    with pytest.raises(TemplateNotFoundError):
        pyejs.render_file(tmp_path / "absent.ejs")


def test_byte_order_mark_is_stripped(tmp_path):
    path = tmp_path / "bom.ejs"
    path.write_text("\ufeffHello <%= who %>", encoding="utf-8")

    assert pyejs.render_file(path, {"who": "you"}) == "Hello you"


def test_includer_supplies_inline_template():
    def includer(path, filename):
        return {"template": f"<b><%= {path} %></b>"}

    out = pyejs.render('<%- include("value") %>', {"value": 7}, includer=includer)

    assert out == "<b>7</b>"


def test_cached_file_is_reused(views):
    pyejs.clear_cache()
    path = str(views / "partial.ejs")

    first = pyejs.render_file(path, {"name": "a"}, cache=True)
    (views / "partial.ejs").write_text("changed")
    second = pyejs.render_file(path, {"name": "b"}, cache=True)

    assert (first, second) == ("Hi a", "Hi b")
    assert path in pyejs.cache

    pyejs.clear_cache()
    assert pyejs.render_file(path, cache=True) == "changed"
