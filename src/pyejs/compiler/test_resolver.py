"""Tests for include resolution."""

import pytest

from pyejs.compiler.resolver import IncludeResolver, resolve_include
from pyejs.errors import TemplateNotFoundError
from pyejs.loader import DictLoader
from pyejs.options import Options


def resolver(*paths):
    return IncludeResolver(DictLoader({path: "" for path in paths}))


def test_resolve_include_adds_extension():
    assert resolve_include("partial", "/site/page.ejs") == "/site/partial.ejs"
    assert resolve_include("partial.html", "/site/page.ejs") == "/site/partial.html"
    assert resolve_include("../x", "/site/pages", is_dir=True, type="tpl") == "/site/x.tpl"


def test_relative_to_including_file_first():
    """The including file's directory wins over the views directories."""
    r = resolver("/site/partial.ejs", "/views/partial.ejs")
    opts = Options(filename="/site/page.ejs", views=["/views"])

    assert r.include_path("partial", opts, "ejs") == "/site/partial.ejs"


def test_views_in_order():
    r = resolver("/views/b/partial.ejs", "/views/c/partial.ejs")
    opts = Options(views=["/views/a", "/views/b", "/views/c"])

    assert r.include_path("partial", opts, "ejs") == "/views/b/partial.ejs"


def test_absolute_under_root():
    opts = Options(root="/srv/templates")

    assert resolver().include_path("/header", opts, "ejs") == "/srv/templates/header.ejs"


def test_absolute_without_root():
    assert resolver().include_path("/header.ejs", Options(), "ejs") == "/header.ejs"


def test_absolute_under_root_list():
    r = resolver("/b/header.ejs")
    opts = Options(root=["/a", "/b"])

    assert r.include_path("/header", opts, "ejs") == "/b/header.ejs"


def test_not_found_escapes_name():
    with pytest.raises(TemplateNotFoundError) as exc:
        resolver().include_path("<missing>", Options(), "ejs")

    assert str(exc.value) == 'Could not find the include file "&lt;missing&gt;"'


def test_includer_supplies_template():
    """An includer may answer for a reference no file matches."""
    calls = []

    def includer(path, filename):
        calls.append((path, filename))
        return {"template": "inline <%= x %>"}

    ref = resolver().resolve("virtual", Options(includer=includer))

    assert calls == [("virtual", None)]
    assert ref.template == "inline <%= x %>"
    assert ref.filename is None


def test_includer_overrides_filename():
    r = resolver("/site/partial.ejs")
    opts = Options(
        filename="/site/page.ejs",
        includer=lambda path, filename: {"filename": "/other/" + path + ".ejs"},
    )

    ref = r.resolve("partial", opts)

    assert ref.filename == "/other/partial.ejs"
    assert ref.template is None


def test_includer_returning_nothing():
    opts = Options(includer=lambda path, filename: None)

    with pytest.raises(TemplateNotFoundError):
        resolver().resolve("missing", opts)


def test_type_defaults_to_options():
    r = resolver("/site/partial.html")
    opts = Options(filename="/site/page.html", type="html")

    ref = r.resolve("partial", opts)

    assert ref.filename == "/site/partial.html"
    assert ref.type == "html"
